# src/eraledger/runtime/single_writer.py
from __future__ import annotations

import fcntl
import os
from typing import IO, Optional


class SingleWriterError(RuntimeError):
    pass


class SingleWriterLock:
    """
    Enforces a single writer process per ledger database.
    Uses a filesystem lock next to the database file.
    """

    def __init__(self, path: str):
        self.path = path
        self._fd: Optional[IO[str]] = None

    @classmethod
    def for_db(cls, db_path: str) -> "SingleWriterLock":
        return cls(str(db_path) + ".writer.lock")

    def acquire(self) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        fd = open(self.path, "w")
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            fd.close()
            raise SingleWriterError(f"single-writer lock already held: {self.path}")
        self._fd = fd

    def release(self) -> None:
        if self._fd:
            try:
                fcntl.flock(self._fd, fcntl.LOCK_UN)
            finally:
                self._fd.close()
                self._fd = None

    def __enter__(self) -> "SingleWriterLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

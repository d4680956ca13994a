# src/eraledger/runtime/sqlite_db.py
from __future__ import annotations

import os
import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Tuple


def _now_ms() -> int:
    return int(time.time() * 1000)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except Exception:
        return int(default)


class SqliteDB:
    """SQLite manager for the reward ledger.

    One durable file holds reward records, era volume totals and the bundled
    balance store, so a claim's ledger reset and its credit share one
    transaction.

    SQLite allows only one writer at a time. `write_tx()` opens
    BEGIN IMMEDIATE, which is the single sequence point for every mutation,
    and retries lock contention with bounded, jittered backoff.
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    @staticmethod
    def _sqlite_synchronous_pragma() -> str:
        """prod -> FULL, dev/testnet -> NORMAL; ERALEDGER_SQLITE_SYNCHRONOUS overrides."""
        mode = (os.environ.get("ERALEDGER_MODE") or "prod").strip().lower()
        default = "FULL" if mode == "prod" else "NORMAL"
        raw = (os.environ.get("ERALEDGER_SQLITE_SYNCHRONOUS") or default).strip().upper()
        if raw not in {"OFF", "NORMAL", "FULL", "EXTRA"}:
            raw = default
        return raw

    def _operational_pragmas(self, busy_ms: int) -> List[Tuple[str, object]]:
        out: List[Tuple[str, object]] = [
            ("synchronous", self._sqlite_synchronous_pragma()),
            ("foreign_keys", "ON"),
            ("temp_store", "MEMORY"),
            ("wal_autocheckpoint", max(1, _env_int("ERALEDGER_SQLITE_WAL_AUTOCHECKPOINT", 1000))),
            ("journal_size_limit", max(0, _env_int("ERALEDGER_SQLITE_JOURNAL_SIZE_LIMIT", 64 * 1024 * 1024))),
            # negative means KiB
            ("cache_size", -max(0, _env_int("ERALEDGER_SQLITE_CACHE_SIZE_KIB", 16 * 1024))),
            ("busy_timeout", max(0, _env_int("ERALEDGER_SQLITE_BUSY_TIMEOUT_MS", busy_ms))),
        ]
        mmap_bytes = max(0, _env_int("ERALEDGER_SQLITE_MMAP_SIZE", 0))
        if mmap_bytes:
            out.append(("mmap_size", mmap_bytes))
        return out

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("ERALEDGER_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0
        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # BEGIN/COMMIT are issued explicitly
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        # WAL is required unless explicitly waived.
        allow_non_wal = (os.environ.get("ERALEDGER_SQLITE_ALLOW_NON_WAL") or "").strip().lower() in {"1", "true"}
        row = con.execute("PRAGMA journal_mode=WAL;").fetchone()
        mode = str(row[0]).strip().lower() if row is not None else ""
        if mode and mode != "wal" and not allow_non_wal:
            con.close()
            raise RuntimeError(f"sqlite journal_mode is '{mode}', expected 'wal'")

        for name, value in self._operational_pragmas(int(connect_timeout_s * 1000)):
            con.execute(f"PRAGMA {name}={value};")

        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )

            # u128 amounts do not fit SQLite INTEGER; they are stored as decimal TEXT.
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS rewards (
                  account TEXT PRIMARY KEY,
                  confirmed TEXT NOT NULL,
                  pending_vol TEXT NOT NULL,
                  last_modify_era INTEGER NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            con.execute(
                """
                CREATE TABLE IF NOT EXISTS era_volumes (
                  era INTEGER PRIMARY KEY,
                  total TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            con.execute(
                """
                CREATE TABLE IF NOT EXISTS balances (
                  token_id INTEGER NOT NULL,
                  account TEXT NOT NULL,
                  amount TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL,
                  PRIMARY KEY (token_id, account)
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except Exception:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    def _backoff(self, attempt: int) -> None:
        base_sleep = max(0.001, float(_env_int("ERALEDGER_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("ERALEDGER_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)
        sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
        time.sleep(sleep_s * (0.5 + random.random()))

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction; commit on clean exit, roll back on any exception.

        BEGIN IMMEDIATE and COMMIT are retried on writer-lock contention until
        ERALEDGER_SQLITE_WRITE_DEADLINE_MS, then the lock error is raised.
        """
        deadline_ts = _now_ms() + max(250, _env_int("ERALEDGER_SQLITE_WRITE_DEADLINE_MS", 30_000))

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    self._backoff(attempt)
                    attempt += 1

            try:
                yield con

                attempt = 0
                while True:
                    try:
                        con.execute("COMMIT;")
                        break
                    except sqlite3.OperationalError as e:
                        if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                            raise
                        self._backoff(attempt)
                        attempt += 1
            except BaseException:
                if con.in_transaction:
                    con.execute("ROLLBACK;")
                raise

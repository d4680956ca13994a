from __future__ import annotations

from pathlib import Path

import pytest

from eraledger.runtime.single_writer import SingleWriterError, SingleWriterLock


def test_second_writer_is_refused_until_release(tmp_path: Path) -> None:
    db_path = str(tmp_path / "data" / "eraledger.db")
    first = SingleWriterLock.for_db(db_path)
    first.acquire()
    try:
        with pytest.raises(SingleWriterError):
            SingleWriterLock.for_db(db_path).acquire()
    finally:
        first.release()

    with SingleWriterLock.for_db(db_path) as again:
        assert again.path.endswith(".writer.lock")

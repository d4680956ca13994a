from __future__ import annotations

import pytest

from eraledger.ledger.constants import U128_MAX
from eraledger.ledger.volumes import VolumeAggregator
from eraledger.runtime.errors import LedgerError
from eraledger.runtime.sqlite_db import SqliteDB


def test_unknown_era_total_is_zero(db: SqliteDB) -> None:
    with db.connection() as con:
        assert VolumeAggregator(con).total_of(12_300) == 0


def test_accumulate_sums_per_era(db: SqliteDB) -> None:
    with db.write_tx() as con:
        v = VolumeAggregator(con)
        assert v.accumulate(0, 30) == 30
        assert v.accumulate(0, 70) == 100
        assert v.accumulate(100, 5) == 5

    with db.connection() as con:
        v = VolumeAggregator(con)
        assert v.total_of(0) == 100
        assert v.total_of(100) == 5


def test_totals_beyond_64_bits_round_trip_exactly(db: SqliteDB) -> None:
    big = 2**100 + 12_345
    with db.write_tx() as con:
        VolumeAggregator(con).accumulate(0, big)
    with db.connection() as con:
        assert VolumeAggregator(con).total_of(0) == big


def test_accumulate_overflow_leaves_total_unchanged(db: SqliteDB) -> None:
    with db.write_tx() as con:
        VolumeAggregator(con).accumulate(0, U128_MAX)

    with pytest.raises(LedgerError) as ei:
        with db.write_tx() as con:
            VolumeAggregator(con).accumulate(0, 1)
    assert ei.value.code == "overflow"

    with db.connection() as con:
        assert VolumeAggregator(con).total_of(0) == U128_MAX

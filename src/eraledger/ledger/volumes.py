# src/eraledger/ledger/volumes.py
from __future__ import annotations

import sqlite3
import time

from eraledger.ledger.numeric import checked_add, require_u128


class VolumeAggregator:
    """Total volume contributed by all accounts, keyed by era-start tick.

    Bound to a connection; callers that mutate must hold an open write
    transaction so the new total commits together with the rotation that
    follows it.
    """

    def __init__(self, con: sqlite3.Connection) -> None:
        self._con = con

    def total_of(self, era: int) -> int:
        row = self._con.execute("SELECT total FROM era_volumes WHERE era=?;", (int(era),)).fetchone()
        if row is None:
            return 0
        return int(str(row["total"]))

    def accumulate(self, era: int, delta: int) -> int:
        d = require_u128(delta, field="volume")
        total = checked_add(self.total_of(era), d, what="era_volume")
        self._con.execute(
            """
            INSERT INTO era_volumes(era, total, updated_ts_ms)
            VALUES(?, ?, ?)
            ON CONFLICT(era) DO UPDATE SET
              total=excluded.total,
              updated_ts_ms=excluded.updated_ts_ms;
            """,
            (int(era), str(total), int(time.time() * 1000)),
        )
        return total

# src/eraledger/ledger/rewards.py
"""
Reward ledger: per-account accrual records and the era rotation algorithm.

Rotation is lazy. There is no era-close sweep; an account's pending volume
for a closed era is converted to confirmed reward the next time the account
is touched (a trade or a claim). The conversion only reads the closed era's
total, which no longer changes, so the result does not depend on when the
account is touched.
"""

from __future__ import annotations

import sqlite3
import time
from typing import Tuple

from eraledger.ledger.numeric import Perquintill, checked_add, require_u128
from eraledger.ledger.types import Reward, Rotation
from eraledger.ledger.volumes import VolumeAggregator
from eraledger.runtime.errors import LedgerError


def rotate_reward(
    r: Reward,
    *,
    era_now: int,
    incoming: int,
    era_total: int,
    rewards_per_era: int,
) -> Tuple[Reward, int]:
    """Pure rotation step. Returns (new_record, awarded).

    `era_total` must be the total of era `r.last_modify_era`; it is only
    consulted when that era has closed with pending volume.
    """
    if era_now == r.last_modify_era:
        pending = checked_add(r.pending_vol, incoming, what="pending_vol")
        return r.with_changes(pending_vol=pending), 0

    # Ticks are monotonic; an older era would convert against a total that may still grow.
    if era_now < r.last_modify_era:
        raise LedgerError.invalid_input(
            "era_before_last_update",
            {"era": int(era_now), "last_modify_era": int(r.last_modify_era)},
        )

    if r.pending_vol == 0:
        return r.with_changes(pending_vol=int(incoming), last_modify_era=int(era_now)), 0

    if int(era_total) <= 0:
        raise LedgerError.divide_by_zero(
            "era_total_is_zero",
            {"era": int(r.last_modify_era), "pending_vol": str(r.pending_vol)},
        )

    share = Perquintill.from_rational(r.pending_vol, era_total)
    awarded = share.mul_floor(rewards_per_era)
    confirmed = checked_add(r.confirmed, awarded, what="confirmed")
    return Reward(confirmed=confirmed, pending_vol=int(incoming), last_modify_era=int(era_now)), awarded


class RewardLedger:
    """Owns all Reward records. Bound to one connection, like VolumeAggregator."""

    def __init__(self, con: sqlite3.Connection, *, rewards_per_era: int, volumes: VolumeAggregator) -> None:
        self._con = con
        self._rewards_per_era = int(rewards_per_era)
        self._volumes = volumes

    def exists(self, account: str) -> bool:
        return self._con.execute("SELECT 1 FROM rewards WHERE account=?;", (account,)).fetchone() is not None

    def get(self, account: str) -> Reward:
        row = self._con.execute(
            "SELECT confirmed, pending_vol, last_modify_era FROM rewards WHERE account=?;",
            (account,),
        ).fetchone()
        if row is None:
            return Reward()
        return Reward(
            confirmed=int(str(row["confirmed"])),
            pending_vol=int(str(row["pending_vol"])),
            last_modify_era=int(row["last_modify_era"]),
        )

    def put(self, account: str, r: Reward) -> None:
        self._con.execute(
            """
            INSERT INTO rewards(account, confirmed, pending_vol, last_modify_era, updated_ts_ms)
            VALUES(?, ?, ?, ?, ?)
            ON CONFLICT(account) DO UPDATE SET
              confirmed=excluded.confirmed,
              pending_vol=excluded.pending_vol,
              last_modify_era=excluded.last_modify_era,
              updated_ts_ms=excluded.updated_ts_ms;
            """,
            (account, str(r.confirmed), str(r.pending_vol), int(r.last_modify_era), int(time.time() * 1000)),
        )

    def drop(self, account: str) -> None:
        self._con.execute("DELETE FROM rewards WHERE account=?;", (account,))

    def preview_rotation(self, account: str, era_now: int, incoming: int) -> Rotation:
        """Compute rotate() without persisting anything."""
        vol = require_u128(incoming, field="volume")
        r = self.get(account)
        closing = era_now != r.last_modify_era and r.pending_vol > 0
        era_total = self._volumes.total_of(r.last_modify_era) if closing else 0
        new_r, awarded = rotate_reward(
            r,
            era_now=int(era_now),
            incoming=vol,
            era_total=era_total,
            rewards_per_era=self._rewards_per_era,
        )
        return Rotation(account=account, awarded=awarded, rotated=closing, reward=new_r)

    def rotate(self, account: str, era_now: int, incoming: int) -> Rotation:
        rot = self.preview_rotation(account, era_now, incoming)
        self.put(account, rot.reward)
        return rot

    def take_confirmed(self, account: str) -> int:
        """Zero the confirmed amount and return what it was.

        The record is dropped when nothing remains pending; a later read
        yields the all-zero default.
        """
        if not self.exists(account):
            raise LedgerError.reward_not_found("no_reward_record", {"account": account})
        r = self.get(account)
        if r.pending_vol > 0:
            self.put(account, r.with_changes(confirmed=0))
        else:
            self.drop(account)
        return r.confirmed

# src/eraledger/runtime/service.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from eraledger.ledger.constants import MAX_STORED_TICK
from eraledger.ledger.era import era_start, require_era_duration
from eraledger.ledger.numeric import is_u128, require_u128
from eraledger.ledger.rewards import RewardLedger
from eraledger.ledger.types import Reward
from eraledger.ledger.volumes import VolumeAggregator
from eraledger.runtime.balances import BalanceStore, SqliteBalanceStore
from eraledger.runtime.config import RewardConfig, validate_reward_config
from eraledger.runtime.errors import ConfigError, LedgerError
from eraledger.runtime.events import EventSink, RewardClaimed
from eraledger.runtime.metrics import inc_counter, set_gauge
from eraledger.runtime.sqlite_db import SqliteDB
from eraledger.runtime.structured_logging import log_event

log = logging.getLogger("eraledger.service")

TickSource = Callable[[], int]


def wall_clock_ticks(tick_ms: int) -> TickSource:
    t = int(tick_ms)

    def _now() -> int:
        return int(time.time() * 1000) // t

    return _now


def require_account(account: str) -> str:
    a = account.strip() if isinstance(account, str) else ""
    if not a:
        raise LedgerError.invalid_input("missing_account", {"account": repr(account)})
    return a


class RewardService:
    """Externally callable surface of the reward ledger.

    Every mutation runs under one process lock and inside one SQLite write
    transaction, so volume accumulation for an era is linearized before any
    rotation that reads that era's total, and a failed call leaves no trace.
    """

    def __init__(
        self,
        *,
        db: SqliteDB,
        era_duration: int,
        rewards_per_era: int,
        native_token_id: int = 0,
        balances: Optional[BalanceStore] = None,
        sink: Optional[EventSink] = None,
        clock: Optional[TickSource] = None,
    ) -> None:
        self._era_duration = require_era_duration(era_duration)
        if not is_u128(rewards_per_era):
            raise ConfigError(f"rewards_per_era must be a u128; got: {rewards_per_era!r}")
        self._rewards_per_era = int(rewards_per_era)
        self._native_token_id = int(native_token_id)

        self._db = db
        self._db.init_schema()
        self._balances: BalanceStore = balances if balances is not None else SqliteBalanceStore()
        self._sink = sink
        self._clock = clock or wall_clock_ticks(1_000)

        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        cfg: RewardConfig,
        *,
        balances: Optional[BalanceStore] = None,
        sink: Optional[EventSink] = None,
        clock: Optional[TickSource] = None,
    ) -> "RewardService":
        validate_reward_config(cfg)
        return cls(
            db=SqliteDB(path=cfg.db_path),
            era_duration=cfg.era_duration,
            rewards_per_era=cfg.rewards_per_era,
            native_token_id=cfg.native_token_id,
            balances=balances,
            sink=sink,
            clock=clock or wall_clock_ticks(cfg.tick_ms),
        )

    # ----------------------------
    # Configuration
    # ----------------------------

    @property
    def era_duration(self) -> int:
        return self._era_duration

    @property
    def rewards_per_era(self) -> int:
        return self._rewards_per_era

    @property
    def native_token_id(self) -> int:
        return self._native_token_id

    @property
    def sink(self) -> Optional[EventSink]:
        return self._sink

    def now_tick(self) -> int:
        return int(self._clock())

    def era_of(self, tick: int) -> int:
        era = era_start(tick, self._era_duration)
        if tick > MAX_STORED_TICK:
            raise LedgerError.invalid_input("tick_out_of_range", {"tick": str(tick)})
        return era

    # ----------------------------
    # Mutations
    # ----------------------------

    def record_volume(self, account: str, volume: int, at: int) -> int:
        """Attribute `volume` to `account` in the era containing tick `at`.

        Returns that era. Zero volume is validated like any other report but
        writes nothing.
        """
        acct = require_account(account)
        vol = require_u128(volume, field="volume")
        era = self.era_of(at)
        if vol == 0:
            return era

        with self._lock:
            with self._db.write_tx() as con:
                volumes = VolumeAggregator(con)
                era_total = volumes.accumulate(era, vol)
                ledger = RewardLedger(con, rewards_per_era=self._rewards_per_era, volumes=volumes)
                rot = ledger.rotate(acct, era, vol)

        inc_counter("volume_records_total")
        set_gauge("last_volume_era", era)
        log_event(log, "volume_recorded", account=acct, volume=vol, era=era, era_total=era_total)
        if rot.rotated:
            inc_counter("rotations_total")
            log_event(log, "reward_rotated", account=acct, era=era, awarded=rot.awarded, confirmed=rot.confirmed)
        return era

    def claim(self, account: str, at: Optional[int] = None) -> int:
        """Withdraw the account's confirmed reward into the native token balance.

        Returns the credited amount; 0 means nothing was claimable and nothing
        was written. RewardClaimed is emitted for every successful claim,
        including a zero one.
        """
        acct = require_account(account)
        tick = self.now_tick() if at is None else at
        era = self.era_of(tick)

        with self._lock:
            try:
                with self._db.write_tx() as con:
                    volumes = VolumeAggregator(con)
                    ledger = RewardLedger(con, rewards_per_era=self._rewards_per_era, volumes=volumes)

                    rot = ledger.preview_rotation(acct, era, 0)
                    if rot.confirmed == 0:
                        amount = 0
                    else:
                        ledger.put(acct, rot.reward)
                        amount = ledger.take_confirmed(acct)
                        self._credit(acct, amount, con)
            except LedgerError as e:
                inc_counter("claim_failures_total")
                log_event(log, "claim_rolled_back", level=logging.WARNING, account=acct, era=era, code=e.code)
                raise

        if amount == 0:
            inc_counter("claims_zero_total")
            self._emit(RewardClaimed(account=acct, amount=0))
            return 0

        inc_counter("claims_total")
        if rot.rotated:
            inc_counter("rotations_total")
        log_event(log, "reward_claimed", account=acct, era=era, amount=amount, awarded=rot.awarded)
        self._emit(RewardClaimed(account=acct, amount=amount))
        return amount

    def _credit(self, account: str, amount: int, con) -> None:
        try:
            self._balances.credit(self._native_token_id, account, amount, tx=con)
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerError.credit_failed(
                "balance_store_error",
                {"account": account, "amount": str(amount), "error": f"{type(e).__name__}: {e}"},
            ) from e

    def _emit(self, ev: RewardClaimed) -> None:
        if self._sink is None:
            return
        try:
            self._sink(ev)
        except Exception:
            # The claim has committed; a broken notification sink must not report it as failed.
            log.exception("event sink failed for %s", ev)

    # ----------------------------
    # Reads
    # ----------------------------

    def total_volume_of_era(self, at: int) -> int:
        era = self.era_of(at)
        with self._db.connection() as con:
            return VolumeAggregator(con).total_of(era)

    def confirmed_balance_of(self, account: str) -> int:
        """Stored confirmed amount; closed-era volume is not converted by this read."""
        return self.reward_of(account).confirmed

    def reward_of(self, account: str) -> Reward:
        acct = require_account(account)
        with self._db.connection() as con:
            ledger = RewardLedger(con, rewards_per_era=self._rewards_per_era, volumes=VolumeAggregator(con))
            return ledger.get(acct)

    def balance_of(self, account: str, token_id: Optional[int] = None) -> int:
        acct = require_account(account)
        tid = self._native_token_id if token_id is None else int(token_id)
        with self._db.connection() as con:
            return self._balances.balance_of(tid, acct, tx=con)

# src/eraledger/ledger/era.py
from __future__ import annotations

from typing import Any

from eraledger.runtime.errors import ConfigError, LedgerError


def require_era_duration(era_duration: Any) -> int:
    if not isinstance(era_duration, int) or isinstance(era_duration, bool):
        raise ConfigError(f"era_duration must be an int; got: {era_duration!r}")
    if era_duration <= 0:
        raise ConfigError(f"era_duration must be > 0; got: {era_duration}")
    return int(era_duration)


def era_start(tick: int, era_duration: int) -> int:
    """Start tick of the era window containing `tick`."""
    if not isinstance(tick, int) or isinstance(tick, bool) or tick < 0:
        raise LedgerError.invalid_input("bad_tick", {"tick": repr(tick)})
    d = int(era_duration)
    return int(tick) - (int(tick) % d)

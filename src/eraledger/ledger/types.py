# src/eraledger/ledger/types.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class Reward:
    """Per-account accrual record.

    confirmed:        finalized reward, withdrawable by a claim
    pending_vol:      volume attributed to era `last_modify_era`, not yet converted
    last_modify_era:  era-start tick the record was last updated for
    """

    confirmed: int = 0
    pending_vol: int = 0
    last_modify_era: int = 0

    def with_changes(self, **kw: Any) -> "Reward":
        return replace(self, **kw)

    def to_json(self) -> Json:
        # u128 values are rendered as strings so JSON clients never lose precision.
        return {
            "confirmed": str(self.confirmed),
            "pending_vol": str(self.pending_vol),
            "last_modify_era": int(self.last_modify_era),
        }


@dataclass(frozen=True, slots=True)
class Rotation:
    """Outcome of one rotate() call."""

    account: str
    awarded: int
    rotated: bool
    reward: Reward

    @property
    def confirmed(self) -> int:
        return self.reward.confirmed

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

OVERFLOW = "overflow"
DIVIDE_BY_ZERO = "divide_by_zero"
REWARD_NOT_FOUND = "reward_not_found"
CREDIT_FAILED = "credit_failed"
INVALID_INPUT = "invalid_input"


@dataclass
class LedgerError(Exception):
    """Canonical error type for reward ledger and aggregator failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    @staticmethod
    def overflow(reason: str, details: Any | None = None) -> "LedgerError":
        return LedgerError(OVERFLOW, reason, details)

    @staticmethod
    def divide_by_zero(reason: str, details: Any | None = None) -> "LedgerError":
        return LedgerError(DIVIDE_BY_ZERO, reason, details)

    @staticmethod
    def reward_not_found(reason: str, details: Any | None = None) -> "LedgerError":
        return LedgerError(REWARD_NOT_FOUND, reason, details)

    @staticmethod
    def credit_failed(reason: str, details: Any | None = None) -> "LedgerError":
        return LedgerError(CREDIT_FAILED, reason, details)

    @staticmethod
    def invalid_input(reason: str, details: Any | None = None) -> "LedgerError":
        return LedgerError(INVALID_INPUT, reason, details)


class ConfigError(ValueError):
    """Raised for operator configuration that must not be accepted."""

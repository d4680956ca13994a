# src/eraledger/ledger/numeric.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eraledger.ledger.constants import QUINTILLION, U128_MAX
from eraledger.runtime.errors import LedgerError


def is_u128(x: Any) -> bool:
    if not isinstance(x, int) or isinstance(x, bool):
        return False
    return 0 <= x <= U128_MAX


def require_u128(x: Any, *, field: str) -> int:
    """Return x as an int, or raise invalid_input if it is not an unsigned 128-bit value."""
    if not is_u128(x):
        raise LedgerError.invalid_input("not_u128", {"field": field, "value": repr(x)})
    return int(x)


def checked_add(a: int, b: int, *, what: str = "value") -> int:
    """u128 addition that raises overflow instead of wrapping."""
    out = int(a) + int(b)
    if out > U128_MAX:
        raise LedgerError.overflow(f"{what}_overflow", {"a": str(a), "b": str(b)})
    return out


@dataclass(frozen=True, slots=True)
class Perquintill:
    """A ratio in [0, 1] held as an integer number of 1e-18 parts.

    All arithmetic is integer-only and rounds down, so a product never
    exceeds the exact rational result.
    """

    parts: int

    def __post_init__(self) -> None:
        if not isinstance(self.parts, int) or isinstance(self.parts, bool):
            raise TypeError("parts must be an int")
        if self.parts < 0 or self.parts > QUINTILLION:
            raise ValueError(f"parts must be in 0..{QUINTILLION}; got: {self.parts}")

    @classmethod
    def zero(cls) -> "Perquintill":
        return cls(0)

    @classmethod
    def one(cls) -> "Perquintill":
        return cls(QUINTILLION)

    @classmethod
    def from_rational(cls, numerator: int, denominator: int) -> "Perquintill":
        """floor(numerator / denominator * 1e18), saturating at one.

        The caller is responsible for rejecting a zero denominator with a
        domain-specific error; here it is a programming error.
        """
        n = int(numerator)
        d = int(denominator)
        if d <= 0:
            raise ZeroDivisionError("denominator must be positive")
        if n <= 0:
            return cls.zero()
        if n >= d:
            return cls.one()
        return cls((n * QUINTILLION) // d)

    def mul_floor(self, amount: int) -> int:
        """floor(self * amount); the intermediate product is unbounded."""
        return (int(self.parts) * int(amount)) // QUINTILLION

# src/eraledger/ledger/constants.py
"""Numeric domain and default economic parameters.

- Balance and Volume are unsigned 128-bit quantities.
- Proportional shares are fixed-point with 18 decimal places (a quintillion parts).
"""

from __future__ import annotations

U128_BITS: int = 128
U128_MAX: int = (1 << U128_BITS) - 1

# Fixed-point ratio scale: 1.0 == 10**18 parts
QUINTILLION: int = 10**18

# Token decimals used by the defaults below (1 unit = 1e-18 token)
TOKEN_DECIMALS: int = 18
TOKEN: int = 10**TOKEN_DECIMALS

# Default era: 100 ticks
DEFAULT_ERA_DURATION: int = 100

# Default budget: 1,000,000 tokens per era
DEFAULT_REWARDS_PER_ERA: int = 1_000_000 * TOKEN

# Asset id credited on claim
NATIVE_TOKEN_ID: int = 0

# Era keys are stored as SQLite INTEGER (signed 64-bit).
MAX_STORED_TICK: int = (1 << 63) - 1

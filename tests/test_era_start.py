from __future__ import annotations

import pytest

from eraledger.ledger.era import era_start, require_era_duration
from eraledger.runtime.errors import ConfigError, LedgerError


@pytest.mark.parametrize(
    "tick,expected",
    [(0, 0), (1, 0), (99, 0), (100, 100), (101, 100), (199, 100), (12_345, 12_300)],
)
def test_era_start_quantizes_to_window_start(tick: int, expected: int) -> None:
    assert era_start(tick, 100) == expected


def test_era_start_of_an_era_start_is_itself() -> None:
    for t in (0, 7, 70, 700, 7_000):
        e = era_start(t, 7)
        assert era_start(e, 7) == e


def test_era_start_handles_ticks_beyond_64_bits() -> None:
    t = 2**70 + 5
    assert era_start(t, 10) == t - (t % 10)


def test_negative_tick_is_invalid_input() -> None:
    with pytest.raises(LedgerError) as ei:
        era_start(-1, 100)
    assert ei.value.code == "invalid_input"


@pytest.mark.parametrize("bad", [0, -5, True, "100", None])
def test_zero_or_bad_era_duration_is_a_config_error(bad) -> None:
    with pytest.raises(ConfigError):
        require_era_duration(bad)

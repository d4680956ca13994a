from __future__ import annotations

import pytest

from eraledger.ledger.constants import U128_MAX
from eraledger.ledger.types import Reward
from eraledger.runtime.errors import ConfigError, LedgerError
from eraledger.runtime.service import RewardService
from eraledger.runtime.sqlite_db import SqliteDB


def test_proportional_rewards_for_two_traders(service: RewardService) -> None:
    service.record_volume("@a", 30, 10)
    service.record_volume("@b", 70, 50)
    assert service.total_volume_of_era(0) == 100
    assert service.total_volume_of_era(99) == 100

    # Touching A in the next era converts its era-0 volume.
    service.record_volume("@a", 1, 100)
    assert service.confirmed_balance_of("@a") == 300_000
    assert service.reward_of("@a") == Reward(confirmed=300_000, pending_vol=1, last_modify_era=100)

    # B has not been touched yet; its record is stale but intact.
    assert service.confirmed_balance_of("@b") == 0
    assert service.reward_of("@b") == Reward(confirmed=0, pending_vol=70, last_modify_era=0)

    service.record_volume("@b", 1, 150)
    assert service.confirmed_balance_of("@b") == 700_000


def test_many_reports_in_one_era_only_accumulate(service: RewardService) -> None:
    for t in range(0, 100, 10):
        service.record_volume("@a", 3, t)
    assert service.reward_of("@a") == Reward(confirmed=0, pending_vol=30, last_modify_era=0)
    assert service.total_volume_of_era(0) == 30


def test_zero_volume_is_a_no_op(service: RewardService) -> None:
    service.record_volume("@a", 0, 250)
    assert service.total_volume_of_era(250) == 0
    assert service.reward_of("@a") == Reward()


def test_stale_account_crossing_boundary_gets_nothing(service: RewardService) -> None:
    service.record_volume("@b", 50, 10)
    # @a's default record sits at era 0 with nothing pending.
    service.record_volume("@a", 20, 310)
    assert service.reward_of("@a") == Reward(confirmed=0, pending_vol=20, last_modify_era=300)


def test_rotation_after_skipped_eras_uses_frozen_total(service: RewardService) -> None:
    service.record_volume("@a", 25, 1)
    service.record_volume("@b", 75, 2)
    # Later eras see unrelated activity.
    service.record_volume("@c", 1_000, 200)
    service.record_volume("@c", 1_000, 400)

    service.record_volume("@a", 10, 990)
    assert service.confirmed_balance_of("@a") == 250_000
    assert service.reward_of("@a").last_modify_era == 900


def test_overflow_leaves_pending_and_era_total_unchanged(service: RewardService) -> None:
    service.record_volume("@a", U128_MAX - 5, 10)

    with pytest.raises(LedgerError) as ei:
        service.record_volume("@a", 6, 20)
    assert ei.value.code == "overflow"

    assert service.reward_of("@a").pending_vol == U128_MAX - 5
    assert service.total_volume_of_era(0) == U128_MAX - 5


def test_failed_rotation_rolls_back_the_era_total(service: RewardService, db: SqliteDB) -> None:
    service.record_volume("@a", 10, 150)
    # A tick in an earlier era than @a's last update is refused after the total was bumped.
    with pytest.raises(LedgerError) as ei:
        service.record_volume("@a", 10, 50)
    assert ei.value.code == "invalid_input"
    assert service.total_volume_of_era(50) == 0


@pytest.mark.parametrize("volume", [-1, U128_MAX + 1, 1.5, "10"])
def test_invalid_volume_is_rejected(service: RewardService, volume) -> None:
    with pytest.raises(LedgerError) as ei:
        service.record_volume("@a", volume, 10)
    assert ei.value.code == "invalid_input"


def test_blank_account_is_rejected(service: RewardService) -> None:
    with pytest.raises(LedgerError):
        service.record_volume("  ", 10, 10)


def test_service_rejects_bad_economics(db: SqliteDB) -> None:
    with pytest.raises(ConfigError):
        RewardService(db=db, era_duration=0, rewards_per_era=1)
    with pytest.raises(ConfigError):
        RewardService(db=db, era_duration=10, rewards_per_era=-1)
    with pytest.raises(ConfigError):
        RewardService(db=db, era_duration=10, rewards_per_era=U128_MAX + 1)


def test_state_survives_a_new_service_on_the_same_db(make_service) -> None:
    s1 = make_service()
    s1.record_volume("@a", 40, 5)
    s2 = make_service()
    assert s2.reward_of("@a") == Reward(confirmed=0, pending_vol=40, last_modify_era=0)
    assert s2.total_volume_of_era(5) == 40


def test_tick_beyond_storage_range_is_rejected(service: RewardService) -> None:
    with pytest.raises(LedgerError) as ei:
        service.record_volume("@a", 1, 2**63)
    assert ei.value.reason == "tick_out_of_range"
    assert service.reward_of("@a") == Reward()


def test_zero_volume_returns_era_and_validates_tick(service: RewardService) -> None:
    assert service.record_volume("@a", 0, 275) == 200
    with pytest.raises(LedgerError) as ei:
        service.record_volume("@a", 0, 2**63)
    assert ei.value.reason == "tick_out_of_range"

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from eraledger import env as eraledger_env
from eraledger.ledger.constants import DEFAULT_REWARDS_PER_ERA, U128_MAX
from eraledger.runtime.config import (
    _ENV_KEYS,
    default_reward_config,
    load_reward_config,
    read_reward_config_file,
    reward_config_from_env,
    with_overrides,
)
from eraledger.runtime.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(_ENV_KEYS.values()) + ["ERALEDGER_CONFIG_PATH"]:
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_valid_and_fail_closed() -> None:
    cfg = reward_config_from_env()
    assert cfg == default_reward_config()
    assert cfg.era_duration == 100
    assert cfg.rewards_per_era == DEFAULT_REWARDS_PER_ERA
    assert cfg.native_token_id == 0
    assert cfg.mode == "prod"


def test_env_overlay(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ERALEDGER_ERA_DURATION", "600")
    monkeypatch.setenv("ERALEDGER_REWARDS_PER_ERA", "1_000_000")
    monkeypatch.setenv("ERALEDGER_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("ERALEDGER_MODE", "DEV")
    monkeypatch.setenv("ERALEDGER_API_PORT", "   ")  # blank is ignored

    cfg = load_reward_config()
    assert cfg.era_duration == 600
    assert cfg.rewards_per_era == 1_000_000
    assert cfg.db_path == str(tmp_path / "x.db")
    assert cfg.mode == "dev"
    assert cfg.api_port == 8080


@pytest.mark.parametrize(
    "name,value",
    [
        ("ERALEDGER_ERA_DURATION", "0"),
        ("ERALEDGER_ERA_DURATION", "-5"),
        ("ERALEDGER_ERA_DURATION", "ten"),
        ("ERALEDGER_REWARDS_PER_ERA", str(U128_MAX + 1)),
        ("ERALEDGER_MODE", "staging"),
        ("ERALEDGER_API_PORT", "70000"),
        ("ERALEDGER_TICK_MS", "0"),
    ],
)
def test_invalid_values_refuse_to_load(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        reward_config_from_env()


def test_json_config_file(tmp_path: Path) -> None:
    p = tmp_path / "rewards.json"
    p.write_text(json.dumps({"era_duration": 50, "rewards_per_era": str(U128_MAX), "mode": "testnet"}), encoding="utf-8")

    cfg = read_reward_config_file(str(p))
    assert cfg.era_duration == 50
    assert cfg.rewards_per_era == U128_MAX
    assert cfg.mode == "testnet"
    # Unset fields keep their defaults.
    assert cfg.api_host == "127.0.0.1"


def test_yaml_config_file_via_env_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = tmp_path / "rewards.yaml"
    p.write_text("era_duration: 3600\nrewards_per_era: 5000\nnative_token_id: 2\nlog_level: debug\n", encoding="utf-8")
    monkeypatch.setenv("ERALEDGER_CONFIG_PATH", str(p))
    # A config file takes precedence over individual variables.
    monkeypatch.setenv("ERALEDGER_ERA_DURATION", "7")

    cfg = load_reward_config()
    assert cfg.era_duration == 3600
    assert cfg.rewards_per_era == 5000
    assert cfg.native_token_id == 2
    assert cfg.log_level == "DEBUG"


def test_config_file_must_be_a_mapping(tmp_path: Path) -> None:
    p = tmp_path / "rewards.yml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        read_reward_config_file(str(p))


def test_bool_is_not_an_integer(tmp_path: Path) -> None:
    p = tmp_path / "rewards.json"
    p.write_text(json.dumps({"era_duration": True}), encoding="utf-8")
    with pytest.raises(ConfigError):
        read_reward_config_file(str(p))


def test_with_overrides_revalidates() -> None:
    cfg = with_overrides(default_reward_config(), era_duration=10)
    assert cfg.era_duration == 10
    with pytest.raises(ConfigError):
        with_overrides(cfg, rewards_per_era=-1)


def test_dotenv_values_do_not_override_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("ERALEDGER_ERA_DURATION=250\nERALEDGER_MODE=dev\n", encoding="utf-8")

    monkeypatch.setattr(eraledger_env, "_LOADED", False)
    # setenv first so monkeypatch restores the variable's absence afterwards.
    monkeypatch.setenv("ERALEDGER_ERA_DURATION", "x")
    monkeypatch.delenv("ERALEDGER_ERA_DURATION")
    monkeypatch.setenv("ERALEDGER_MODE", "testnet")

    assert eraledger_env.load_dotenv_if_present(str(p)) is True
    assert os.environ["ERALEDGER_ERA_DURATION"] == "250"
    assert os.environ["ERALEDGER_MODE"] == "testnet"

    # Second call is a no-op.
    assert eraledger_env.load_dotenv_if_present(str(p)) is False

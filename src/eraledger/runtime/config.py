# src/eraledger/runtime/config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from eraledger.ledger.constants import (
    DEFAULT_ERA_DURATION,
    DEFAULT_REWARDS_PER_ERA,
    NATIVE_TOKEN_ID,
    U128_MAX,
)
from eraledger.runtime.errors import ConfigError

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return int(default)
    if isinstance(v, bool):
        raise ConfigError(f"expected an integer, got a bool: {v!r}")
    try:
        # Accept "1_000_000" and big decimal strings for u128 amounts.
        return int(str(v).strip().replace("_", ""))
    except ValueError as e:
        raise ConfigError(f"expected an integer: {v!r}") from e


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class RewardConfig:
    # Economics; immutable once a ledger has been written with them.
    era_duration: int
    rewards_per_era: int
    native_token_id: int

    # Length of one tick in milliseconds for the wall-clock tick source.
    tick_ms: int

    db_path: str
    mode: str  # "dev" | "testnet" | "prod"

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_reward_config(cfg: RewardConfig) -> None:
    """Fail-fast validation. A zero era duration or an out-of-range budget never boots."""
    if int(cfg.era_duration) <= 0:
        raise ConfigError(f"era_duration must be > 0; got: {cfg.era_duration}")

    if int(cfg.rewards_per_era) < 0 or int(cfg.rewards_per_era) > U128_MAX:
        raise ConfigError(f"rewards_per_era must be within 0..2**128-1; got: {cfg.rewards_per_era}")

    if int(cfg.native_token_id) < 0:
        raise ConfigError(f"native_token_id must be >= 0; got: {cfg.native_token_id}")

    if int(cfg.tick_ms) <= 0:
        raise ConfigError(f"tick_ms must be > 0; got: {cfg.tick_ms}")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ConfigError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ConfigError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ConfigError("db_path must be a non-empty string")


def default_reward_config() -> RewardConfig:
    return RewardConfig(
        era_duration=DEFAULT_ERA_DURATION,
        rewards_per_era=DEFAULT_REWARDS_PER_ERA,
        native_token_id=NATIVE_TOKEN_ID,
        tick_ms=1_000,
        db_path="./data/eraledger.db",
        # Never fall into a permissive posture without an explicit config.
        mode="prod",
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _overlay(base: RewardConfig, raw: Json) -> RewardConfig:
    return RewardConfig(
        era_duration=_as_int(raw.get("era_duration"), base.era_duration),
        rewards_per_era=_as_int(raw.get("rewards_per_era"), base.rewards_per_era),
        native_token_id=_as_int(raw.get("native_token_id"), base.native_token_id),
        tick_ms=_as_int(raw.get("tick_ms"), base.tick_ms),
        db_path=_as_str(raw.get("db_path"), base.db_path),
        mode=_as_str(raw.get("mode"), base.mode).strip().lower(),
        api_host=_as_str(raw.get("api_host"), base.api_host),
        api_port=_as_int(raw.get("api_port"), base.api_port),
        log_level=_as_str(raw.get("log_level"), base.log_level).strip().upper(),
    )


def read_reward_config_file(path: str) -> RewardConfig:
    """Load a JSON or YAML (.yaml/.yml) config file over the defaults."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ConfigError("reward config must be a mapping")

    cfg = _overlay(default_reward_config(), raw)
    validate_reward_config(cfg)
    return cfg


_ENV_KEYS = {
    "era_duration": "ERALEDGER_ERA_DURATION",
    "rewards_per_era": "ERALEDGER_REWARDS_PER_ERA",
    "native_token_id": "ERALEDGER_NATIVE_TOKEN_ID",
    "tick_ms": "ERALEDGER_TICK_MS",
    "db_path": "ERALEDGER_DB_PATH",
    "mode": "ERALEDGER_MODE",
    "api_host": "ERALEDGER_API_HOST",
    "api_port": "ERALEDGER_API_PORT",
    "log_level": "ERALEDGER_LOG_LEVEL",
}


def reward_config_from_env(base: Optional[RewardConfig] = None) -> RewardConfig:
    raw: Json = {}
    for field, env_name in _ENV_KEYS.items():
        v = os.environ.get(env_name)
        if v is not None and v.strip():
            raw[field] = v
    cfg = _overlay(base or default_reward_config(), raw)
    validate_reward_config(cfg)
    return cfg


def load_reward_config(*, config_path: Optional[str] = None) -> RewardConfig:
    p = config_path or os.environ.get("ERALEDGER_CONFIG_PATH")
    if p:
        return read_reward_config_file(p)
    return reward_config_from_env()


def with_overrides(cfg: RewardConfig, **kw: Any) -> RewardConfig:
    out = replace(cfg, **kw)
    validate_reward_config(out)
    return out


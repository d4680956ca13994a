# src/eraledger/runtime/service_boot.py
from __future__ import annotations

from typing import Optional

from eraledger.runtime.config import RewardConfig, load_reward_config
from eraledger.runtime.events import RecentEvents
from eraledger.runtime.service import RewardService


def build_service(cfg: Optional[RewardConfig] = None) -> RewardService:
    """
    Build a RewardService from an explicit config or, if omitted, from
    ERALEDGER_CONFIG_PATH / ERALEDGER_* environment variables.

    Claim events go to a bounded in-memory tail readable through `service.sink`.
    """
    c = cfg or load_reward_config()
    return RewardService.from_config(c, sink=RecentEvents())

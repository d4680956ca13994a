from __future__ import annotations

from typing import Optional

from fastapi import Request

from eraledger.api.errors import ApiError
from eraledger.runtime.service import RewardService


def _service(request: Request) -> RewardService:
    svc = getattr(request.app.state, "service", None)
    if svc is None:
        raise ApiError.internal("not_ready", "reward service not attached to app.state", {})
    return svc


def _tick_or_now(svc: RewardService, at: Optional[int]) -> int:
    return svc.now_tick() if at is None else int(at)


def _int_path(v: str, *, name: str) -> int:
    """Parse a non-negative integer path segment, including values past 2**63."""
    s = str(v or "").strip()
    if not s.isdigit():
        raise ApiError.bad_request("invalid_input", f"{name} must be a non-negative integer", {name: v})
    return int(s)

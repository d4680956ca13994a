from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    svc = getattr(request.app.state, "service", None)
    return {"ok": True, "service_ready": svc is not None}


@router.get("/config")
def config(request: Request) -> Dict[str, Any]:
    """Economic parameters of the running ledger (immutable after boot)."""
    svc = getattr(request.app.state, "service", None)
    if svc is None:
        return {"ok": False, "service_ready": False}
    return {
        "ok": True,
        "era_duration": svc.era_duration,
        "rewards_per_era": str(svc.rewards_per_era),
        "native_token_id": svc.native_token_id,
    }

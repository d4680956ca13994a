from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from eraledger.api.routes_public_parts.common import _int_path, _service

router = APIRouter()


@router.get("/eras/{at}/volume")
def era_volume(at: str, request: Request) -> Dict[str, Any]:
    svc = _service(request)
    tick = _int_path(at, name="at")
    return {
        "ok": True,
        "at": tick,
        "era": svc.era_of(tick),
        "era_duration": svc.era_duration,
        "total_volume": str(svc.total_volume_of_era(tick)),
    }


@router.get("/eras/current")
def era_current(request: Request) -> Dict[str, Any]:
    svc = _service(request)
    tick = svc.now_tick()
    return {"ok": True, "at": tick, "era": svc.era_of(tick), "era_duration": svc.era_duration}

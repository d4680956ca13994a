from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from eraledger.api.routes_public_parts.common import _service, _tick_or_now
from eraledger.api.schemas import ClaimRequest, VolumeReportRequest
from eraledger.runtime.events import RecentEvents
from eraledger.runtime.service import require_account

router = APIRouter()

Json = Dict[str, Any]


@router.post("/rewards/volume")
def rewards_record_volume(body: VolumeReportRequest, request: Request) -> Json:
    """Attribute trading volume to an account.

    Returns the era the volume was booked into. Zero volume is validated but
    changes nothing.
    """
    svc = _service(request)
    era = svc.record_volume(body.account, body.volume, body.at)
    return {"ok": True, "account": require_account(body.account), "era": era, "volume": str(body.volume)}


@router.post("/rewards/claim")
def rewards_claim(body: ClaimRequest, request: Request) -> Json:
    svc = _service(request)
    at = _tick_or_now(svc, body.at)
    amount = svc.claim(body.account, at)
    return {"ok": True, "account": require_account(body.account), "at": at, "amount": str(amount)}


@router.get("/rewards/events")
def rewards_events(request: Request, limit: int = 50) -> Json:
    svc = _service(request)
    sink = svc.sink
    events = sink.tail(min(max(limit, 0), 1000)) if isinstance(sink, RecentEvents) else []
    return {"ok": True, "events": [e.to_json() for e in events]}


@router.get("/rewards/{account}")
def rewards_get(account: str, request: Request) -> Json:
    """Stored record snapshot. Closed-era volume stays pending until the account is touched."""
    svc = _service(request)
    r = svc.reward_of(account)
    return {"ok": True, "account": account, "reward": r.to_json()}


@router.get("/balances/{account}")
def balances_get(account: str, request: Request) -> Json:
    svc = _service(request)
    return {
        "ok": True,
        "account": account,
        "token_id": svc.native_token_id,
        "balance": str(svc.balance_of(account)),
    }

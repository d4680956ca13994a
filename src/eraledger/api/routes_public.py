from __future__ import annotations

from fastapi import APIRouter

from eraledger.api.routes_public_parts.eras import router as eras_router
from eraledger.api.routes_public_parts.health import router as health_router
from eraledger.api.routes_public_parts.metrics import router as metrics_router
from eraledger.api.routes_public_parts.rewards import router as rewards_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(rewards_router, prefix="/v1", tags=["rewards"])
public_router.include_router(eras_router, prefix="/v1", tags=["eras"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])

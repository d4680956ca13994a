from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from eraledger.api.errors import ApiError
from eraledger.api.routes_public import public_router
from eraledger.api.security import RequestSizeLimitMiddleware
from eraledger.api.structured_logging import RequestLogMiddleware
from eraledger.runtime.config import load_reward_config
from eraledger.runtime.errors import LedgerError
from eraledger.runtime.service_boot import build_service as _build_service
from eraledger.runtime.single_writer import SingleWriterLock
from eraledger.runtime.structured_logging import log_event

log = logging.getLogger("eraledger.api")


def build_service():
    """Build the RewardService for API runtime.

    This wrapper exists so tests can monkeypatch `eraledger.api.app.build_service`
    without reaching into runtime modules.
    """
    return _build_service()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load config, take the single-writer lock on the
        database and attach app.state.service
      - False: keep lightweight for unit tests; callers may attach a service
    """
    mode = os.environ.get("ERALEDGER_MODE", "prod").strip().lower()

    writer_lock = None
    if boot_runtime:
        cfg = load_reward_config()
        writer_lock = SingleWriterLock.for_db(cfg.db_path)
        writer_lock.acquire()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        svc = app.state.service
        if svc is not None:
            log_event(log, "api_started", era_duration=svc.era_duration, rewards_per_era=svc.rewards_per_era)
        yield
        if writer_lock is not None:
            writer_lock.release()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(
            title="Era Reward Ledger API",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=_lifespan,
        )
    else:
        app = FastAPI(title="Era Reward Ledger API", lifespan=_lifespan)

    try:
        app.state.service = build_service() if boot_runtime else None
    except Exception:
        if writer_lock is not None:
            writer_lock.release()
        raise

    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    @app.exception_handler(LedgerError)
    async def _ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        err = ApiError.from_ledger_error(exc)
        return JSONResponse(status_code=err.status_code, content=err.to_json())

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)
    # Size limiter is added last so it runs first.
    app.add_middleware(RequestSizeLimitMiddleware)

    # --- Routers ---
    app.include_router(public_router)

    return app

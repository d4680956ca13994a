"""Pydantic request schemas for the public API.

Amounts are unsigned 128-bit integers; JSON numbers and decimal strings are
both accepted.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from eraledger.ledger.constants import U128_MAX


class VolumeReportRequest(BaseModel):
    account: str = Field(..., min_length=1, description="Account id, e.g. @alice")
    volume: int = Field(..., ge=0, le=U128_MAX, description="Traded volume to attribute")
    at: int = Field(..., ge=0, description="Time tick of the trade")

    model_config = {"extra": "forbid"}


class ClaimRequest(BaseModel):
    account: str = Field(..., min_length=1, description="Account id, e.g. @alice")
    at: Optional[int] = Field(default=None, ge=0, description="Time tick; defaults to the node clock")

    model_config = {"extra": "forbid"}

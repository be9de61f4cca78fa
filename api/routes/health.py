from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.deps import get_application
from stickychain import __version__
from stickychain.app import Application

router = APIRouter()


class HealthResponse(BaseModel):
    version: str
    uptime_seconds: float
    chain_records: int
    chain_valid: bool


@router.get("/health", response_model=HealthResponse)
def health(request: Request, application: Application = Depends(get_application)) -> HealthResponse:
    started_at = float(getattr(request.app.state, "started_at", time.monotonic()))
    with application.lock:
        records, valid = len(application.chain), application.chain.validate().valid

    return HealthResponse(
        version=__version__,
        uptime_seconds=time.monotonic() - started_at,
        chain_records=records,
        chain_valid=valid,
    )

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query

from api.auth import AuthDep
from api.deps import get_application
from api.errors import ApiError
from api.schemas.common import RecordResponse
from stickychain.app import Application
from stickychain.core.projections import state_at, subject_state_at

router = APIRouter(prefix="/chain", dependencies=[AuthDep])


@router.get("/validate")
def validate_chain(application: Application = Depends(get_application)) -> dict[str, Any]:
    with application.lock:
        return application.chain.validate().to_dict()


@router.get("/stats")
def chain_stats(application: Application = Depends(get_application)) -> dict[str, Any]:
    with application.lock:
        return application.chain.stats().to_dict()


@router.get("/records", response_model=list[RecordResponse])
def list_records(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    application: Application = Depends(get_application),
) -> list[RecordResponse]:
    with application.lock:
        records = application.chain.records()[offset : offset + limit]
    return [RecordResponse(**r.to_dict()) for r in records]


@router.get("/history/{subject_id}", response_model=list[RecordResponse])
def subject_history(subject_id: str, application: Application = Depends(get_application)) -> list[RecordResponse]:
    with application.lock:
        history = application.chain.history(subject_id)
    return [RecordResponse(**r.to_dict()) for r in history]


@router.get("/replay")
def replay(
    subject_id: str | None = Query(default=None),
    up_to: datetime | None = Query(default=None),
    application: Application = Depends(get_application),
) -> dict[str, Any]:
    """Point-in-time state folded from the journal alone."""

    if up_to is not None and up_to.tzinfo is None:
        raise ApiError("validation", "up_to must carry a timezone offset", 400)

    with application.lock:
        if subject_id is None:
            return {"up_to": up_to, "state": state_at(application.chain, up_to)}
        state = subject_state_at(application.chain, subject_id, up_to)

    if state is None:
        raise ApiError("not_found", f"{subject_id} has no state at that time", 404, id=subject_id)
    return {"subject_id": subject_id, "up_to": up_to, "state": state}

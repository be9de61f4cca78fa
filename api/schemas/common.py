from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ErrorBody(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorBody


class ActorRequest(BaseModel):
    """Who is asking. Identity is asserted, not authenticated."""

    actor_id: str


class RecordResponse(BaseModel):
    sequence_number: int
    timestamp: str
    action: str
    subject_kind: str
    subject_id: str
    payload: dict[str, Any]
    author_id: str
    previous_hash: str
    hash: str

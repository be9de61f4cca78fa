"""stickychain.core.actions

The action contract is the primitive.

The chain itself is schema-agnostic: it will record any JSON-shaped payload.
The shapes below are what the dispatcher promises to write for each action,
and what projections rely on when folding history back into state.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ActionType(StrEnum):
    """Canonical action registry. No scattered strings."""

    # Kanban
    CREATE_BOARD = "CREATE_BOARD"
    CREATE_CARD = "CREATE_CARD"
    UPDATE_CARD = "UPDATE_CARD"
    MOVE_CARD = "MOVE_CARD"
    DELETE_CARD = "DELETE_CARD"
    ASSIGN_CARD = "ASSIGN_CARD"

    # Marketplace
    CREATE_PROJECT = "CREATE_PROJECT"
    PUBLISH_PROJECT = "PUBLISH_PROJECT"
    SUBMIT_PROPOSAL = "SUBMIT_PROPOSAL"
    ACCEPT_PROPOSAL = "ACCEPT_PROPOSAL"
    START_PROJECT = "START_PROJECT"
    SUBMIT_MILESTONE = "SUBMIT_MILESTONE"
    APPROVE_MILESTONE = "APPROVE_MILESTONE"
    REJECT_MILESTONE = "REJECT_MILESTONE"
    CANCEL_PROJECT = "CANCEL_PROJECT"


class SubjectKind(StrEnum):
    BOARD = "Board"
    CARD = "Card"
    PROJECT = "Project"
    PROPOSAL = "Proposal"
    MILESTONE = "Milestone"


# -----------------
# Typed payloads
# -----------------


class GenesisPayload(BaseModel):
    message: str


class CreateBoardPayload(BaseModel):
    name: str
    owner_id: str
    template: str
    column_ids: list[str]


class CreateCardPayload(BaseModel):
    """Payload for :pydata:`ActionType.CREATE_CARD`. Carries the full card."""

    card_id: str
    board_id: str
    column_id: str
    title: str
    description: str = ""
    priority: Literal["high", "medium", "low"] = "medium"
    parent_id: str | None = None
    position: int
    tags: list[str] = Field(default_factory=list)


class UpdateCardPayload(BaseModel):
    card_id: str
    updates: dict[str, Any]


class MoveCardPayload(BaseModel):
    card_id: str
    from_column_id: str
    to_column_id: str
    position: int


class DeleteCardPayload(BaseModel):
    card_id: str
    board_id: str
    column_id: str


class AssignCardPayload(BaseModel):
    card_id: str
    assignee_id: str | None


class CreateProjectPayload(BaseModel):
    project_id: str
    client_id: str
    title: str
    budget: float
    skills: list[str] = Field(default_factory=list)
    status: str


class ProjectStatusPayload(BaseModel):
    """Shared shape for publish/start/cancel: the status the project moved to."""

    project_id: str
    previous_status: str
    status: str
    reason: str | None = None
    started_milestone_id: str | None = None


class SubmitProposalPayload(BaseModel):
    proposal_id: str
    project_id: str
    freelancer_id: str
    amount: float
    project_status: str


class AcceptProposalPayload(BaseModel):
    proposal_id: str
    project_id: str
    freelancer_id: str
    amount: float
    rejected_proposal_ids: list[str] = Field(default_factory=list)
    milestone_ids: list[str] = Field(default_factory=list)
    project_status: str


class MilestonePayload(BaseModel):
    """Shared shape for submit/approve/reject."""

    milestone_id: str
    project_id: str
    title: str
    previous_status: str
    status: str
    feedback: str | None = None
    next_milestone_id: str | None = None
    project_status: str | None = None


_ACTION_PAYLOAD_MODELS: dict[ActionType, type[BaseModel]] = {
    ActionType.CREATE_BOARD: CreateBoardPayload,
    ActionType.CREATE_CARD: CreateCardPayload,
    ActionType.UPDATE_CARD: UpdateCardPayload,
    ActionType.MOVE_CARD: MoveCardPayload,
    ActionType.DELETE_CARD: DeleteCardPayload,
    ActionType.ASSIGN_CARD: AssignCardPayload,
    ActionType.CREATE_PROJECT: CreateProjectPayload,
    ActionType.PUBLISH_PROJECT: ProjectStatusPayload,
    ActionType.SUBMIT_PROPOSAL: SubmitProposalPayload,
    ActionType.ACCEPT_PROPOSAL: AcceptProposalPayload,
    ActionType.START_PROJECT: ProjectStatusPayload,
    ActionType.SUBMIT_MILESTONE: MilestonePayload,
    ActionType.APPROVE_MILESTONE: MilestonePayload,
    ActionType.REJECT_MILESTONE: MilestonePayload,
    ActionType.CANCEL_PROJECT: ProjectStatusPayload,
}


def payload_model_for(action: str) -> type[BaseModel] | None:
    try:
        return _ACTION_PAYLOAD_MODELS.get(ActionType(action))
    except ValueError:
        return None


def parse_payload(action: str, payload: dict[str, Any]) -> BaseModel | None:
    """Validate a recorded payload against its action's model, if it has one."""

    model = payload_model_for(action)
    if model is None:
        return None
    return model.model_validate(payload)


def canonical_json(data: Any) -> str:
    """Canonical JSON serialization used for hashing.

    NaN and infinities are refused: they have no JSON form and would not survive
    an export and reload.
    """

    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=str)


def normalize_payload(payload: BaseModel | dict[str, Any] | None) -> dict[str, Any]:
    """Reduce a payload to plain JSON data so it hashes the same after a reload."""

    if payload is None:
        return {}
    obj = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
    return json.loads(canonical_json(obj))

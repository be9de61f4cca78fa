from api.schemas.common import ActorRequest, ErrorResponse, RecordResponse
from api.schemas.kanban import BoardCreate, BoardResponse, CardAssign, CardCreate, CardMove, CardResponse, CardUpdate
from api.schemas.marketplace import (
    MilestoneReject,
    MilestoneResponse,
    ProjectCancel,
    ProjectCreate,
    ProjectResponse,
    ProposalCreate,
    ProposalResponse,
)

__all__ = [
    "ActorRequest",
    "BoardCreate",
    "BoardResponse",
    "CardAssign",
    "CardCreate",
    "CardMove",
    "CardResponse",
    "CardUpdate",
    "ErrorResponse",
    "MilestoneReject",
    "MilestoneResponse",
    "ProjectCancel",
    "ProjectCreate",
    "ProjectResponse",
    "ProposalCreate",
    "ProposalResponse",
    "RecordResponse",
]

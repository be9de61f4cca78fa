"""stickychain.marketplace.models

Marketplace state. Frozen dataclasses; the stores swap, never mutate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ProjectStatus(StrEnum):
    DRAFT = "draft"
    OPEN = "open"
    IN_REVIEW = "in_review"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProposalStatus(StrEnum):
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MilestoneStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class MilestonePlan:
    """A milestone as proposed, before anyone agreed to it."""

    title: str
    amount: float


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    client_id: str
    title: str
    description: str
    budget: float
    created_at: datetime
    updated_at: datetime
    skills: tuple[str, ...] = ()
    status: ProjectStatus = ProjectStatus.DRAFT
    freelancer_id: str | None = None


@dataclass(frozen=True, slots=True)
class Proposal:
    id: str
    project_id: str
    freelancer_id: str
    cover_letter: str
    amount: float
    submitted_at: datetime
    milestone_plan: tuple[MilestonePlan, ...] = ()
    status: ProposalStatus = ProposalStatus.SUBMITTED


@dataclass(frozen=True, slots=True)
class Milestone:
    id: str
    project_id: str
    title: str
    amount: float
    position: int = 0
    status: MilestoneStatus = MilestoneStatus.PENDING
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    feedback: str | None = None

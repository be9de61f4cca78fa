from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from stickychain.marketplace.models import Milestone, Project, Proposal


class ProjectCreate(BaseModel):
    client_id: str
    title: str
    budget: float = Field(gt=0)
    description: str = ""
    skills: list[str] = Field(default_factory=list)


class ProjectCancel(BaseModel):
    actor_id: str
    reason: str | None = None


class MilestonePlanIn(BaseModel):
    title: str
    amount: float = Field(gt=0)


class ProposalCreate(BaseModel):
    freelancer_id: str
    amount: float = Field(gt=0)
    cover_letter: str = ""
    milestones: list[MilestonePlanIn] = Field(default_factory=list)


class MilestoneReject(BaseModel):
    actor_id: str
    feedback: str = ""


class ProjectResponse(BaseModel):
    id: str
    client_id: str
    title: str
    description: str
    budget: float
    skills: list[str]
    status: str
    freelancer_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_project(cls, p: Project) -> ProjectResponse:
        return cls(
            id=p.id,
            client_id=p.client_id,
            title=p.title,
            description=p.description,
            budget=p.budget,
            skills=list(p.skills),
            status=str(p.status),
            freelancer_id=p.freelancer_id,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


class ProposalResponse(BaseModel):
    id: str
    project_id: str
    freelancer_id: str
    cover_letter: str
    amount: float
    status: str
    submitted_at: datetime
    milestones: list[MilestonePlanIn]

    @classmethod
    def from_proposal(cls, p: Proposal) -> ProposalResponse:
        return cls(
            id=p.id,
            project_id=p.project_id,
            freelancer_id=p.freelancer_id,
            cover_letter=p.cover_letter,
            amount=p.amount,
            status=str(p.status),
            submitted_at=p.submitted_at,
            milestones=[MilestonePlanIn(title=m.title, amount=m.amount) for m in p.milestone_plan],
        )


class MilestoneResponse(BaseModel):
    id: str
    project_id: str
    title: str
    amount: float
    position: int
    status: str
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    feedback: str | None = None

    @classmethod
    def from_milestone(cls, m: Milestone) -> MilestoneResponse:
        return cls(
            id=m.id,
            project_id=m.project_id,
            title=m.title,
            amount=m.amount,
            position=m.position,
            status=str(m.status),
            submitted_at=m.submitted_at,
            approved_at=m.approved_at,
            feedback=m.feedback,
        )

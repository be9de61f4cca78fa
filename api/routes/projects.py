from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.auth import AuthDep
from api.deps import get_application, get_dispatcher
from api.errors import ApiError
from api.schemas.common import ActorRequest
from api.schemas.marketplace import (
    MilestoneReject,
    MilestoneResponse,
    ProjectCancel,
    ProjectCreate,
    ProjectResponse,
    ProposalCreate,
    ProposalResponse,
)
from stickychain.app import Application
from stickychain.dispatcher import Dispatcher
from stickychain.marketplace.models import MilestonePlan, ProjectStatus

router = APIRouter(dependencies=[AuthDep])


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(body: ProjectCreate, dispatcher: Dispatcher = Depends(get_dispatcher)) -> ProjectResponse:
    project = dispatcher.create_project(
        body.client_id,
        body.title,
        body.budget,
        description=body.description,
        skills=body.skills,
    )
    return ProjectResponse.from_project(project)


@router.get("/projects", response_model=list[ProjectResponse])
def list_projects(
    status: str | None = Query(default=None),
    skill: list[str] | None = Query(default=None),
    client_id: str | None = Query(default=None),
    application: Application = Depends(get_application),
) -> list[ProjectResponse]:
    store = application.stores.projects
    wanted: ProjectStatus | None = None
    if status is not None:
        try:
            wanted = ProjectStatus(status)
        except ValueError:
            raise ApiError("validation", f"unknown project status {status!r}", 400) from None

    with application.lock:
        if wanted is not None:
            found = store.find_by_status(wanted)
        elif skill:
            found = store.find_by_skills(skill)
        elif client_id is not None:
            found = store.find_by_index("client_id", client_id)
        else:
            found = store.find_all()
    return [ProjectResponse.from_project(p) for p in found]


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, application: Application = Depends(get_application)) -> ProjectResponse:
    with application.lock:
        project = application.stores.projects.get(project_id)
    return ProjectResponse.from_project(project)


@router.post("/projects/{project_id}/publish", response_model=ProjectResponse)
def publish_project(
    project_id: str, body: ActorRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ProjectResponse:
    return ProjectResponse.from_project(dispatcher.publish_project(project_id, body.actor_id))


@router.post("/projects/{project_id}/start", response_model=ProjectResponse)
def start_project(
    project_id: str, body: ActorRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ProjectResponse:
    return ProjectResponse.from_project(dispatcher.start_project(project_id, body.actor_id))


@router.post("/projects/{project_id}/cancel", response_model=ProjectResponse)
def cancel_project(
    project_id: str, body: ProjectCancel, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ProjectResponse:
    return ProjectResponse.from_project(dispatcher.cancel_project(project_id, body.actor_id, reason=body.reason))


@router.post("/projects/{project_id}/proposals", response_model=ProposalResponse, status_code=201)
def submit_proposal(
    project_id: str, body: ProposalCreate, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ProposalResponse:
    proposal = dispatcher.submit_proposal(
        project_id,
        body.freelancer_id,
        body.amount,
        cover_letter=body.cover_letter,
        milestones=[MilestonePlan(title=m.title, amount=m.amount) for m in body.milestones],
    )
    return ProposalResponse.from_proposal(proposal)


@router.get("/projects/{project_id}/proposals", response_model=list[ProposalResponse])
def list_proposals(project_id: str, application: Application = Depends(get_application)) -> list[ProposalResponse]:
    with application.lock:
        application.stores.projects.get(project_id)
        found = application.stores.proposals.find_by_index("project_id", project_id)
    return [ProposalResponse.from_proposal(p) for p in found]


@router.post("/proposals/{proposal_id}/accept", response_model=ProjectResponse)
def accept_proposal(
    proposal_id: str, body: ActorRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ProjectResponse:
    return ProjectResponse.from_project(dispatcher.accept_proposal(proposal_id, body.actor_id))


@router.get("/projects/{project_id}/milestones", response_model=list[MilestoneResponse])
def list_milestones(project_id: str, application: Application = Depends(get_application)) -> list[MilestoneResponse]:
    with application.lock:
        application.stores.projects.get(project_id)
        found = application.stores.milestones.find_by_project(project_id)
    return [MilestoneResponse.from_milestone(m) for m in found]


@router.post("/milestones/{milestone_id}/submit", response_model=MilestoneResponse)
def submit_milestone(
    milestone_id: str, body: ActorRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> MilestoneResponse:
    return MilestoneResponse.from_milestone(dispatcher.submit_milestone(milestone_id, body.actor_id))


@router.post("/milestones/{milestone_id}/approve", response_model=MilestoneResponse)
def approve_milestone(
    milestone_id: str, body: ActorRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> MilestoneResponse:
    return MilestoneResponse.from_milestone(dispatcher.approve_milestone(milestone_id, body.actor_id))


@router.post("/milestones/{milestone_id}/reject", response_model=MilestoneResponse)
def reject_milestone(
    milestone_id: str, body: MilestoneReject, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> MilestoneResponse:
    milestone = dispatcher.reject_milestone(milestone_id, body.actor_id, feedback=body.feedback)
    return MilestoneResponse.from_milestone(milestone)

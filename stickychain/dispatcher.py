"""stickychain.dispatcher

The only door into the stores.

Every operation runs the same four steps:
1. validate (lookups, lifecycle checks) and build the record payload exactly as
   the chain will hash it. Failures raise here, nothing changed.
2. mutate the store(s).
3. append exactly one record, subject_id = the mutated entity's id.
4. notify subscribers (best-effort, after the lock is released).

Steps 1-3 run under one re-entrant lock. The store and the chain are never
reconciled after the fact; they stay in sync because nothing writes one without
the other, and nothing that can fail runs between the two writes.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from stickychain.core.actions import (
    AcceptProposalPayload,
    ActionType,
    AssignCardPayload,
    CreateBoardPayload,
    CreateCardPayload,
    CreateProjectPayload,
    DeleteCardPayload,
    MilestonePayload,
    MoveCardPayload,
    ProjectStatusPayload,
    SubjectKind,
    SubmitProposalPayload,
    UpdateCardPayload,
    canonical_json,
    normalize_payload,
)
from stickychain.core.bus import EventBus, Notification
from stickychain.core.chain import Chain
from stickychain.core.config import KanbanConfig
from stickychain.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from stickychain.core.models import HashRecord
from stickychain.core.store import new_id
from stickychain.core.time import utc_now
from stickychain.kanban.models import Board, Card, Priority
from stickychain.kanban.stores import BoardStore, CardStore
from stickychain.kanban.templates import BOARD_TEMPLATES, build_board
from stickychain.marketplace.lifecycle import MILESTONE_LIFECYCLE, PROJECT_LIFECYCLE
from stickychain.marketplace.models import (
    Milestone,
    MilestonePlan,
    MilestoneStatus,
    Project,
    ProjectStatus,
    Proposal,
    ProposalStatus,
)
from stickychain.marketplace.stores import MilestoneStore, ProjectStore, ProposalStore

logger = logging.getLogger(__name__)

# Card fields update_card may touch. Column and position go through move_card,
# assignee through assign_card.
CARD_EDITABLE_FIELDS = frozenset({"title", "description", "priority", "tags"})


@dataclass
class Stores:
    boards: BoardStore
    cards: CardStore
    projects: ProjectStore
    proposals: ProposalStore
    milestones: MilestoneStore

    @classmethod
    def empty(cls) -> Stores:
        return cls(
            boards=BoardStore(),
            cards=CardStore(),
            projects=ProjectStore(),
            proposals=ProposalStore(),
            milestones=MilestoneStore(),
        )


class Dispatcher:
    def __init__(
        self,
        *,
        chain: Chain,
        stores: Stores,
        bus: EventBus | None = None,
        kanban: KanbanConfig | None = None,
        lock: threading.RLock | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.chain = chain
        self.stores = stores
        self.bus = bus or EventBus()
        self.kanban = kanban or KanbanConfig()
        self.lock = lock or threading.RLock()
        self.clock = clock

    # -----------------
    # Plumbing
    # -----------------

    @staticmethod
    def _payload(model: type[BaseModel], actor_id: str, **fields: Any) -> dict[str, Any]:
        """Build a record payload as the chain will hash it.

        Anything the chain would refuse (wrong types, NaN, text that is not
        valid UTF-8) raises ValidationError here, before any store is touched.
        """

        if not isinstance(actor_id, str):
            raise ValidationError("actor_id must be a string")
        try:
            data = normalize_payload(model(**fields))
            canonical_json([actor_id, data]).encode("utf-8")
        except ValueError as exc:
            raise ValidationError(f"invalid {model.__name__}: {exc}") from exc
        return data

    def _record(
        self,
        action: ActionType,
        kind: SubjectKind,
        subject_id: str,
        payload: dict[str, Any],
        actor_id: str,
        ts: datetime,
    ) -> HashRecord:
        record = self.chain.append(action, kind, subject_id, payload, actor_id, ts=ts)
        logger.info(
            "mutation_recorded",
            extra={"action": str(action), "subject_id": subject_id, "seq": record.sequence_number},
        )
        return record

    def _notify(self, topic: str, actor_id: str, data: Any, record: HashRecord, board_id: str | None = None) -> None:
        self.bus.publish(Notification(topic=topic, actor_id=actor_id, data=data, record=record, board_id=board_id))

    @staticmethod
    def _text(value: Any, name: str) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValidationError(f"{name} is not valid UTF-8 text") from None
        return value

    def _title(self, title: str) -> str:
        t = self._text(title or "", "title").strip()
        if not t:
            raise ValidationError("title must not be empty")
        if len(t) > self.kanban.max_title_length:
            raise ValidationError(f"title longer than {self.kanban.max_title_length} characters")
        return t

    def _tags(self, tags: Iterable[str]) -> tuple[str, ...]:
        if isinstance(tags, str):
            raise ValidationError("tags must be a list of strings")
        return tuple(self._text(t, "tag") for t in tags)

    @staticmethod
    def _amount(value: float, name: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name} must be a number")
        if not math.isfinite(value) or value <= 0:
            raise ValidationError(f"{name} must be a positive finite number")
        return float(value)

    @staticmethod
    def _priority(value: str | Priority) -> Priority:
        try:
            return Priority(value)
        except ValueError:
            raise ValidationError(f"unknown priority {value!r}") from None

    def history(self, subject_id: str) -> list[HashRecord]:
        return self.chain.history(subject_id)

    # -----------------
    # Boards
    # -----------------

    def create_board(self, owner_id: str, *, template: str | None = None, name: str | None = None) -> Board:
        template_name = template or self.kanban.default_template
        if template_name not in BOARD_TEMPLATES:
            raise ValidationError(f"unknown board template {template_name!r}")
        if name is not None:
            self._text(name, "name")

        with self.lock:
            now = self.clock()
            board = build_board(template_name, owner_id, name=name, now=now)
            payload = self._payload(
                CreateBoardPayload,
                owner_id,
                name=board.name,
                owner_id=owner_id,
                template=template_name,
                column_ids=[c.id for c in board.columns],
            )
            self.stores.boards.create(board)
            record = self._record(ActionType.CREATE_BOARD, SubjectKind.BOARD, board.id, payload, owner_id, now)

        self._notify("board.created", owner_id, board, record, board.id)
        return board

    # -----------------
    # Cards
    # -----------------

    def create_card(
        self,
        board_id: str,
        column_id: str,
        title: str,
        actor_id: str,
        *,
        description: str = "",
        priority: str | Priority = Priority.MEDIUM,
        parent_id: str | None = None,
        tags: Iterable[str] = (),
    ) -> Card:
        clean_title = self._title(title)
        self._text(description, "description")
        prio = self._priority(priority)
        clean_tags = self._tags(tags)

        with self.lock:
            board = self.stores.boards.get(board_id)
            if board.column(column_id) is None:
                raise NotFoundError("Column", column_id)
            if parent_id is not None:
                parent = self.stores.cards.get(parent_id)
                if parent.board_id != board_id:
                    raise ValidationError("parent card belongs to another board")

            now = self.clock()
            card = Card(
                id=new_id(),
                board_id=board_id,
                column_id=column_id,
                title=clean_title,
                description=description,
                priority=prio,
                parent_id=parent_id,
                position=len(self.stores.cards.ids_by_index("column_id", column_id)),
                tags=clean_tags,
                created_by=actor_id,
                created_at=now,
                updated_at=now,
            )
            payload = self._payload(
                CreateCardPayload,
                actor_id,
                card_id=card.id,
                board_id=board_id,
                column_id=column_id,
                title=card.title,
                description=card.description,
                priority=str(card.priority),
                parent_id=parent_id,
                position=card.position,
                tags=list(card.tags),
            )
            card = self.stores.cards.create(card)
            record = self._record(ActionType.CREATE_CARD, SubjectKind.CARD, card.id, payload, actor_id, now)

        self._notify("card.created", actor_id, card, record, board_id)
        return card

    def move_card(self, card_id: str, to_column_id: str, actor_id: str, *, position: int | None = None) -> Card:
        """Move to another column (or reorder within one). Default position: end."""

        with self.lock:
            card = self.stores.cards.get(card_id)
            board = self.stores.boards.get(card.board_id)
            if board.column(to_column_id) is None:
                raise NotFoundError("Column", to_column_id)

            target = len(self.stores.cards.ids_by_index("column_id", to_column_id))
            if to_column_id == card.column_id:
                target -= 1
            if position is not None:
                if position < 0:
                    raise ValidationError("position must be >= 0")
                target = min(position, target)

            now = self.clock()
            payload = self._payload(
                MoveCardPayload,
                actor_id,
                card_id=card_id,
                from_column_id=card.column_id,
                to_column_id=to_column_id,
                position=target,
            )
            self.stores.cards.move(card_id, to_column_id, target)
            moved = self.stores.cards.update(card_id, {"updated_at": now})
            record = self._record(ActionType.MOVE_CARD, SubjectKind.CARD, card_id, payload, actor_id, now)

        self._notify(
            "card.moved",
            actor_id,
            {"card": moved, "from_column_id": card.column_id, "to_column_id": to_column_id},
            record,
            moved.board_id,
        )
        return moved

    def update_card(self, card_id: str, updates: Mapping[str, Any], actor_id: str) -> Card:
        if not updates:
            raise ValidationError("no card fields to update")
        forbidden = set(updates) - CARD_EDITABLE_FIELDS
        if forbidden:
            raise ValidationError(f"card field(s) not editable: {', '.join(sorted(forbidden))}")

        changes: dict[str, Any] = dict(updates)
        if "title" in changes:
            changes["title"] = self._title(changes["title"])
        if "description" in changes:
            self._text(changes["description"], "description")
        if "priority" in changes:
            changes["priority"] = self._priority(changes["priority"])
        if "tags" in changes:
            changes["tags"] = self._tags(changes["tags"])

        with self.lock:
            self.stores.cards.get(card_id)
            now = self.clock()
            recorded = {k: list(v) if k == "tags" else str(v) if k == "priority" else v for k, v in changes.items()}
            payload = self._payload(UpdateCardPayload, actor_id, card_id=card_id, updates=recorded)
            card = self.stores.cards.update(card_id, {**changes, "updated_at": now})
            record = self._record(ActionType.UPDATE_CARD, SubjectKind.CARD, card_id, payload, actor_id, now)

        self._notify("card.updated", actor_id, card, record, card.board_id)
        return card

    def assign_card(self, card_id: str, assignee_id: str | None, actor_id: str) -> Card:
        """Assign (or unassign with None)."""

        with self.lock:
            self.stores.cards.get(card_id)
            now = self.clock()
            payload = self._payload(AssignCardPayload, actor_id, card_id=card_id, assignee_id=assignee_id)
            card = self.stores.cards.update(card_id, {"assignee_id": assignee_id, "updated_at": now})
            record = self._record(ActionType.ASSIGN_CARD, SubjectKind.CARD, card_id, payload, actor_id, now)

        self._notify("card.assigned", actor_id, {"card": card, "assignee_id": assignee_id}, record, card.board_id)
        return card

    def delete_card(self, card_id: str, actor_id: str) -> Card:
        """Remove from the store. The card's history stays on the chain."""

        with self.lock:
            card = self.stores.cards.get(card_id)
            if self.stores.cards.ids_by_index("parent_id", card_id):
                raise ValidationError("card has child cards; delete or re-parent them first")

            now = self.clock()
            payload = self._payload(
                DeleteCardPayload, actor_id, card_id=card_id, board_id=card.board_id, column_id=card.column_id
            )
            self.stores.cards.delete(card_id)
            record = self._record(ActionType.DELETE_CARD, SubjectKind.CARD, card_id, payload, actor_id, now)

        self._notify("card.deleted", actor_id, card, record, card.board_id)
        return card

    # -----------------
    # Projects
    # -----------------

    def create_project(
        self,
        client_id: str,
        title: str,
        budget: float,
        *,
        description: str = "",
        skills: Iterable[str] = (),
    ) -> Project:
        clean_title = self._title(title)
        amount = self._amount(budget, "budget")
        self._text(description, "description")
        if isinstance(skills, str):
            raise ValidationError("skills must be a list of strings")

        with self.lock:
            now = self.clock()
            project = Project(
                id=new_id(),
                client_id=client_id,
                title=clean_title,
                description=description,
                budget=amount,
                skills=tuple(dict.fromkeys(skills)),
                created_at=now,
                updated_at=now,
            )
            payload = self._payload(
                CreateProjectPayload,
                client_id,
                project_id=project.id,
                client_id=client_id,
                title=project.title,
                budget=project.budget,
                skills=list(project.skills),
                status=str(project.status),
            )
            self.stores.projects.create(project)
            record = self._record(ActionType.CREATE_PROJECT, SubjectKind.PROJECT, project.id, payload, client_id, now)

        self._notify("project.created", client_id, project, record)
        return project

    def _project_status(
        self,
        action: ActionType,
        topic: str,
        project_id: str,
        new_status: ProjectStatus,
        actor_id: str,
        *,
        reason: str | None = None,
    ) -> Project:
        with self.lock:
            project = self.stores.projects.get(project_id)
            t = PROJECT_LIFECYCLE.transition(project.status, new_status)

            started: Milestone | None = None
            if new_status is ProjectStatus.IN_PROGRESS:
                pending = [m for m in self.stores.milestones.find_by_project(project_id) if m.status is MilestoneStatus.PENDING]
                if pending:
                    started = pending[0]
                    MILESTONE_LIFECYCLE.transition(started.status, MilestoneStatus.IN_PROGRESS)

            now = self.clock()
            payload = self._payload(
                ProjectStatusPayload,
                actor_id,
                project_id=project_id,
                previous_status=str(t.previous),
                status=str(t.new),
                reason=reason,
                started_milestone_id=started.id if started else None,
            )
            updated = self.stores.projects.update(project_id, {"status": t.new, "updated_at": now})
            if started is not None:
                self.stores.milestones.update(started.id, {"status": MilestoneStatus.IN_PROGRESS})
            record = self._record(action, SubjectKind.PROJECT, project_id, payload, actor_id, now)

        self._notify(topic, actor_id, updated, record)
        return updated

    def publish_project(self, project_id: str, actor_id: str) -> Project:
        """Only draft projects can be published."""

        return self._project_status(
            ActionType.PUBLISH_PROJECT, "project.published", project_id, ProjectStatus.OPEN, actor_id
        )

    def start_project(self, project_id: str, actor_id: str) -> Project:
        """Assigned → in progress; the first pending milestone starts with it."""

        return self._project_status(
            ActionType.START_PROJECT, "project.started", project_id, ProjectStatus.IN_PROGRESS, actor_id
        )

    def cancel_project(self, project_id: str, actor_id: str, *, reason: str | None = None) -> Project:
        return self._project_status(
            ActionType.CANCEL_PROJECT,
            "project.cancelled",
            project_id,
            ProjectStatus.CANCELLED,
            actor_id,
            reason=reason,
        )

    # -----------------
    # Proposals
    # -----------------

    def submit_proposal(
        self,
        project_id: str,
        freelancer_id: str,
        amount: float,
        *,
        cover_letter: str = "",
        milestones: Iterable[MilestonePlan] = (),
    ) -> Proposal:
        bid = self._amount(amount, "proposal amount")
        self._text(cover_letter, "cover_letter")
        plan = tuple(milestones)
        for m in plan:
            self._amount(m.amount, "milestone amount")
            self._text(m.title, "milestone title")

        with self.lock:
            project = self.stores.projects.get(project_id)
            if project.status not in (ProjectStatus.OPEN, ProjectStatus.IN_REVIEW):
                raise InvalidTransitionError(
                    "Project",
                    str(project.status),
                    str(ProjectStatus.IN_REVIEW),
                    message="Project is not open for proposals",
                )
            if project.client_id == freelancer_id:
                raise ValidationError("clients cannot bid on their own projects")
            if self.stores.proposals.find_by_project_and_freelancer(project_id, freelancer_id) is not None:
                raise ValidationError("freelancer already submitted a proposal for this project")

            now = self.clock()
            proposal = Proposal(
                id=new_id(),
                project_id=project_id,
                freelancer_id=freelancer_id,
                cover_letter=cover_letter,
                amount=bid,
                milestone_plan=plan or (MilestonePlan(title=project.title, amount=bid),),
                submitted_at=now,
            )
            payload = self._payload(
                SubmitProposalPayload,
                freelancer_id,
                proposal_id=proposal.id,
                project_id=project_id,
                freelancer_id=freelancer_id,
                amount=proposal.amount,
                project_status=str(ProjectStatus.IN_REVIEW),
            )
            self.stores.proposals.create(proposal)
            if project.status is ProjectStatus.OPEN:
                self.stores.projects.update(project_id, {"status": ProjectStatus.IN_REVIEW, "updated_at": now})
            record = self._record(
                ActionType.SUBMIT_PROPOSAL, SubjectKind.PROPOSAL, proposal.id, payload, freelancer_id, now
            )

        self._notify("proposal.submitted", freelancer_id, proposal, record)
        return proposal

    def accept_proposal(self, proposal_id: str, actor_id: str) -> Project:
        """Accept one proposal, reject its siblings, lay out milestones."""

        with self.lock:
            proposal = self.stores.proposals.get(proposal_id)
            if proposal.status is not ProposalStatus.SUBMITTED:
                raise InvalidTransitionError("Proposal", str(proposal.status), str(ProposalStatus.ACCEPTED))
            project = self.stores.projects.get(proposal.project_id)
            t = PROJECT_LIFECYCLE.transition(project.status, ProjectStatus.ASSIGNED)

            now = self.clock()
            rejected = [
                other.id
                for other in self.stores.proposals.find_by_index("project_id", project.id)
                if other.id != proposal_id and other.status is ProposalStatus.SUBMITTED
            ]
            milestones = [
                Milestone(id=new_id(), project_id=project.id, title=m.title, amount=m.amount)
                for m in proposal.milestone_plan
            ]
            payload = self._payload(
                AcceptProposalPayload,
                actor_id,
                proposal_id=proposal_id,
                project_id=project.id,
                freelancer_id=proposal.freelancer_id,
                amount=proposal.amount,
                rejected_proposal_ids=rejected,
                milestone_ids=[m.id for m in milestones],
                project_status=str(t.new),
            )

            self.stores.proposals.update(proposal_id, {"status": ProposalStatus.ACCEPTED})
            for other_id in rejected:
                self.stores.proposals.update(other_id, {"status": ProposalStatus.REJECTED})
            for m in milestones:
                self.stores.milestones.create(m)
            updated = self.stores.projects.update(
                project.id,
                {
                    "status": t.new,
                    "freelancer_id": proposal.freelancer_id,
                    "budget": proposal.amount,
                    "updated_at": now,
                },
            )
            record = self._record(ActionType.ACCEPT_PROPOSAL, SubjectKind.PROPOSAL, proposal_id, payload, actor_id, now)

        self._notify("proposal.accepted", actor_id, updated, record)
        return updated

    # -----------------
    # Milestones
    # -----------------

    def _active_project(self, milestone: Milestone) -> Project:
        project = self.stores.projects.get(milestone.project_id)
        if project.status is not ProjectStatus.IN_PROGRESS:
            raise InvalidTransitionError(
                "Milestone",
                str(milestone.status),
                "*",
                message=f"Project {project.id} is {project.status}, not in_progress",
            )
        return project

    def submit_milestone(self, milestone_id: str, actor_id: str) -> Milestone:
        with self.lock:
            milestone = self.stores.milestones.get(milestone_id)
            self._active_project(milestone)
            t = MILESTONE_LIFECYCLE.transition(milestone.status, MilestoneStatus.SUBMITTED)

            now = self.clock()
            payload = self._payload(
                MilestonePayload,
                actor_id,
                milestone_id=milestone_id,
                project_id=milestone.project_id,
                title=milestone.title,
                previous_status=str(t.previous),
                status=str(t.new),
            )
            updated = self.stores.milestones.update(
                milestone_id, {"status": t.new, "submitted_at": now, "feedback": None}
            )
            record = self._record(
                ActionType.SUBMIT_MILESTONE, SubjectKind.MILESTONE, milestone_id, payload, actor_id, now
            )

        self._notify("milestone.submitted", actor_id, updated, record)
        return updated

    def approve_milestone(self, milestone_id: str, actor_id: str) -> Milestone:
        """Approve; start the next pending milestone; complete the project after the last one."""

        with self.lock:
            milestone = self.stores.milestones.get(milestone_id)
            project = self._active_project(milestone)
            t = MILESTONE_LIFECYCLE.transition(milestone.status, MilestoneStatus.APPROVED)

            siblings = self.stores.milestones.find_by_project(project.id)
            nxt = next((m for m in siblings if m.status is MilestoneStatus.PENDING), None)
            all_done = all(m.status is MilestoneStatus.APPROVED for m in siblings if m.id != milestone_id)
            project_t = PROJECT_LIFECYCLE.transition(project.status, ProjectStatus.COMPLETED) if all_done else None

            now = self.clock()
            payload = self._payload(
                MilestonePayload,
                actor_id,
                milestone_id=milestone_id,
                project_id=project.id,
                title=milestone.title,
                previous_status=str(t.previous),
                status=str(t.new),
                next_milestone_id=nxt.id if nxt else None,
                project_status=str(project_t.new) if project_t else None,
            )
            updated = self.stores.milestones.update(milestone_id, {"status": t.new, "approved_at": now})
            if nxt is not None:
                self.stores.milestones.update(nxt.id, {"status": MilestoneStatus.IN_PROGRESS})
            if project_t is not None:
                self.stores.projects.update(project.id, {"status": project_t.new, "updated_at": now})
            record = self._record(
                ActionType.APPROVE_MILESTONE, SubjectKind.MILESTONE, milestone_id, payload, actor_id, now
            )

        self._notify("milestone.approved", actor_id, updated, record)
        return updated

    def reject_milestone(self, milestone_id: str, actor_id: str, *, feedback: str = "") -> Milestone:
        with self.lock:
            milestone = self.stores.milestones.get(milestone_id)
            self._active_project(milestone)
            t = MILESTONE_LIFECYCLE.transition(milestone.status, MilestoneStatus.REJECTED)

            now = self.clock()
            payload = self._payload(
                MilestonePayload,
                actor_id,
                milestone_id=milestone_id,
                project_id=milestone.project_id,
                title=milestone.title,
                previous_status=str(t.previous),
                status=str(t.new),
                feedback=feedback or None,
            )
            updated = self.stores.milestones.update(milestone_id, {"status": t.new, "feedback": feedback or None})
            record = self._record(
                ActionType.REJECT_MILESTONE, SubjectKind.MILESTONE, milestone_id, payload, actor_id, now
            )

        self._notify("milestone.rejected", actor_id, updated, record)
        return updated

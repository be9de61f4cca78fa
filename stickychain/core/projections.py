"""stickychain.core.projections

Materialized views from replay.

The stores hold the present. Projections rebuild a present (or any past) from
the chain alone, folding records left to right. If the two disagree, one of
them skipped a write.

The map is not the territory, but a good projection comes close.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from stickychain.core.actions import (
    AcceptProposalPayload,
    ActionType,
    AssignCardPayload,
    CreateCardPayload,
    CreateProjectPayload,
    DeleteCardPayload,
    MilestonePayload,
    MoveCardPayload,
    ProjectStatusPayload,
    SubmitProposalPayload,
    UpdateCardPayload,
    parse_payload,
)
from stickychain.core.chain import Chain
from stickychain.core.models import HashRecord


class Projector:
    def handle(self, record: HashRecord) -> None: ...

    def get_state(self) -> dict[str, Any]: ...

    def reset(self) -> None: ...


@dataclass
class CardProjector(Projector):
    """Cards and their column order."""

    cards: dict[str, dict[str, Any]] = field(default_factory=dict)
    columns: dict[str, list[str]] = field(default_factory=dict)

    def handle(self, record: HashRecord) -> None:
        p = parse_payload(record.action, record.payload)

        if isinstance(p, CreateCardPayload):
            self.cards[p.card_id] = {
                **p.model_dump(),
                "assignee_id": None,
                "created_by": record.author_id,
                "updated_at": record.timestamp,
            }
            self.columns.setdefault(p.column_id, []).append(p.card_id)
            self._restamp(p.column_id)
        elif isinstance(p, MoveCardPayload):
            card = self.cards.get(p.card_id)
            if card is None:
                return
            self._detach(p.card_id, card["column_id"])
            bucket = self.columns.setdefault(p.to_column_id, [])
            bucket.insert(max(0, min(p.position, len(bucket))), p.card_id)
            card["column_id"] = p.to_column_id
            card["updated_at"] = record.timestamp
            self._restamp(p.to_column_id)
        elif isinstance(p, UpdateCardPayload):
            card = self.cards.get(p.card_id)
            if card is None:
                return
            card.update(p.updates)
            card["updated_at"] = record.timestamp
        elif isinstance(p, AssignCardPayload):
            card = self.cards.get(p.card_id)
            if card is None:
                return
            card["assignee_id"] = p.assignee_id
            card["updated_at"] = record.timestamp
        elif isinstance(p, DeleteCardPayload):
            card = self.cards.pop(p.card_id, None)
            if card is not None:
                self._detach(p.card_id, card["column_id"])

    def _detach(self, card_id: str, column_id: str) -> None:
        bucket = self.columns.get(column_id, [])
        if card_id in bucket:
            bucket.remove(card_id)
            self._restamp(column_id)

    def _restamp(self, column_id: str) -> None:
        for pos, cid in enumerate(self.columns.get(column_id, [])):
            self.cards[cid]["position"] = pos

    def get_state(self) -> dict[str, Any]:
        return {"cards": {k: dict(v) for k, v in self.cards.items()}}

    def reset(self) -> None:
        self.cards.clear()
        self.columns.clear()


@dataclass
class ProjectProjector(Projector):
    """Project lifecycle (draft → open → ... → completed | cancelled)."""

    projects: dict[str, dict[str, Any]] = field(default_factory=dict)

    def handle(self, record: HashRecord) -> None:
        p = parse_payload(record.action, record.payload)

        if isinstance(p, CreateProjectPayload):
            self.projects[p.project_id] = {
                "project_id": p.project_id,
                "client_id": p.client_id,
                "title": p.title,
                "status": p.status,
                "freelancer_id": None,
                "last_seq": record.sequence_number,
            }
            return

        if isinstance(p, ProjectStatusPayload):
            self._set(p.project_id, record, status=p.status)
        elif isinstance(p, SubmitProposalPayload):
            self._set(p.project_id, record, status=p.project_status)
        elif isinstance(p, AcceptProposalPayload):
            self._set(p.project_id, record, status=p.project_status, freelancer_id=p.freelancer_id)
        elif isinstance(p, MilestonePayload) and p.project_status is not None:
            self._set(p.project_id, record, status=p.project_status)

    def _set(self, project_id: str, record: HashRecord, **changes: Any) -> None:
        row = self.projects.get(project_id)
        if row is None:
            return
        row.update(changes)
        row["last_seq"] = record.sequence_number

    def get_state(self) -> dict[str, Any]:
        return {"projects": {k: dict(v) for k, v in self.projects.items()}}

    def reset(self) -> None:
        self.projects.clear()


@dataclass
class MilestoneProjector(Projector):
    milestones: dict[str, dict[str, Any]] = field(default_factory=dict)

    def handle(self, record: HashRecord) -> None:
        p = parse_payload(record.action, record.payload)

        if isinstance(p, AcceptProposalPayload):
            for mid in p.milestone_ids:
                self.milestones[mid] = {"milestone_id": mid, "project_id": p.project_id, "status": "pending"}
        elif isinstance(p, ProjectStatusPayload) and p.started_milestone_id:
            self._status(p.started_milestone_id, "in_progress")
        elif isinstance(p, MilestonePayload):
            self._status(p.milestone_id, p.status)
            if p.next_milestone_id:
                self._status(p.next_milestone_id, "in_progress")

    def _status(self, milestone_id: str, status: str) -> None:
        row = self.milestones.get(milestone_id)
        if row is not None:
            row["status"] = status

    def get_state(self) -> dict[str, Any]:
        return {"milestones": {k: dict(v) for k, v in self.milestones.items()}}

    def reset(self) -> None:
        self.milestones.clear()


class ProjectionManager:
    """Orchestrates projectors and supports rebuild from replay."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.cards = CardProjector()
        self.projects = ProjectProjector()
        self.milestones = MilestoneProjector()
        self.projectors: list[Projector] = [self.cards, self.projects, self.milestones]

    def handle(self, record: HashRecord) -> None:
        # Genesis and foreign actions carry no payload model; skip them.
        if record.sequence_number == 0 or record.action not in ActionType.__members__:
            return
        with self._lock:
            for p in self.projectors:
                p.handle(record)

    def rebuild(self, records: Iterable[HashRecord]) -> None:
        with self._lock:
            for p in self.projectors:
                p.reset()
            for r in records:
                self.handle(r)

    def get_state(self) -> dict[str, Any]:
        return {
            "cards": self.cards.get_state()["cards"],
            "projects": self.projects.get_state()["projects"],
            "milestones": self.milestones.get_state()["milestones"],
        }


def state_at(chain: Chain, up_to: datetime | None = None) -> dict[str, Any]:
    """Whole-system view as of `up_to` (inclusive)."""

    pm = ProjectionManager()
    pm.rebuild(chain.replay(up_to=up_to))
    return pm.get_state()


def subject_state_at(chain: Chain, subject_id: str, up_to: datetime | None = None) -> dict[str, Any] | None:
    """Fold one subject's own history. None if it did not exist yet (or was deleted).

    Effects a subject receives through other subjects' records (a project
    completed by its last milestone approval) are not visible here; use
    `state_at` for those.
    """

    pm = ProjectionManager()
    pm.rebuild(chain.replay(subject_id, up_to))
    state = pm.get_state()
    for section in ("cards", "projects", "milestones"):
        if subject_id in state[section]:
            return state[section][subject_id]
    return None

"""stickychain.marketplace.lifecycle

Work item lifecycles.

Project:   DRAFT → OPEN → IN_REVIEW → ASSIGNED → IN_PROGRESS → COMPLETED
Milestone: PENDING → IN_PROGRESS → SUBMITTED → APPROVED | REJECTED

CANCELLED is reachable from every non-terminal project state. A rejected
milestone goes back to work and may be submitted again.

These tables restrict which moves are legal. They do not perform them; the
dispatcher checks here first, then mutates, then records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Generic, TypeVar

from stickychain.core.exceptions import InvalidTransitionError
from stickychain.marketplace.models import MilestoneStatus, ProjectStatus

S = TypeVar("S", bound=StrEnum)


PROJECT_TRANSITIONS: Final[dict[ProjectStatus, set[ProjectStatus]]] = {
    ProjectStatus.DRAFT: {ProjectStatus.OPEN, ProjectStatus.CANCELLED},
    ProjectStatus.OPEN: {ProjectStatus.IN_REVIEW, ProjectStatus.CANCELLED},
    ProjectStatus.IN_REVIEW: {ProjectStatus.ASSIGNED, ProjectStatus.CANCELLED},
    ProjectStatus.ASSIGNED: {ProjectStatus.IN_PROGRESS, ProjectStatus.CANCELLED},
    ProjectStatus.IN_PROGRESS: {ProjectStatus.COMPLETED, ProjectStatus.CANCELLED},
    ProjectStatus.COMPLETED: set(),
    ProjectStatus.CANCELLED: set(),
}

MILESTONE_TRANSITIONS: Final[dict[MilestoneStatus, set[MilestoneStatus]]] = {
    MilestoneStatus.PENDING: {MilestoneStatus.IN_PROGRESS},
    MilestoneStatus.IN_PROGRESS: {MilestoneStatus.SUBMITTED},
    MilestoneStatus.SUBMITTED: {MilestoneStatus.APPROVED, MilestoneStatus.REJECTED},
    MilestoneStatus.REJECTED: {MilestoneStatus.SUBMITTED},
    MilestoneStatus.APPROVED: set(),
}


@dataclass(frozen=True, slots=True)
class Transition(Generic[S]):
    previous: S
    new: S


class Lifecycle(Generic[S]):
    def __init__(self, kind: str, transitions: dict[S, set[S]]) -> None:
        self.kind = kind
        self.transitions = transitions

    def can(self, state: S, new_state: S) -> bool:
        return new_state in self.transitions.get(state, set())

    def is_terminal(self, state: S) -> bool:
        return not self.transitions.get(state)

    def transition(self, state: S, new_state: S) -> Transition[S]:
        if not self.can(state, new_state):
            raise InvalidTransitionError(self.kind, str(state), str(new_state))
        return Transition(previous=state, new=new_state)


PROJECT_LIFECYCLE: Final = Lifecycle("Project", PROJECT_TRANSITIONS)
MILESTONE_LIFECYCLE: Final = Lifecycle("Milestone", MILESTONE_TRANSITIONS)

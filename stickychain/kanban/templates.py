"""stickychain.kanban.templates

Board templates. A board is born with its columns; it never starts empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

from stickychain.core.store import new_id
from stickychain.core.time import utc_now
from stickychain.kanban.models import Board, Column


@dataclass(frozen=True, slots=True)
class BoardTemplate:
    name: str
    description: str
    columns: tuple[str, ...]


BOARD_TEMPLATES: Final[dict[str, BoardTemplate]] = {
    "BASIC_KANBAN": BoardTemplate(
        name="Basic Kanban",
        description="Simple kanban board with 4 columns",
        columns=("Backlog", "In Progress", "Review", "Done"),
    ),
    "SDLC": BoardTemplate(
        name="Software Development Lifecycle",
        description="Complete SDLC workflow board",
        columns=("Ideation", "Refinement", "Development", "Testing", "Review", "Deployment", "Done"),
    ),
    "BUG_TRACKER": BoardTemplate(
        name="Bug Tracker",
        description="Board for tracking and fixing bugs",
        columns=("Reported", "Confirmed", "In Progress", "Fixed", "Verified", "Closed"),
    ),
    "FEATURE_DEV": BoardTemplate(
        name="Feature Development",
        description="Board for developing new features",
        columns=("Ideas", "Spec", "Design", "Implementation", "QA", "Released"),
    ),
}


def build_board(
    template_name: str,
    owner_id: str,
    *,
    name: str | None = None,
    now: datetime | None = None,
) -> Board:
    """Build (not store) a board from a template.

    Raises:
        KeyError: unknown template name.
    """

    template = BOARD_TEMPLATES[template_name]
    board_id = new_id()
    ts = now or utc_now()
    columns = tuple(
        Column(id=new_id(), board_id=board_id, name=col, position=i)
        for i, col in enumerate(template.columns)
    )
    return Board(
        id=board_id,
        name=name or template.name,
        description=template.description,
        owner_id=owner_id,
        template=template_name,
        created_at=ts,
        updated_at=ts,
        columns=columns,
    )

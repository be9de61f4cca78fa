"""stickychain.kanban.models

Lightweight dataclasses for kanban state.

Pydantic models own IO boundaries; dataclasses keep the stores lean.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class Column:
    id: str
    board_id: str
    name: str
    position: int


@dataclass(frozen=True, slots=True)
class Board:
    id: str
    name: str
    description: str
    owner_id: str
    template: str
    created_at: datetime
    updated_at: datetime
    columns: tuple[Column, ...] = ()

    def column(self, column_id: str) -> Column | None:
        for c in self.columns:
            if c.id == column_id:
                return c
        return None


@dataclass(frozen=True, slots=True)
class Card:
    id: str
    board_id: str
    column_id: str
    title: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    priority: Priority = Priority.MEDIUM
    assignee_id: str | None = None
    parent_id: str | None = None  # epic -> story -> task
    position: int = 0  # order within column, stamped by the store
    tags: tuple[str, ...] = field(default_factory=tuple)

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from stickychain.kanban.models import Board, Card, Priority


class BoardCreate(BaseModel):
    owner_id: str
    template: str | None = None
    name: str | None = None


class ColumnResponse(BaseModel):
    id: str
    name: str
    position: int


class BoardResponse(BaseModel):
    id: str
    name: str
    description: str
    owner_id: str
    template: str
    created_at: datetime
    updated_at: datetime
    columns: list[ColumnResponse]

    @classmethod
    def from_board(cls, b: Board) -> BoardResponse:
        return cls(
            id=b.id,
            name=b.name,
            description=b.description,
            owner_id=b.owner_id,
            template=b.template,
            created_at=b.created_at,
            updated_at=b.updated_at,
            columns=[ColumnResponse(id=c.id, name=c.name, position=c.position) for c in b.columns],
        )


class CardCreate(BaseModel):
    board_id: str
    column_id: str
    title: str
    actor_id: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    parent_id: str | None = None
    tags: list[str] = Field(default_factory=list)


class CardMove(BaseModel):
    actor_id: str
    to_column_id: str
    position: int | None = Field(default=None, ge=0)


class CardUpdate(BaseModel):
    actor_id: str
    updates: dict[str, Any]


class CardAssign(BaseModel):
    actor_id: str
    assignee_id: str | None = None


class CardResponse(BaseModel):
    id: str
    board_id: str
    column_id: str
    title: str
    description: str
    priority: Priority
    assignee_id: str | None = None
    parent_id: str | None = None
    position: int
    tags: list[str]
    created_by: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_card(cls, c: Card) -> CardResponse:
        return cls(
            id=c.id,
            board_id=c.board_id,
            column_id=c.column_id,
            title=c.title,
            description=c.description,
            priority=c.priority,
            assignee_id=c.assignee_id,
            parent_id=c.parent_id,
            position=c.position,
            tags=list(c.tags),
            created_by=c.created_by,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )

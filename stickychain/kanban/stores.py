"""stickychain.kanban.stores

Store layouts for kanban entities. Indexes are declared, not hand-maintained.
"""

from __future__ import annotations

from stickychain.core.store import IndexedStore, IndexSpec
from stickychain.kanban.models import Board, Card


class BoardStore(IndexedStore[Board]):
    def __init__(self) -> None:
        super().__init__("Board", indexes=[IndexSpec("owner_id")])

    def find_by_owner(self, owner_id: str) -> list[Board]:
        return self.find_by_index("owner_id", owner_id)


class CardStore(IndexedStore[Card]):
    """Cards: board and assignee membership unordered, column and parent ordered."""

    def __init__(self) -> None:
        super().__init__(
            "Card",
            indexes=[
                IndexSpec("board_id"),
                IndexSpec("column_id", ordered=True, position_field="position"),
                IndexSpec("assignee_id"),
            ],
            parent_field="parent_id",
        )

    def find_by_board(self, board_id: str) -> list[Card]:
        return self.find_by_index("board_id", board_id)

    def find_by_column(self, column_id: str) -> list[Card]:
        return self.find_by_index("column_id", column_id)

    def find_by_assignee(self, assignee_id: str) -> list[Card]:
        return self.find_by_index("assignee_id", assignee_id)

    def move(self, card_id: str, to_column_id: str, position: int) -> Card:
        return self.reposition(card_id, "column_id", to_column_id, position)

"""stickychain.kanban

Boards, columns, cards. The plumbing the chain was built to watch.
"""

from stickychain.kanban.models import Board, Card, Column, Priority
from stickychain.kanban.stores import BoardStore, CardStore
from stickychain.kanban.templates import BOARD_TEMPLATES, BoardTemplate, build_board

__all__ = [
    "BOARD_TEMPLATES",
    "Board",
    "BoardStore",
    "BoardTemplate",
    "Card",
    "CardStore",
    "Column",
    "Priority",
    "build_board",
]

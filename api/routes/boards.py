from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.auth import AuthDep
from api.deps import get_application, get_dispatcher
from api.schemas.kanban import BoardCreate, BoardResponse, CardResponse
from stickychain.app import Application
from stickychain.dispatcher import Dispatcher

router = APIRouter(prefix="/boards", dependencies=[AuthDep])


@router.post("", response_model=BoardResponse, status_code=201)
def create_board(body: BoardCreate, dispatcher: Dispatcher = Depends(get_dispatcher)) -> BoardResponse:
    board = dispatcher.create_board(body.owner_id, template=body.template, name=body.name)
    return BoardResponse.from_board(board)


@router.get("", response_model=list[BoardResponse])
def list_boards(
    owner_id: str | None = Query(default=None),
    application: Application = Depends(get_application),
) -> list[BoardResponse]:
    boards = application.stores.boards
    with application.lock:
        found = boards.find_by_owner(owner_id) if owner_id else boards.find_all()
    return [BoardResponse.from_board(b) for b in found]


@router.get("/{board_id}", response_model=BoardResponse)
def get_board(board_id: str, application: Application = Depends(get_application)) -> BoardResponse:
    with application.lock:
        board = application.stores.boards.get(board_id)
    return BoardResponse.from_board(board)


@router.get("/{board_id}/cards", response_model=list[CardResponse])
def list_board_cards(
    board_id: str,
    column_id: str | None = Query(default=None),
    application: Application = Depends(get_application),
) -> list[CardResponse]:
    cards = application.stores.cards
    with application.lock:
        board = application.stores.boards.get(board_id)
        if column_id is not None:
            found = cards.find_by_column(column_id) if board.column(column_id) else []
        else:
            # Column order, then position within the column.
            found = [c for col in board.columns for c in cards.find_by_column(col.id)]
    return [CardResponse.from_card(c) for c in found]

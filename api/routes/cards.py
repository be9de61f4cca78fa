from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.auth import AuthDep
from api.deps import get_application, get_dispatcher
from api.schemas.kanban import CardAssign, CardCreate, CardMove, CardResponse, CardUpdate
from stickychain.app import Application
from stickychain.dispatcher import Dispatcher

router = APIRouter(prefix="/cards", dependencies=[AuthDep])


@router.post("", response_model=CardResponse, status_code=201)
def create_card(body: CardCreate, dispatcher: Dispatcher = Depends(get_dispatcher)) -> CardResponse:
    card = dispatcher.create_card(
        body.board_id,
        body.column_id,
        body.title,
        body.actor_id,
        description=body.description,
        priority=body.priority,
        parent_id=body.parent_id,
        tags=body.tags,
    )
    return CardResponse.from_card(card)


@router.get("/{card_id}", response_model=CardResponse)
def get_card(card_id: str, application: Application = Depends(get_application)) -> CardResponse:
    with application.lock:
        card = application.stores.cards.get(card_id)
    return CardResponse.from_card(card)


@router.get("/{card_id}/children", response_model=list[CardResponse])
def list_children(
    card_id: str,
    recursive: bool = Query(default=False),
    application: Application = Depends(get_application),
) -> list[CardResponse]:
    cards = application.stores.cards
    with application.lock:
        cards.get(card_id)
        found = cards.find_all_descendants(card_id) if recursive else cards.find_children(card_id)
    return [CardResponse.from_card(c) for c in found]


@router.post("/{card_id}/move", response_model=CardResponse)
def move_card(card_id: str, body: CardMove, dispatcher: Dispatcher = Depends(get_dispatcher)) -> CardResponse:
    card = dispatcher.move_card(card_id, body.to_column_id, body.actor_id, position=body.position)
    return CardResponse.from_card(card)


@router.patch("/{card_id}", response_model=CardResponse)
def update_card(card_id: str, body: CardUpdate, dispatcher: Dispatcher = Depends(get_dispatcher)) -> CardResponse:
    return CardResponse.from_card(dispatcher.update_card(card_id, body.updates, body.actor_id))


@router.post("/{card_id}/assign", response_model=CardResponse)
def assign_card(card_id: str, body: CardAssign, dispatcher: Dispatcher = Depends(get_dispatcher)) -> CardResponse:
    return CardResponse.from_card(dispatcher.assign_card(card_id, body.assignee_id, body.actor_id))


@router.delete("/{card_id}", response_model=CardResponse)
def delete_card(
    card_id: str,
    actor_id: str = Query(...),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> CardResponse:
    return CardResponse.from_card(dispatcher.delete_card(card_id, actor_id))

from __future__ import annotations

import pytest

from stickychain.core.bus import AuditTrailObserver, Notification
from stickychain.core.exceptions import NotFoundError, ValidationError
from stickychain.dispatcher import Dispatcher
from stickychain.kanban.models import Priority


def _cols(board) -> list[str]:
    return [c.id for c in board.columns]


def test_create_board_from_template(dispatcher: Dispatcher) -> None:
    board = dispatcher.create_board("alice", template="SDLC")

    assert board.template == "SDLC"
    assert [c.name for c in board.columns][0] == "Ideation"
    assert [c.position for c in board.columns] == list(range(7))
    assert dispatcher.stores.boards.find_by_owner("alice") == [board]

    (record,) = dispatcher.history(board.id)
    assert record.action == "CREATE_BOARD"
    assert record.subject_kind == "Board"
    assert record.author_id == "alice"
    assert record.payload["column_ids"] == _cols(board)


def test_create_board_default_template_and_name(dispatcher: Dispatcher) -> None:
    board = dispatcher.create_board("alice", name="Ops")
    assert board.template == "BASIC_KANBAN"
    assert board.name == "Ops"
    assert len(board.columns) == 4


def test_create_board_unknown_template(dispatcher: Dispatcher) -> None:
    with pytest.raises(ValidationError):
        dispatcher.create_board("alice", template="SCRUM")
    assert len(dispatcher.chain) == 1


def test_create_card_records_and_indexes(dispatcher: Dispatcher, board) -> None:
    backlog = _cols(board)[0]
    c1 = dispatcher.create_card(board.id, backlog, "  First  ", "alice", priority="high", tags=["ui"])
    c2 = dispatcher.create_card(board.id, backlog, "Second", "bob")

    assert c1.title == "First"
    assert c1.priority is Priority.HIGH
    assert (c1.position, c2.position) == (0, 1)
    assert dispatcher.stores.cards.find_by_column(backlog) == [c1, c2]
    assert dispatcher.stores.cards.find_by_board(board.id) == [c1, c2]

    (record,) = dispatcher.history(c1.id)
    assert record.action == "CREATE_CARD"
    assert record.subject_id == c1.id
    assert record.payload["tags"] == ["ui"]
    assert record.payload["priority"] == "high"
    assert record.timestamp == c1.created_at
    assert dispatcher.chain.validate().valid


@pytest.mark.parametrize("title", ["", "   ", "x" * 201])
def test_create_card_rejects_bad_titles(dispatcher: Dispatcher, board, title: str) -> None:
    before = len(dispatcher.chain)
    with pytest.raises(ValidationError):
        dispatcher.create_card(board.id, _cols(board)[0], title, "alice")
    assert len(dispatcher.chain) == before
    assert len(dispatcher.stores.cards) == 0


def test_create_card_rejects_bad_priority(dispatcher: Dispatcher, board) -> None:
    with pytest.raises(ValidationError):
        dispatcher.create_card(board.id, _cols(board)[0], "T", "alice", priority="urgent")


def test_create_card_unknown_board_or_column(dispatcher: Dispatcher, board) -> None:
    with pytest.raises(NotFoundError):
        dispatcher.create_card("no-board", _cols(board)[0], "T", "alice")
    with pytest.raises(NotFoundError) as exc:
        dispatcher.create_card(board.id, "no-column", "T", "alice")
    assert exc.value.kind == "Column"
    assert len(dispatcher.chain) == 2


def test_create_card_parent_must_share_board(dispatcher: Dispatcher, board) -> None:
    other = dispatcher.create_board("bob")
    parent = dispatcher.create_card(other.id, _cols(other)[0], "Epic", "bob")
    with pytest.raises(ValidationError):
        dispatcher.create_card(board.id, _cols(board)[0], "Story", "alice", parent_id=parent.id)
    with pytest.raises(NotFoundError):
        dispatcher.create_card(board.id, _cols(board)[0], "Story", "alice", parent_id="missing")


def test_card_hierarchy(dispatcher: Dispatcher, board) -> None:
    col = _cols(board)[0]
    epic = dispatcher.create_card(board.id, col, "Epic", "alice")
    story = dispatcher.create_card(board.id, col, "Story", "alice", parent_id=epic.id)
    task = dispatcher.create_card(board.id, col, "Task", "alice", parent_id=story.id)

    cards = dispatcher.stores.cards
    assert cards.find_children(epic.id) == [story]
    assert {c.id for c in cards.find_all_descendants(epic.id)} == {story.id, task.id}


def test_move_card_between_columns(dispatcher: Dispatcher, board) -> None:
    backlog, doing = _cols(board)[:2]
    a = dispatcher.create_card(board.id, backlog, "A", "alice")
    b = dispatcher.create_card(board.id, backlog, "B", "alice")
    c = dispatcher.create_card(board.id, doing, "C", "alice")

    moved = dispatcher.move_card(a.id, doing, "bob")

    cards = dispatcher.stores.cards
    assert moved.column_id == doing
    assert [x.id for x in cards.find_by_column(backlog)] == [b.id]
    assert cards.get(b.id).position == 0
    assert [x.id for x in cards.find_by_column(doing)] == [c.id, a.id]
    assert moved.position == 1

    record = dispatcher.history(a.id)[-1]
    assert record.action == "MOVE_CARD"
    assert record.author_id == "bob"
    assert record.payload == {
        "card_id": a.id,
        "from_column_id": backlog,
        "to_column_id": doing,
        "position": 1,
    }


def test_move_card_to_position_and_reorder(dispatcher: Dispatcher, board) -> None:
    backlog, doing = _cols(board)[:2]
    ids = [dispatcher.create_card(board.id, backlog, f"T{i}", "alice").id for i in range(3)]

    dispatcher.move_card(ids[2], backlog, "alice", position=0)
    assert [c.id for c in dispatcher.stores.cards.find_by_column(backlog)] == [ids[2], ids[0], ids[1]]

    dispatcher.move_card(ids[1], doing, "alice", position=50)
    assert dispatcher.stores.cards.get(ids[1]).position == 0

    # Reorder to the end of its own column.
    dispatcher.move_card(ids[2], backlog, "alice")
    assert [c.id for c in dispatcher.stores.cards.find_by_column(backlog)] == [ids[0], ids[2]]


def test_move_card_to_unknown_column_changes_nothing(dispatcher: Dispatcher, board) -> None:
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")
    before = len(dispatcher.chain)
    with pytest.raises(NotFoundError):
        dispatcher.move_card(card.id, "elsewhere", "alice")
    with pytest.raises(ValidationError):
        dispatcher.move_card(card.id, _cols(board)[1], "alice", position=-1)
    assert len(dispatcher.chain) == before
    assert dispatcher.stores.cards.get(card.id) == card


def test_update_card(dispatcher: Dispatcher, board) -> None:
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")
    updated = dispatcher.update_card(card.id, {"title": "B", "priority": "low", "tags": ["x"]}, "bob")

    assert (updated.title, updated.priority, updated.tags) == ("B", Priority.LOW, ("x",))
    assert updated.updated_at > card.updated_at
    record = dispatcher.history(card.id)[-1]
    assert record.action == "UPDATE_CARD"
    assert record.payload["updates"] == {"title": "B", "priority": "low", "tags": ["x"]}


@pytest.mark.parametrize("updates", [{}, {"column_id": "x"}, {"assignee_id": "bob"}, {"title": ""}])
def test_update_card_rejects(dispatcher: Dispatcher, board, updates: dict) -> None:
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")
    before = len(dispatcher.chain)
    with pytest.raises(ValidationError):
        dispatcher.update_card(card.id, updates, "alice")
    assert len(dispatcher.chain) == before


def test_update_unknown_card(dispatcher: Dispatcher) -> None:
    with pytest.raises(NotFoundError):
        dispatcher.update_card("nope", {"title": "x"}, "alice")


def test_assign_and_unassign(dispatcher: Dispatcher, board) -> None:
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")

    dispatcher.assign_card(card.id, "bob", "alice")
    assert dispatcher.stores.cards.find_by_assignee("bob")[0].id == card.id

    dispatcher.assign_card(card.id, None, "alice")
    assert dispatcher.stores.cards.find_by_assignee("bob") == []
    assert [r.payload["assignee_id"] for r in dispatcher.history(card.id)[1:]] == ["bob", None]


def test_delete_card_keeps_history(dispatcher: Dispatcher, board) -> None:
    col = _cols(board)[0]
    a = dispatcher.create_card(board.id, col, "A", "alice")
    b = dispatcher.create_card(board.id, col, "B", "alice")

    dispatcher.delete_card(a.id, "alice")

    assert a.id not in dispatcher.stores.cards
    assert dispatcher.stores.cards.get(b.id).position == 0
    assert [r.action for r in dispatcher.history(a.id)] == ["CREATE_CARD", "DELETE_CARD"]
    with pytest.raises(NotFoundError):
        dispatcher.delete_card(a.id, "alice")


def test_delete_card_with_children_is_rejected(dispatcher: Dispatcher, board) -> None:
    col = _cols(board)[0]
    epic = dispatcher.create_card(board.id, col, "Epic", "alice")
    dispatcher.create_card(board.id, col, "Story", "alice", parent_id=epic.id)
    with pytest.raises(ValidationError):
        dispatcher.delete_card(epic.id, "alice")
    assert epic.id in dispatcher.stores.cards


def test_each_operation_appends_exactly_one_record(dispatcher: Dispatcher, board) -> None:
    backlog, doing = _cols(board)[:2]
    start = len(dispatcher.chain)
    card = dispatcher.create_card(board.id, backlog, "A", "alice")
    dispatcher.move_card(card.id, doing, "alice")
    dispatcher.update_card(card.id, {"description": "d"}, "alice")
    dispatcher.assign_card(card.id, "bob", "alice")
    dispatcher.delete_card(card.id, "alice")
    assert len(dispatcher.chain) == start + 5
    assert dispatcher.chain.validate().valid


def test_notifications_follow_records(dispatcher: Dispatcher, board) -> None:
    seen = AuditTrailObserver()
    dispatcher.bus.subscribe("card.*", seen)

    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")
    dispatcher.move_card(card.id, _cols(board)[1], "alice")

    assert [n.topic for n in seen.notifications] == ["card.created", "card.moved"]
    first = seen.notifications[0]
    assert first.board_id == board.id
    assert first.record == dispatcher.history(card.id)[0]


def test_failing_subscriber_does_not_undo_mutation(dispatcher: Dispatcher, board) -> None:
    def boom(_: Notification) -> None:
        raise RuntimeError("nope")

    dispatcher.bus.subscribe("*", boom)
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice")
    assert card.id in dispatcher.stores.cards
    assert len(dispatcher.history(card.id)) == 1


@pytest.mark.parametrize(
    ("title", "actor_id", "kwargs"),
    [
        ("bad \ud800 title", "alice", {}),
        ("A", "alice", {"description": "bad \udc00"}),
        ("A", "alice", {"description": None}),
        ("A", "alice", {"tags": ["ok", "bad \ud800"]}),
        ("A", "alice", {"tags": [1, 2]}),
        ("A", "alice", {"tags": "urgent"}),
        ("A", "bad \ud800 actor", {}),
    ],
)
def test_rejected_card_input_leaves_store_and_chain_untouched(
    dispatcher: Dispatcher, board, title: str, actor_id: str, kwargs
) -> None:
    before = len(dispatcher.chain)

    with pytest.raises(ValidationError):
        dispatcher.create_card(board.id, _cols(board)[0], title, actor_id, **kwargs)

    assert len(dispatcher.stores.cards) == 0
    assert dispatcher.stores.cards.find_by_column(_cols(board)[0]) == []
    assert len(dispatcher.chain) == before


def test_rejected_card_edits_leave_card_untouched(dispatcher: Dispatcher, board) -> None:
    card = dispatcher.create_card(board.id, _cols(board)[0], "A", "alice", description="d")
    before = len(dispatcher.chain)

    with pytest.raises(ValidationError):
        dispatcher.update_card(card.id, {"description": "bad \ud800"}, "alice")
    with pytest.raises(ValidationError):
        dispatcher.update_card(card.id, {"title": "B"}, "bad \ud800")
    with pytest.raises(ValidationError):
        dispatcher.assign_card(card.id, "bob", "bad \ud800")
    with pytest.raises(ValidationError):
        dispatcher.move_card(card.id, _cols(board)[1], "bad \ud800")
    with pytest.raises(ValidationError):
        dispatcher.delete_card(card.id, "bad \ud800")

    assert dispatcher.stores.cards.get(card.id) == card
    assert len(dispatcher.chain) == before

from __future__ import annotations

import random
from dataclasses import dataclass

import pytest

from stickychain.core.exceptions import DuplicateEntityError, NotFoundError
from stickychain.core.store import IndexedStore, IndexSpec, new_id


@dataclass(frozen=True, slots=True)
class Item:
    id: str
    column_id: str | None = None
    owner: str | None = None
    parent_id: str | None = None
    tags: tuple[str, ...] = ()
    position: int = 0


def _store() -> IndexedStore[Item]:
    return IndexedStore(
        "Item",
        indexes=[
            IndexSpec("column_id", ordered=True, position_field="position"),
            IndexSpec("owner"),
            IndexSpec("tags", multi=True),
        ],
        parent_field="parent_id",
    )


def _ids(items: list[Item]) -> list[str]:
    return [i.id for i in items]


def test_index_spec_rejects_bad_combinations() -> None:
    with pytest.raises(ValueError):
        IndexSpec("x", position_field="position")
    with pytest.raises(ValueError):
        IndexSpec("x", ordered=True, multi=True)


def test_update_moves_entity_between_buckets() -> None:
    s = _store()
    s.create(Item(id="i1", column_id="backlog"))
    assert _ids(s.find_by_index("column_id", "backlog")) == ["i1"]

    s.update("i1", {"column_id": "done"})
    assert _ids(s.find_by_index("column_id", "backlog")) == []
    assert _ids(s.find_by_index("column_id", "done")) == ["i1"]


def test_create_rejects_duplicates() -> None:
    s = _store()
    s.create(Item(id="i1"))
    with pytest.raises(DuplicateEntityError):
        s.create(Item(id="i1"))


def test_get_and_find_by_id() -> None:
    s = _store()
    s.create(Item(id="i1"))
    assert s.find_by_id("i1") == s.get("i1")
    assert s.find_by_id("nope") is None
    with pytest.raises(NotFoundError) as exc:
        s.get("nope")
    assert (exc.value.kind, exc.value.entity_id) == ("Item", "nope")


def test_update_rejects_unknown_id_and_fields() -> None:
    s = _store()
    s.create(Item(id="i1"))
    with pytest.raises(NotFoundError):
        s.update("nope", {"owner": "a"})
    with pytest.raises(ValueError):
        s.update("i1", {"colour": "red"})
    with pytest.raises(ValueError):
        s.update("i1", {"id": "i2"})


def test_delete_removes_from_every_index() -> None:
    s = _store()
    s.create(Item(id="i1", column_id="c", owner="a", tags=("x", "y")))
    assert s.delete("i1") is True

    assert "i1" not in s
    assert s.find_by_index("column_id", "c") == []
    assert s.find_by_index("owner", "a") == []
    assert s.find_by_index("tags", "x") == []
    with pytest.raises(NotFoundError):
        s.delete("i1")


def test_none_values_are_not_indexed() -> None:
    s = _store()
    s.create(Item(id="i1"))
    assert s.index_keys("owner") == []
    s.update("i1", {"owner": "a"})
    assert s.index_keys("owner") == ["a"]
    s.update("i1", {"owner": None})
    assert s.index_keys("owner") == []


def test_multi_value_index() -> None:
    s = _store()
    s.create(Item(id="i1", tags=("python", "rust")))
    s.create(Item(id="i2", tags=("python",)))
    assert sorted(_ids(s.find_by_index("tags", "python"))) == ["i1", "i2"]

    s.update("i1", {"tags": ("go",)})
    assert _ids(s.find_by_index("tags", "python")) == ["i2"]
    assert _ids(s.find_by_index("tags", "rust")) == []
    assert _ids(s.find_by_index("tags", "go")) == ["i1"]


def test_unknown_index_raises_key_error() -> None:
    s = _store()
    with pytest.raises(KeyError):
        s.find_by_index("colour", "red")


def test_ordered_index_stamps_positions() -> None:
    s = _store()
    for i in range(3):
        s.create(Item(id=f"i{i}", column_id="c"))
    assert [(i.id, i.position) for i in s.find_by_index("column_id", "c")] == [("i0", 0), ("i1", 1), ("i2", 2)]

    s.delete("i1")
    assert [(i.id, i.position) for i in s.find_by_index("column_id", "c")] == [("i0", 0), ("i2", 1)]

    s.update("i0", {"column_id": "d"})
    assert s.get("i0").position == 0
    assert s.get("i2").position == 0


def test_reposition_within_and_across_buckets() -> None:
    s = _store()
    for i in range(3):
        s.create(Item(id=f"i{i}", column_id="a"))

    s.reposition("i2", "column_id", "a", 0)
    assert _ids(s.find_by_index("column_id", "a")) == ["i2", "i0", "i1"]
    assert [i.position for i in s.find_by_index("column_id", "a")] == [0, 1, 2]

    s.reposition("i0", "column_id", "b", 99)
    assert _ids(s.find_by_index("column_id", "a")) == ["i2", "i1"]
    assert s.get("i0").column_id == "b"
    assert s.get("i0").position == 0
    assert s.get("i1").position == 1


def test_reposition_requires_ordered_index() -> None:
    s = _store()
    s.create(Item(id="i1", owner="a"))
    with pytest.raises(ValueError):
        s.reposition("i1", "owner", "b", 0)


def test_descendants_of_small_tree() -> None:
    s = _store()
    s.create(Item(id="P"))
    s.create(Item(id="C1", parent_id="P"))
    s.create(Item(id="C2", parent_id="P"))
    s.create(Item(id="G", parent_id="C1"))

    assert set(_ids(s.find_all_descendants("P"))) == {"C1", "C2", "G"}
    assert _ids(s.find_children("P")) == ["C1", "C2"]
    assert s.find_all_descendants("G") == []


def test_descendants_regardless_of_insertion_order() -> None:
    rng = random.Random(11)
    parents = {"root": None}
    for n in range(1, 60):
        parents[f"n{n}"] = rng.choice(list(parents))

    order = list(parents)
    rng.shuffle(order)
    s = _store()
    for node in order:
        s.create(Item(id=node, parent_id=parents[node]))

    def reachable(root: str) -> set[str]:
        out = set()
        frontier = [root]
        while frontier:
            cur = frontier.pop()
            for child, parent in parents.items():
                if parent == cur:
                    out.add(child)
                    frontier.append(child)
        return out

    for node in ["root", "n1", "n5"]:
        found = _ids(s.find_all_descendants(node))
        assert len(found) == len(set(found))
        assert set(found) == reachable(node)


def test_deep_chain_does_not_recurse() -> None:
    s = _store()
    s.create(Item(id="n0"))
    for n in range(1, 5000):
        s.create(Item(id=f"n{n}", parent_id=f"n{n - 1}"))
    assert len(s.find_all_descendants("n0")) == 4999


def test_find_children_requires_parent_field() -> None:
    s: IndexedStore[Item] = IndexedStore("Item")
    with pytest.raises(ValueError):
        s.find_children("x")


def test_random_operations_keep_indexes_exact() -> None:
    rng = random.Random(3)
    s = _store()
    live: dict[str, Item] = {}

    for _ in range(400):
        op = rng.choice(["create", "update", "delete"])
        if op == "create" or not live:
            item = Item(id=new_id(), column_id=rng.choice(["a", "b", None]), owner=rng.choice(["x", "y", None]))
            live[item.id] = s.create(item)
        elif op == "update":
            eid = rng.choice(list(live))
            live[eid] = s.update(eid, {"column_id": rng.choice(["a", "b", "c"]), "owner": rng.choice(["x", "y"])})
        else:
            eid = rng.choice(list(live))
            s.delete(eid)
            del live[eid]

        current = {eid: s.get(eid) for eid in live}
        for field in ("column_id", "owner"):
            for value in ("a", "b", "c", "x", "y"):
                expected = {eid for eid, item in current.items() if getattr(item, field) == value}
                assert set(s.ids_by_index(field, value)) == expected
        for col in ("a", "b", "c"):
            assert [i.position for i in s.find_by_index("column_id", col)] == list(
                range(len(s.ids_by_index("column_id", col)))
            )


def test_stats() -> None:
    s = _store()
    s.create(Item(id="i1", owner="a", column_id="c"))
    stats = s.stats()
    assert stats["kind"] == "Item"
    assert stats["total"] == 1
    assert stats["indexes"]["owner"] == 1
    assert stats["indexes"]["tags"] == 0

"""stickychain.core.store

Current state, indexed.

The chain remembers everything and answers slowly. The store remembers only the
present and answers in O(1). A stale index entry is a lie about the present, so
every insert, indexed update and delete keeps the buckets exact.

Entities are frozen dataclasses with an `id`. Updates swap the stored instance
(`dataclasses.replace`), so nobody can mutate an indexed field behind the
store's back.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from stickychain.core.exceptions import DuplicateEntityError, NotFoundError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class IndexSpec:
    """Secondary index declaration.

    - ordered: bucket is a list whose order is meaningful (column membership).
    - multi: the field holds an iterable; every element is a key (skills).
    - position_field: ordered buckets stamp each member's index into this field.
    """

    field: str
    ordered: bool = False
    multi: bool = False
    position_field: str | None = None

    def __post_init__(self) -> None:
        if self.position_field is not None and not self.ordered:
            raise ValueError(f"index {self.field}: position_field requires ordered=True")
        if self.ordered and self.multi:
            raise ValueError(f"index {self.field}: ordered multi-value indexes are not supported")


class IndexedStore(Generic[T]):
    """Generic in-memory keyed store with secondary indexes."""

    def __init__(
        self,
        kind: str,
        *,
        indexes: Iterable[IndexSpec] = (),
        parent_field: str | None = None,
    ) -> None:
        self.kind = kind
        self._items: dict[str, T] = {}
        self._specs: dict[str, IndexSpec] = {s.field: s for s in indexes}
        self.parent_field = parent_field
        if parent_field is not None and parent_field not in self._specs:
            self._specs[parent_field] = IndexSpec(parent_field, ordered=True)
        # Unordered buckets are dicts used as insertion-ordered sets.
        self._buckets: dict[str, dict[Hashable, Any]] = {name: {} for name in self._specs}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    @property
    def index_names(self) -> list[str]:
        return list(self._specs)

    # -----------------
    # CRUD
    # -----------------

    def create(self, entity: T) -> T:
        entity_id = _entity_id(entity)
        if entity_id in self._items:
            raise DuplicateEntityError(f"{self.kind} {entity_id} already exists")

        for spec in self._specs.values():
            if spec.position_field is None:
                continue
            key = getattr(entity, spec.field)
            if key is not None:
                size = len(self._buckets[spec.field].get(key, ()))
                entity = dataclasses.replace(entity, **{spec.position_field: size})

        self._items[entity_id] = entity
        for spec in self._specs.values():
            self._index_add(spec, entity)
        return entity

    def find_by_id(self, entity_id: str) -> T | None:
        return self._items.get(entity_id)

    def get(self, entity_id: str) -> T:
        entity = self._items.get(entity_id)
        if entity is None:
            raise NotFoundError(self.kind, entity_id)
        return entity

    def find_all(self) -> list[T]:
        return list(self._items.values())

    def update(self, entity_id: str, changes: Mapping[str, Any]) -> T:
        """Merge fields. Indexed fields that change move buckets before returning."""

        current = self.get(entity_id)
        known = {f.name for f in dataclasses.fields(current)}  # type: ignore[arg-type]
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"unknown {self.kind} field(s): {', '.join(sorted(unknown))}")
        if "id" in changes and changes["id"] != entity_id:
            raise ValueError(f"{self.kind} id is immutable")

        moved = [
            spec
            for spec in self._specs.values()
            if spec.field in changes and changes[spec.field] != getattr(current, spec.field)
        ]
        for spec in moved:
            self._index_remove(spec, current)

        updated = dataclasses.replace(current, **dict(changes))
        for spec in moved:
            if spec.position_field is not None and getattr(updated, spec.field) is not None:
                size = len(self._buckets[spec.field].get(getattr(updated, spec.field), ()))
                updated = dataclasses.replace(updated, **{spec.position_field: size})

        self._items[entity_id] = updated
        for spec in moved:
            self._index_add(spec, updated)
        return self._items[entity_id]

    def delete(self, entity_id: str) -> bool:
        entity = self.get(entity_id)
        for spec in self._specs.values():
            self._index_remove(spec, entity)
        del self._items[entity_id]
        return True

    def reposition(self, entity_id: str, field: str, value: Hashable, position: int) -> T:
        """Move an entity into an ordered bucket at `position` (clamped).

        Works within one bucket (reorder) and across buckets (move).
        """

        spec = self._spec(field)
        if not spec.ordered:
            raise ValueError(f"{self.kind} index {field} is not ordered")

        current = self.get(entity_id)
        self._index_remove(spec, current)

        updated = dataclasses.replace(current, **{field: value})
        self._items[entity_id] = updated

        bucket: list[str] = self._buckets[field].setdefault(value, [])
        bucket.insert(max(0, min(position, len(bucket))), entity_id)
        self._restamp(spec, value)
        return self._items[entity_id]

    # -----------------
    # Queries
    # -----------------

    def ids_by_index(self, field: str, value: Hashable) -> list[str]:
        self._spec(field)
        return list(self._buckets[field].get(value, ()))

    def find_by_index(self, field: str, value: Hashable) -> list[T]:
        """Members of one bucket. Ordered indexes return in bucket order."""

        return [self._items[i] for i in self.ids_by_index(field, value)]

    def index_keys(self, field: str) -> list[Hashable]:
        self._spec(field)
        return [k for k, members in self._buckets[field].items() if members]

    def find_children(self, parent_id: str) -> list[T]:
        if self.parent_field is None:
            raise ValueError(f"{self.kind} store has no parent field")
        return self.find_by_index(self.parent_field, parent_id)

    def find_all_descendants(self, parent_id: str) -> list[T]:
        """Full subtree below `parent_id`.

        Iterative depth-first walk with an explicit stack; deep trees do not
        touch the recursion limit. Parent edges only point downward, so every
        node is reached once.
        """

        if self.parent_field is None:
            raise ValueError(f"{self.kind} store has no parent field")

        out: list[T] = []
        stack = [parent_id]
        while stack:
            current = stack.pop()
            for child in self.find_by_index(self.parent_field, current):
                out.append(child)
                stack.append(_entity_id(child))
        return out

    def stats(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "total": len(self._items),
            "indexes": {name: len(self.index_keys(name)) for name in self._specs},
        }

    # -----------------
    # Index maintenance
    # -----------------

    def _spec(self, field: str) -> IndexSpec:
        try:
            return self._specs[field]
        except KeyError:
            raise KeyError(f"{self.kind} store has no index on {field!r}") from None

    @staticmethod
    def _keys(spec: IndexSpec, entity: Any) -> list[Hashable]:
        value = getattr(entity, spec.field)
        if value is None:
            return []
        if spec.multi:
            return list(dict.fromkeys(value))
        return [value]

    def _index_add(self, spec: IndexSpec, entity: Any) -> None:
        entity_id = _entity_id(entity)
        buckets = self._buckets[spec.field]
        for key in self._keys(spec, entity):
            if spec.ordered:
                bucket = buckets.setdefault(key, [])
                if entity_id not in bucket:
                    bucket.append(entity_id)
            else:
                buckets.setdefault(key, {})[entity_id] = None

    def _index_remove(self, spec: IndexSpec, entity: Any) -> None:
        entity_id = _entity_id(entity)
        buckets = self._buckets[spec.field]
        for key in self._keys(spec, entity):
            bucket = buckets.get(key)
            if bucket is None:
                continue
            if spec.ordered:
                if entity_id in bucket:
                    bucket.remove(entity_id)
                    self._restamp(spec, key)
            else:
                bucket.pop(entity_id, None)
            if not bucket:
                del buckets[key]

    def _restamp(self, spec: IndexSpec, key: Hashable) -> None:
        if spec.position_field is None:
            return
        for pos, member_id in enumerate(self._buckets[spec.field].get(key, ())):
            member = self._items.get(member_id)
            if member is not None and getattr(member, spec.position_field) != pos:
                self._items[member_id] = dataclasses.replace(member, **{spec.position_field: pos})


def _entity_id(entity: Any) -> str:
    try:
        return str(entity.id)
    except AttributeError:
        raise TypeError(f"{type(entity).__name__} has no id field") from None


def new_id() -> str:
    """Short random entity id."""

    return uuid.uuid4().hex[:12]

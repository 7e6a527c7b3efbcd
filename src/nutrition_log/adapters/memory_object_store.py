"""In-process object store used for local runs and tests."""

from dataclasses import dataclass, field
from functools import cmp_to_key
from uuid import UUID

from nutrition_log.domain.query import Contains, Eq, Filter, Query, Range, SortKey
from nutrition_log.errors import StoreError
from nutrition_log.services.store import Entity, EntityT, ObjectStore


@dataclass
class InMemoryObjectStore(ObjectStore):
    """Keeps a working set and the last committed set of entities."""

    _working: dict[type, dict[UUID, Entity]] = field(default_factory=dict)
    _committed: dict[type, dict[UUID, Entity]] = field(default_factory=dict)
    commit_count: int = 0

    def insert(self, entity: Entity) -> None:
        """Stage a new entity."""
        table = self._table(type(entity))
        if entity.id in table:
            raise StoreError(f"{type(entity).__name__} {entity.id} already exists")
        table[entity.id] = entity

    def update(self, entity: Entity) -> None:
        """Stage a replacement entity."""
        table = self._table(type(entity))
        if entity.id not in table:
            raise StoreError(f"{type(entity).__name__} {entity.id} does not exist")
        table[entity.id] = entity

    def delete(self, entity: Entity) -> None:
        """Stage removal of an entity."""
        self._table(type(entity)).pop(entity.id, None)

    def get(self, kind: type[EntityT], entity_id: UUID) -> EntityT | None:
        """Return an entity by id."""
        return self._table(kind).get(entity_id)

    def fetch(self, kind: type[EntityT], query: Query) -> list[EntityT]:
        """Return matching entities, sorted and windowed."""
        rows = [
            entity
            for entity in self._table(kind).values()
            if all(_matches(entity, item) for item in query.filters)
        ]
        if query.sort:
            rows.sort(key=cmp_to_key(lambda a, b: _compare(a, b, query.sort)))
        end = None if query.limit is None else query.offset + query.limit
        return rows[query.offset : end]

    def commit(self) -> None:
        """Promote the working set to the committed set."""
        self._committed = {kind: dict(rows) for kind, rows in self._working.items()}
        self.commit_count += 1

    def rollback(self) -> None:
        """Restore the working set from the last commit."""
        self._working = {kind: dict(rows) for kind, rows in self._committed.items()}

    def _table(self, kind: type) -> dict[UUID, Entity]:
        return self._working.setdefault(kind, {})


def _matches(entity: Entity, item: Filter) -> bool:
    match item:
        case Eq(field=name, value=value):
            return getattr(entity, name) == value
        case Contains(fields=names, text=text):
            needle = text.casefold()
            return any(needle in str(getattr(entity, name)).casefold() for name in names)
        case Range(field=name, start=start, end=end):
            value = getattr(entity, name)
            if value is None:
                return False
            if start is not None and value < start:
                return False
            return not (end is not None and value >= end)
    return False


def _compare(left: Entity, right: Entity, sort: tuple[SortKey, ...]) -> int:
    for key in sort:
        a = getattr(left, key.field)
        b = getattr(right, key.field)
        if isinstance(a, str) and isinstance(b, str):
            a, b = a.casefold(), b.casefold()
        if a == b:
            continue
        if a is None:
            return 1
        if b is None:
            return -1
        result = -1 if a < b else 1
        return -result if key.descending else result
    return 0

"""Persistence interface shared by the catalog and log services."""

from typing import Protocol, TypeVar
from uuid import UUID

from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.logs import LogEntry
from nutrition_log.domain.query import Query

Entity = CatalogEntry | LogEntry
EntityT = TypeVar("EntityT", CatalogEntry, LogEntry)


class ObjectStore(Protocol):
    """Unit-of-work style object store.

    ``insert``, ``update`` and ``delete`` stage changes; ``commit`` makes
    them durable and ``rollback`` discards everything staged since the
    last commit. A single writer is assumed.
    """

    def insert(self, entity: Entity) -> None:
        """Stage a new entity."""

    def update(self, entity: Entity) -> None:
        """Stage a replacement for an existing entity with the same id."""

    def delete(self, entity: Entity) -> None:
        """Stage removal of an entity."""

    def get(self, kind: type[EntityT], entity_id: UUID) -> EntityT | None:
        """Return an entity by id, if present."""

    def fetch(self, kind: type[EntityT], query: Query) -> list[EntityT]:
        """Return entities matching the query, ordered and windowed."""

    def commit(self) -> None:
        """Persist staged changes as one unit."""

    def rollback(self) -> None:
        """Discard staged changes."""

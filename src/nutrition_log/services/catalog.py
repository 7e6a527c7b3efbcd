"""Services for managing the nutrition catalog."""

import dataclasses
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

from nutrition_log.domain.catalog import CatalogEntry, CatalogFields
from nutrition_log.domain.query import CATALOG_SEARCH_ORDER, Contains, Eq, Query
from nutrition_log.errors import CatalogEntryNotFound, DuplicateKeyError
from nutrition_log.services.store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class CatalogService:
    """Application service for catalog entries and their usage counters."""

    store: ObjectStore

    def create(self, fields: CatalogFields) -> CatalogEntry:
        """Create an entry; raise ``DuplicateKeyError`` when the profile exists."""
        existing = self.find_by_dedup_key(fields.dedup_key)
        if existing is not None:
            raise DuplicateKeyError(fields.dedup_key, existing.id)
        entry = CatalogEntry.from_fields(uuid4(), fields)
        self.store.insert(entry)
        self.store.commit()
        logger.info("Created catalog entry", extra={"catalog_id": str(entry.id)})
        return entry

    def get_or_create(self, fields: CatalogFields) -> CatalogEntry:
        """Return the entry with the same profile, creating it if needed."""
        try:
            return self.create(fields)
        except DuplicateKeyError as exc:
            return self.require(exc.existing_id)

    def update(self, entry_id: UUID, fields: CatalogFields) -> CatalogEntry:
        """Apply edited fields and re-derive the dedup key."""
        current = self.require(entry_id)
        existing = self.find_by_dedup_key(fields.dedup_key)
        if existing is not None and existing.id != entry_id:
            raise DuplicateKeyError(fields.dedup_key, existing.id)
        updated = dataclasses.replace(
            current,
            brand_name=fields.brand_name,
            product_name=fields.product_name,
            calories=fields.calories,
            net_carbs=fields.net_carbs,
            dietary_fiber=fields.dietary_fiber,
            fat=fields.fat,
            protein=fields.protein,
            portion_size=fields.portion_size,
            portion_unit=fields.portion_unit,
            dedup_key=fields.dedup_key,
        )
        self.store.update(updated)
        self.store.commit()
        return updated

    def get(self, entry_id: UUID) -> CatalogEntry | None:
        """Return an entry by id, if present."""
        return self.store.get(CatalogEntry, entry_id)

    def require(self, entry_id: UUID) -> CatalogEntry:
        """Return an entry by id or raise ``CatalogEntryNotFound``."""
        entry = self.get(entry_id)
        if entry is None:
            raise CatalogEntryNotFound(f"Catalog entry {entry_id} not found")
        return entry

    def find_by_dedup_key(self, dedup_key: str) -> CatalogEntry | None:
        matches = self.store.fetch(
            CatalogEntry, Query(filters=(Eq("dedup_key", dedup_key),), limit=1)
        )
        return matches[0] if matches else None

    def search(
        self, query: str | None, offset: int = 0, limit: int = 20
    ) -> list[CatalogEntry]:
        """Return one page of entries, most used first.

        Each call runs its own query, so paging stays valid while the
        catalog changes between pages.
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        filters = ()
        if query and query.strip():
            filters = (Contains(("brand_name", "product_name"), query.strip()),)
        return self.store.fetch(
            CatalogEntry,
            Query(
                filters=filters,
                sort=CATALOG_SEARCH_ORDER,
                offset=max(offset, 0),
                limit=limit,
            ),
        )

    def iter_search(self, query: str | None, page_size: int = 20) -> Iterator[CatalogEntry]:
        """Yield every match, fetching one page at a time."""
        offset = 0
        while True:
            page = self.search(query, offset=offset, limit=page_size)
            yield from page
            if len(page) < page_size:
                return
            offset += page_size

    def increment_usage(
        self, entry_id: UUID, servings: float | None = None, *, commit: bool = True
    ) -> CatalogEntry:
        """Count one more use and remember when and how much was used."""
        current = self.require(entry_id)
        updated = dataclasses.replace(
            current,
            usage_count=current.usage_count + 1,
            last_used_at=datetime.now(tz=UTC),
            last_number_of_servings=(
                servings if servings is not None else current.last_number_of_servings
            ),
        )
        self.store.update(updated)
        if commit:
            self.store.commit()
        return updated

    def decrement_usage(self, entry_id: UUID, *, commit: bool = True) -> CatalogEntry:
        """Count one less use, never going below zero."""
        current = self.require(entry_id)
        if current.usage_count <= 0:
            return current
        updated = dataclasses.replace(current, usage_count=current.usage_count - 1)
        self.store.update(updated)
        if commit:
            self.store.commit()
        return updated

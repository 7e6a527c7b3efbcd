"""Consumption log service."""

import dataclasses
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.logs import (
    Detached,
    Linked,
    LogEntry,
    NutritionSource,
    ResolvedLogEntry,
    Standalone,
)
from nutrition_log.domain.nutrition import MealType, NutritionSnapshot, NutritionValues
from nutrition_log.domain.query import LOG_TIMELINE_ORDER, Eq, Query, Range, SortKey
from nutrition_log.domain.stats import DailySummary
from nutrition_log.errors import (
    InvalidServingsError,
    LogEntryNotFound,
    MasterDeletedError,
)
from nutrition_log.services.catalog import CatalogService
from nutrition_log.services.store import ObjectStore

logger = logging.getLogger(__name__)

PAST_ITEMS_LIMIT = 100


@dataclass
class LogService:
    """Creates, edits and reads log entries.

    Usage counters of linked catalog entries are maintained here, so
    callers never adjust them by hand.
    """

    store: ObjectStore
    catalog: CatalogService

    def create(  # noqa: PLR0913
        self,
        timestamp: datetime,
        meal_type: MealType,
        servings: float,
        catalog_id: UUID | None = None,
        snapshot: NutritionSnapshot | None = None,
        *,
        commit: bool = True,
    ) -> LogEntry:
        """Create a log entry linked to a catalog entry or carrying a snapshot."""
        _check_servings(servings)
        if catalog_id is not None:
            food = self.catalog.increment_usage(catalog_id, servings, commit=False)
            source: NutritionSource = Linked(
                catalog_id=food.id, snapshot=food.snapshot()
            )
        elif snapshot is not None:
            source = Standalone(snapshot=snapshot)
        else:
            raise ValueError("A log entry needs a catalog entry or a snapshot")
        entry = LogEntry(
            id=uuid4(),
            timestamp=timestamp,
            meal_type=meal_type,
            number_of_servings=servings,
            source=source,
        )
        self.store.insert(entry)
        if commit:
            self.store.commit()
        return entry

    def get(self, entry_id: UUID) -> LogEntry | None:
        return self.store.get(LogEntry, entry_id)

    def require(self, entry_id: UUID) -> LogEntry:
        entry = self.get(entry_id)
        if entry is None:
            raise LogEntryNotFound(f"Log entry {entry_id} not found")
        return entry

    def delete(self, entry_id: UUID) -> None:
        """Delete a log entry and release its catalog usage."""
        entry = self.require(entry_id)
        if entry.catalog_id is not None and self.catalog.get(entry.catalog_id):
            self.catalog.decrement_usage(entry.catalog_id, commit=False)
        self.store.delete(entry)
        self.store.commit()

    def update_servings(self, entry_id: UUID, servings: float) -> LogEntry:
        """Change the number of servings of an entry."""
        _check_servings(servings)
        entry = self.require(entry_id)
        updated = dataclasses.replace(entry, number_of_servings=servings)
        self.store.update(updated)
        self.store.commit()
        return updated

    def relink(self, entry_id: UUID, catalog_id: UUID) -> LogEntry:
        """Point an entry at another catalog entry, moving the usage count."""
        entry = self.require(entry_id)
        if isinstance(entry.source, Detached):
            raise MasterDeletedError(
                f"Log entry {entry_id} lost its catalog entry and cannot be relinked"
            )
        if entry.catalog_id == catalog_id:
            return entry
        food = self.catalog.increment_usage(
            catalog_id, entry.number_of_servings, commit=False
        )
        if entry.catalog_id is not None:
            self.catalog.decrement_usage(entry.catalog_id, commit=False)
        updated = dataclasses.replace(
            entry, source=Linked(catalog_id=food.id, snapshot=food.snapshot())
        )
        self.store.update(updated)
        self.store.commit()
        return updated

    def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        meal_type: MealType | None = None,
    ) -> list[LogEntry]:
        """Return entries with ``start <= timestamp < end``, oldest first."""
        filters: list = [Range("timestamp", start, end)]
        if meal_type is not None:
            filters.append(Eq("meal_type", meal_type))
        return self.store.fetch(
            LogEntry, Query(filters=tuple(filters), sort=LOG_TIMELINE_ORDER)
        )

    def list_all(self, *, descending: bool = True) -> list[LogEntry]:
        """Return every entry ordered by timestamp."""
        return self.store.fetch(
            LogEntry, Query(sort=(SortKey("timestamp", descending=descending),))
        )

    def profile(self, entry: LogEntry) -> NutritionSnapshot:
        """Return the live catalog profile, falling back to the snapshot."""
        return entry.profile(self._linked_food(entry))

    def resolve(self, entry: LogEntry) -> ResolvedLogEntry:
        """Return the entry with nutrient values scaled by its servings."""
        profile = self.profile(entry)
        return ResolvedLogEntry(
            entry=entry,
            profile=profile,
            values=profile.scaled(entry.number_of_servings),
        )

    def iter_resolved(self, entries: Iterable[LogEntry]) -> Iterator[ResolvedLogEntry]:
        """Resolve entries lazily, loading each linked catalog entry once."""
        foods: dict[UUID, CatalogEntry | None] = {}
        for entry in entries:
            catalog_id = entry.catalog_id
            if catalog_id is not None and catalog_id not in foods:
                foods[catalog_id] = self.catalog.get(catalog_id)
            profile = entry.profile(foods.get(catalog_id) if catalog_id else None)
            yield ResolvedLogEntry(
                entry=entry,
                profile=profile,
                values=profile.scaled(entry.number_of_servings),
            )

    def copy_day(
        self, source_day: date, target_day: date, timezone_name: str = "UTC"
    ) -> list[LogEntry]:
        """Repeat every entry of ``source_day`` on ``target_day``."""
        tz = ZoneInfo(timezone_name)
        start, end = _day_bounds(source_day, tz)
        shift = target_day - source_day
        copies: list[LogEntry] = []
        for entry in self.query(start, end):
            timestamp = entry.timestamp + shift
            if isinstance(entry.source, Linked) and self.catalog.get(
                entry.source.catalog_id
            ):
                copy = self.create(
                    timestamp,
                    entry.meal_type,
                    entry.number_of_servings,
                    catalog_id=entry.source.catalog_id,
                    commit=False,
                )
            else:
                copy = self.create(
                    timestamp,
                    entry.meal_type,
                    entry.number_of_servings,
                    snapshot=self.profile(entry),
                    commit=False,
                )
            copies.append(copy)
        self.store.commit()
        logger.info(
            "Copied log entries",
            extra={"source_day": str(source_day), "copied": len(copies)},
        )
        return copies

    def daily_summary(self, day: date, timezone_name: str = "UTC") -> DailySummary:
        """Return totals for a day, overall and per meal."""
        start, end = _day_bounds(day, ZoneInfo(timezone_name))
        entries = self.query(start, end)
        totals = NutritionValues.zero()
        by_meal: dict[MealType, NutritionValues] = {}
        for resolved in self.iter_resolved(entries):
            meal_type = resolved.entry.meal_type
            totals = totals + resolved.values
            by_meal[meal_type] = (
                by_meal.get(meal_type, NutritionValues.zero()) + resolved.values
            )
        return DailySummary(
            day=day, totals=totals, by_meal=by_meal, entry_count=len(entries)
        )

    def search_history(
        self, query: str, limit: int = PAST_ITEMS_LIMIT
    ) -> list[ResolvedLogEntry]:
        """Return past entries whose brand or product matches, newest first."""
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        needle = query.strip().casefold()
        results: list[ResolvedLogEntry] = []
        for resolved in self.iter_resolved(self.list_all(descending=True)):
            haystack = f"{resolved.profile.brand_name} {resolved.profile.product_name}"
            if needle in haystack.casefold():
                results.append(resolved)
                if len(results) >= limit:
                    break
        return results

    def _linked_food(self, entry: LogEntry) -> CatalogEntry | None:
        if entry.catalog_id is None:
            return None
        return self.catalog.get(entry.catalog_id)


def _check_servings(servings: float) -> None:
    if not servings > 0:
        raise InvalidServingsError(servings)


def _day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


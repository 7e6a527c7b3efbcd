"""Declarative queries understood by every object store."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Eq:
    """Field equals value."""

    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match on any of the fields."""

    fields: tuple[str, ...]
    text: str


@dataclass(frozen=True)
class Range:
    """Half-open range ``start <= field < end``; either bound may be open."""

    field: str
    start: Any = None
    end: Any = None


Filter = Eq | Contains | Range


@dataclass(frozen=True)
class SortKey:
    """Sort on a field; missing values always sort last."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Filters, ordering and a page window."""

    filters: tuple[Filter, ...] = ()
    sort: tuple[SortKey, ...] = ()
    offset: int = 0
    limit: int | None = None


CATALOG_SEARCH_ORDER = (
    SortKey("usage_count", descending=True),
    SortKey("last_used_at", descending=True),
    SortKey("product_name"),
)

LOG_TIMELINE_ORDER = (SortKey("timestamp"),)


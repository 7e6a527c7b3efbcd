"""Domain models for CSV import and export."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

ProgressCallback = Callable[[float, int, int], bool]
"""Receives (fraction complete, rows processed, total rows); True cancels."""


class ImportCommitMode(StrEnum):
    """When imported rows are committed."""

    PER_ROW = "per_row"
    ALL_OR_NOTHING = "all_or_nothing"


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of a CSV import."""

    imported: int
    total_rows: int
    cancelled: bool = False


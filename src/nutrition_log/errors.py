"""Error types raised by the nutrition log core."""

from enum import StrEnum
from uuid import UUID


class NutritionLogError(Exception):
    """Base class for nutrition log errors."""


class DataErrorReason(StrEnum):
    """Why a CSV row was rejected."""

    INVALID_FORMAT = "invalid_format"
    INVALID_DATE = "invalid_date"
    INVALID_MEAL_TYPE = "invalid_meal_type"
    INVALID_NUMERIC = "invalid_numeric"


class DataError(NutritionLogError):
    """A CSV row failed validation."""

    def __init__(
        self,
        row: int,
        column: str,
        reason: DataErrorReason,
        value: str | None = None,
    ) -> None:
        self.row = row
        self.column = column
        self.reason = reason
        self.value = value
        detail = f"row {row}: {reason.value} in column '{column}'"
        if value is not None:
            detail = f"{detail} ({value!r})"
        super().__init__(detail)


class FormatError(DataError):
    """Malformed row structure, date or meal type."""


class NumericError(DataError):
    """Non-numeric or out-of-range nutrient field."""


class FileAccessError(NutritionLogError, OSError):
    """A CSV or settings file could not be read or written."""


class DuplicateKeyError(NutritionLogError):
    """A catalog entry with the same dedup key already exists."""

    def __init__(self, dedup_key: str, existing_id: UUID) -> None:
        self.dedup_key = dedup_key
        self.existing_id = existing_id
        super().__init__(f"Catalog entry {existing_id} already uses key {dedup_key!r}")


class InvalidServingsError(NutritionLogError, ValueError):
    """Serving counts must be positive."""

    def __init__(self, servings: float) -> None:
        self.servings = servings
        super().__init__(f"Number of servings must be positive, got {servings}")


class CatalogEntryNotFound(NutritionLogError, LookupError):
    """No catalog entry exists for the given id."""


class LogEntryNotFound(NutritionLogError, LookupError):
    """No log entry exists for the given id."""


class MasterDeletedError(NutritionLogError):
    """The log entry's catalog entry was deleted; it cannot be relinked."""


class StoreError(NutritionLogError):
    """The object store failed to persist or load data."""

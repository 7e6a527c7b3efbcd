"""Domain models for the consumption log."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.nutrition import MealType, NutritionSnapshot, NutritionValues


@dataclass(frozen=True)
class Linked:
    """Entry backed by a live catalog entry."""

    catalog_id: UUID
    snapshot: NutritionSnapshot


@dataclass(frozen=True)
class Detached:
    """Entry whose catalog entry was deleted; only the snapshot remains."""

    snapshot: NutritionSnapshot


@dataclass(frozen=True)
class Standalone:
    """Entry that was never linked to the catalog."""

    snapshot: NutritionSnapshot


NutritionSource = Linked | Detached | Standalone


@dataclass(frozen=True)
class LogEntry:
    """One timestamped consumption event."""

    id: UUID
    timestamp: datetime
    meal_type: MealType
    number_of_servings: float
    source: NutritionSource

    @property
    def catalog_id(self) -> UUID | None:
        if isinstance(self.source, Linked):
            return self.source.catalog_id
        return None

    @property
    def is_master_deleted(self) -> bool:
        return isinstance(self.source, Detached)

    def profile(self, catalog: CatalogEntry | None = None) -> NutritionSnapshot:
        """Return the live catalog profile when linked, else the snapshot."""
        match self.source:
            case Linked(catalog_id=catalog_id, snapshot=snapshot):
                if catalog is not None and catalog.id == catalog_id:
                    return catalog.snapshot()
                return snapshot
            case Detached(snapshot=snapshot) | Standalone(snapshot=snapshot):
                return snapshot

    def values(self, catalog: CatalogEntry | None = None) -> NutritionValues:
        """Return nutrients scaled by the number of servings."""
        return self.profile(catalog).scaled(self.number_of_servings)


@dataclass(frozen=True)
class ResolvedLogEntry:
    """Log entry paired with its resolved profile and nutrient values."""

    entry: LogEntry
    profile: NutritionSnapshot
    values: NutritionValues

    @property
    def calories(self) -> float:
        return self.values.calories

    @property
    def protein(self) -> float:
        return self.values.protein

    @property
    def fat(self) -> float:
        return self.values.fat

    @property
    def carbs(self) -> float:
        return self.values.carbs

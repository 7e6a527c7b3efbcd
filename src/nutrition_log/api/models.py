"""Pydantic request models for the HTTP API."""

from datetime import date
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, Field

from nutrition_log.domain.catalog import CatalogFields
from nutrition_log.domain.nutrition import MealType, NutritionSnapshot


class CatalogPayload(BaseModel):
    """Catalog entry fields."""

    brand_name: str = ""
    product_name: str
    calories: float = Field(ge=0)
    net_carbs: float = Field(default=0.0, ge=0)
    dietary_fiber: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)
    protein: float = Field(default=0.0, ge=0)
    portion_unit: str = ""
    portion_size: float = Field(default=1.0, gt=0)

    def to_fields(self) -> CatalogFields:
        return CatalogFields(**self.model_dump())


class SnapshotPayload(CatalogPayload):
    """Nutrition values for a log entry without a catalog entry."""

    def to_snapshot(self) -> NutritionSnapshot:
        return NutritionSnapshot(**self.model_dump())


class LogCreatePayload(BaseModel):
    """New log entry."""

    timestamp: AwareDatetime
    meal_type: MealType
    servings: float
    catalog_id: UUID | None = None
    snapshot: SnapshotPayload | None = None


class LogUpdatePayload(BaseModel):
    """Serving-count or linked-entry edit."""

    servings: float | None = None
    catalog_id: UUID | None = None


class CopyDayPayload(BaseModel):
    """Copy one day's entries onto another day."""

    source_day: date
    target_day: date


class GoalsPayload(BaseModel):
    """Partial goal update."""

    target_protein: float | None = Field(default=None, ge=0)
    target_fat: float | None = Field(default=None, ge=0)
    target_net_carbs: float | None = Field(default=None, ge=0)
    target_fiber: float | None = Field(default=None, ge=0)


class TransferPayload(BaseModel):
    """CSV file name inside the data directory."""

    file_name: str = "nutrition_log.csv"

"""Domain models for the nutrition catalog."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from nutrition_log.domain.nutrition import NutritionSnapshot


@dataclass(frozen=True)
class CatalogFields:
    """Editable fields of a catalog entry."""

    brand_name: str
    product_name: str
    calories: float
    net_carbs: float
    dietary_fiber: float
    fat: float
    protein: float
    portion_unit: str
    portion_size: float = 1.0

    @property
    def dedup_key(self) -> str:
        return make_dedup_key(
            brand_name=self.brand_name,
            product_name=self.product_name,
            calories=self.calories,
            fat=self.fat,
            protein=self.protein,
            net_carbs=self.net_carbs,
            portion_unit=self.portion_unit,
        )


@dataclass(frozen=True)
class CatalogEntry:
    """A reusable food definition."""

    id: UUID
    brand_name: str
    product_name: str
    calories: float
    net_carbs: float
    dietary_fiber: float
    fat: float
    protein: float
    portion_size: float
    portion_unit: str
    dedup_key: str
    usage_count: int = 0
    last_used_at: datetime | None = None
    last_number_of_servings: float = 1.0

    @property
    def carbohydrates(self) -> float:
        """Total carbohydrates, derived from net carbs and fiber."""
        return self.net_carbs + self.dietary_fiber

    @classmethod
    def from_fields(cls, entry_id: UUID, fields: CatalogFields) -> "CatalogEntry":
        return cls(
            id=entry_id,
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
            last_number_of_servings=fields.portion_size,
        )

    def snapshot(self) -> NutritionSnapshot:
        """Capture the current nutrition profile."""
        return NutritionSnapshot(
            brand_name=self.brand_name,
            product_name=self.product_name,
            calories=self.calories,
            net_carbs=self.net_carbs,
            dietary_fiber=self.dietary_fiber,
            fat=self.fat,
            protein=self.protein,
            portion_size=self.portion_size,
            portion_unit=self.portion_unit,
        )


def make_dedup_key(  # noqa: PLR0913
    *,
    brand_name: str,
    product_name: str,
    calories: float,
    fat: float,
    protein: float,
    net_carbs: float,
    portion_unit: str,
) -> str:
    """Build the deterministic key identifying nutritionally identical foods."""
    parts = [
        _normalize_text(brand_name),
        _normalize_text(product_name),
        _format_amount(calories),
        _format_amount(fat),
        _format_amount(protein),
        _format_amount(net_carbs),
        _normalize_text(portion_unit),
    ]
    return "|".join(parts)


def _normalize_text(value: str) -> str:
    cleaned = " ".join(value.split()).casefold()
    return cleaned.replace("\\", "\\\\").replace("|", "\\|")


def _format_amount(value: float) -> str:
    formatted = f"{float(value):.2f}"
    # -0.001 rounds to "-0.00"
    if formatted == "-0.00":
        return "0.00"
    return formatted

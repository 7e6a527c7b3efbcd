"""Nutrition value objects shared by the catalog and the log."""

from dataclasses import dataclass
from enum import StrEnum


class MealType(StrEnum):
    """Meal category of a log entry."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"

    @classmethod
    def from_label(cls, label: str) -> "MealType | None":
        """Return the meal type for a label, ignoring case."""
        cleaned = label.strip().casefold()
        for meal_type in cls:
            if meal_type.value.casefold() == cleaned:
                return meal_type
        return None


@dataclass(frozen=True)
class NutritionValues:
    """Nutrients for an actual consumed amount."""

    calories: float
    net_carbs: float
    dietary_fiber: float
    fat: float
    protein: float

    @property
    def carbs(self) -> float:
        """Total carbohydrates."""
        return self.net_carbs + self.dietary_fiber

    @classmethod
    def zero(cls) -> "NutritionValues":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0)

    def __add__(self, other: "NutritionValues") -> "NutritionValues":
        return NutritionValues(
            calories=self.calories + other.calories,
            net_carbs=self.net_carbs + other.net_carbs,
            dietary_fiber=self.dietary_fiber + other.dietary_fiber,
            fat=self.fat + other.fat,
            protein=self.protein + other.protein,
        )


@dataclass(frozen=True)
class NutritionSnapshot:
    """Frozen copy of a catalog entry's nutrition profile.

    Nutrient values describe one portion of ``portion_size`` units.
    """

    brand_name: str
    product_name: str
    calories: float
    net_carbs: float
    dietary_fiber: float
    fat: float
    protein: float
    portion_size: float
    portion_unit: str

    @property
    def carbs(self) -> float:
        """Total carbohydrates."""
        return self.net_carbs + self.dietary_fiber

    def scaled(self, amount: float) -> NutritionValues:
        """Return nutrient values for ``amount`` portion units."""
        ratio = amount / self.portion_size if self.portion_size > 0 else 0.0
        return NutritionValues(
            calories=self.calories * ratio,
            net_carbs=self.net_carbs * ratio,
            dietary_fiber=self.dietary_fiber * ratio,
            fat=self.fat * ratio,
            protein=self.protein * ratio,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "brand_name": self.brand_name,
            "product_name": self.product_name,
            "calories": self.calories,
            "net_carbs": self.net_carbs,
            "dietary_fiber": self.dietary_fiber,
            "fat": self.fat,
            "protein": self.protein,
            "portion_size": self.portion_size,
            "portion_unit": self.portion_unit,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "NutritionSnapshot":
        return cls(
            brand_name=str(payload.get("brand_name", "")),
            product_name=str(payload.get("product_name", "")),
            calories=float(payload.get("calories", 0.0)),
            net_carbs=float(payload.get("net_carbs", 0.0)),
            dietary_fiber=float(payload.get("dietary_fiber", 0.0)),
            fat=float(payload.get("fat", 0.0)),
            protein=float(payload.get("protein", 0.0)),
            portion_size=float(payload.get("portion_size", 1.0)),
            portion_unit=str(payload.get("portion_unit", "")),
        )

"""Domain models for daily totals."""

from dataclasses import dataclass, field
from datetime import date

from nutrition_log.domain.nutrition import MealType, NutritionValues


@dataclass(frozen=True)
class DailySummary:
    """Totals for one day, overall and per meal."""

    day: date
    totals: NutritionValues
    by_meal: dict[MealType, NutritionValues] = field(default_factory=dict)
    entry_count: int = 0

    def meal_totals(self, meal_type: MealType) -> NutritionValues:
        """Return totals for a meal, zero when nothing was logged."""
        return self.by_meal.get(meal_type, NutritionValues.zero())

"""Nutrition goal settings."""

from dataclasses import dataclass

DEFAULT_PROTEIN_G = 150.0
DEFAULT_FAT_G = 80.0
DEFAULT_NET_CARBS_G = 250.0
DEFAULT_FIBER_G = 25.0


@dataclass(frozen=True)
class NutritionGoals:
    """Daily macro targets; calories are derived from the macros."""

    target_protein: float = DEFAULT_PROTEIN_G
    target_fat: float = DEFAULT_FAT_G
    target_net_carbs: float = DEFAULT_NET_CARBS_G
    target_fiber: float = DEFAULT_FIBER_G

    @property
    def target_calories(self) -> float:
        return (
            self.target_protein * 4
            + self.target_fat * 9
            + self.target_net_carbs * 4
            + self.target_fiber * 2
        )


@dataclass(frozen=True)
class GoalProgress:
    """Consumed share of each target (1.0 means the target is met)."""

    calories: float
    protein: float
    fat: float
    net_carbs: float
    fiber: float

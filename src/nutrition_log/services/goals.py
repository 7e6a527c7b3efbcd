"""Nutrition goals service."""

import dataclasses
from dataclasses import dataclass
from typing import Protocol

from nutrition_log.domain.goals import GoalProgress, NutritionGoals
from nutrition_log.domain.stats import DailySummary


class GoalsRepository(Protocol):
    """Persistence interface for nutrition goals."""

    def load(self) -> NutritionGoals | None:
        """Return stored goals, if any."""

    def save(self, goals: NutritionGoals) -> None:
        """Persist goals."""


@dataclass
class GoalsService:
    """Service for reading, changing and evaluating nutrition goals."""

    repository: GoalsRepository

    def get(self) -> NutritionGoals:
        """Return stored goals or the defaults."""
        return self.repository.load() or NutritionGoals()

    def update(self, **targets: float) -> NutritionGoals:
        """Change some targets and persist the result."""
        goals = dataclasses.replace(self.get(), **targets)
        self.repository.save(goals)
        return goals

    def reset(self) -> NutritionGoals:
        """Restore and persist the default targets."""
        goals = NutritionGoals()
        self.repository.save(goals)
        return goals

    def progress(self, summary: DailySummary) -> GoalProgress:
        """Return how much of each target a day's totals cover."""
        goals = self.get()
        totals = summary.totals
        return GoalProgress(
            calories=_ratio(totals.calories, goals.target_calories),
            protein=_ratio(totals.protein, goals.target_protein),
            fat=_ratio(totals.fat, goals.target_fat),
            net_carbs=_ratio(totals.net_carbs, goals.target_net_carbs),
            fiber=_ratio(totals.dietary_fiber, goals.target_fiber),
        )


def _ratio(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return value / target

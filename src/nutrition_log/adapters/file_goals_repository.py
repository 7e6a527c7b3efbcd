"""JSON file storage for nutrition goals."""

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from nutrition_log.domain.goals import NutritionGoals
from nutrition_log.errors import FileAccessError
from nutrition_log.services.files import FileSystemGateway
from nutrition_log.services.goals import GoalsRepository


@dataclass
class FileGoalsRepository(GoalsRepository):
    """Stores goals as a JSON document through the file gateway."""

    files: FileSystemGateway
    path: Path

    def load(self) -> NutritionGoals | None:
        """Return stored goals, or None when the file is missing."""
        if not Path(self.path).exists():
            return None
        raw = self.files.read_text(self.path)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FileAccessError(f"Goals file {self.path} is not valid JSON") from exc
        return NutritionGoals(
            target_protein=float(payload.get("target_protein", 150)),
            target_fat=float(payload.get("target_fat", 80)),
            target_net_carbs=float(payload.get("target_net_carbs", 250)),
            target_fiber=float(payload.get("target_fiber", 25)),
        )

    def save(self, goals: NutritionGoals) -> None:
        """Write goals atomically."""
        self.files.write_text_atomically(self.path, json.dumps(asdict(goals), indent=2))

"""Shared test fixtures."""

from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from nutrition_log.adapters.local_file_gateway import LocalFileGateway
from nutrition_log.adapters.memory_object_store import InMemoryObjectStore
from nutrition_log.config import Settings
from nutrition_log.containers import AppContainer, build_container
from nutrition_log.domain.catalog import CatalogFields
from nutrition_log.domain.nutrition import NutritionSnapshot
from nutrition_log.errors import StoreError
from nutrition_log.services.catalog import CatalogService
from nutrition_log.services.logs import LogService


@dataclass
class FailingCommitStore(InMemoryObjectStore):
    """In-memory store whose next commits fail."""

    failures: int = 0

    def commit(self) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise StoreError("commit failed")
        super().commit()


@dataclass
class ProgressRecorder:
    """Progress callback that records calls and cancels on request."""

    cancel_at: int | None = None

    def __post_init__(self) -> None:
        self.calls: list[tuple[float, int, int]] = []

    def __call__(self, fraction: float, processed: int, total: int) -> bool:
        self.calls.append((fraction, processed, total))
        return self.cancel_at is not None and processed >= self.cancel_at


def make_fields(**overrides: object) -> CatalogFields:
    values: dict[str, object] = {
        "brand_name": "Acme",
        "product_name": "Oat Bar",
        "calories": 200.0,
        "net_carbs": 25.0,
        "dietary_fiber": 4.0,
        "fat": 7.0,
        "protein": 10.0,
        "portion_unit": "bar",
        "portion_size": 1.0,
    }
    values.update(overrides)
    return CatalogFields(**values)  # type: ignore[arg-type]


def make_snapshot(**overrides: object) -> NutritionSnapshot:
    values: dict[str, object] = {
        "brand_name": "Home",
        "product_name": "Soup",
        "calories": 150.0,
        "net_carbs": 12.0,
        "dietary_fiber": 3.0,
        "fat": 5.0,
        "protein": 8.0,
        "portion_size": 1.0,
        "portion_unit": "bowl",
    }
    values.update(overrides)
    return NutritionSnapshot(**values)  # type: ignore[arg-type]


def at(day: int, hour: int = 12, month: int = 3) -> datetime:
    return datetime(2024, month, day, hour, tzinfo=UTC)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(admin_token="admin-token", data_dir=str(tmp_path))


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def files() -> LocalFileGateway:
    return LocalFileGateway()


@pytest.fixture
def catalog_service(store) -> CatalogService:
    return CatalogService(store)


@pytest.fixture
def log_service(store, catalog_service) -> LogService:
    return LogService(store=store, catalog=catalog_service)


@pytest.fixture
def container(settings, store, files) -> AppContainer:
    return build_container(settings, store=store, files=files)

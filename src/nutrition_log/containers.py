"""Dependency container wiring for the application."""

from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from nutrition_log.adapters.file_goals_repository import FileGoalsRepository
from nutrition_log.adapters.local_file_gateway import LocalFileGateway
from nutrition_log.adapters.memory_object_store import InMemoryObjectStore
from nutrition_log.adapters.supabase_object_store import SupabaseObjectStore
from nutrition_log.config import Settings
from nutrition_log.services.backup import BackupConsistencyManager
from nutrition_log.services.catalog import CatalogService
from nutrition_log.services.export import CsvExporter
from nutrition_log.services.files import FileSystemGateway
from nutrition_log.services.goals import GoalsService
from nutrition_log.services.importer import CsvImporter
from nutrition_log.services.logs import LogService
from nutrition_log.services.store import ObjectStore
from nutrition_log.services.transfer import TransferCoordinator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: ObjectStore
    files: FileSystemGateway
    catalog_service: CatalogService
    log_service: LogService
    backup_manager: BackupConsistencyManager
    exporter: CsvExporter
    importer: CsvImporter
    transfers: TransferCoordinator
    goals_service: GoalsService


def build_store(settings: Settings) -> ObjectStore:
    """Create the object store selected by ``storage_backend``."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage needs supabase_url and supabase_service_key")
        return SupabaseObjectStore(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    if settings.storage_backend == "memory":
        return InMemoryObjectStore()
    raise ValueError(f"Unknown storage backend {settings.storage_backend!r}")


def build_container(
    settings: Settings | None = None,
    store: ObjectStore | None = None,
    files: FileSystemGateway | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_store = store or build_store(resolved_settings)
    resolved_files = files or LocalFileGateway()
    catalog_service = CatalogService(resolved_store)
    log_service = LogService(store=resolved_store, catalog=catalog_service)
    exporter = CsvExporter(
        log_service=log_service,
        files=resolved_files,
        timezone_name=resolved_settings.timezone,
        progress_interval=resolved_settings.export_progress_interval,
    )
    importer = CsvImporter(
        log_service=log_service,
        store=resolved_store,
        files=resolved_files,
        timezone_name=resolved_settings.timezone,
        commit_mode=resolved_settings.import_commit_mode,
    )
    goals_repository = FileGoalsRepository(
        files=resolved_files,
        path=Path(resolved_settings.data_dir) / resolved_settings.goals_file,
    )
    return AppContainer(
        settings=resolved_settings,
        store=resolved_store,
        files=resolved_files,
        catalog_service=catalog_service,
        log_service=log_service,
        backup_manager=BackupConsistencyManager(resolved_store),
        exporter=exporter,
        importer=importer,
        transfers=TransferCoordinator(exporter=exporter, importer=importer),
        goals_service=GoalsService(goals_repository),
    )

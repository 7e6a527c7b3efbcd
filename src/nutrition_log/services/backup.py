"""Safe deletion of catalog entries that log entries still reference."""

import dataclasses
import logging
from dataclasses import dataclass
from uuid import UUID

from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.logs import Detached, LogEntry
from nutrition_log.domain.query import Eq, Query
from nutrition_log.errors import CatalogEntryNotFound
from nutrition_log.services.store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class BackupConsistencyManager:
    """Keeps log nutrition intact when catalog entries are removed."""

    store: ObjectStore

    def safe_delete(self, catalog_id: UUID) -> int:
        """Detach every referencing log entry, then delete the catalog entry.

        All changes are committed together. When the commit fails the store
        is rolled back to its last committed state and the error is
        re-raised; the caller retries the whole operation.

        Returns the number of log entries that were detached.
        """
        food = self.store.get(CatalogEntry, catalog_id)
        if food is None:
            raise CatalogEntryNotFound(f"Catalog entry {catalog_id} not found")
        linked = self.store.fetch(
            LogEntry, Query(filters=(Eq("catalog_id", catalog_id),))
        )
        snapshot = food.snapshot()
        try:
            for entry in linked:
                self.store.update(
                    dataclasses.replace(entry, source=Detached(snapshot=snapshot))
                )
            self.store.delete(food)
            self.store.commit()
        except Exception:
            logger.exception(
                "Safe delete failed, rolling back",
                extra={"catalog_id": str(catalog_id)},
            )
            self.store.rollback()
            raise
        logger.info(
            "Deleted catalog entry",
            extra={"catalog_id": str(catalog_id), "detached": len(linked)},
        )
        return len(linked)

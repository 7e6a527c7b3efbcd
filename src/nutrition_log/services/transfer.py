"""Serialized background execution of CSV transfers."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from nutrition_log.domain.transfer import ImportSummary, ProgressCallback
from nutrition_log.services.export import CsvExporter
from nutrition_log.services.importer import CsvImporter

logger = logging.getLogger(__name__)


@dataclass
class TransferCoordinator:
    """Runs exports and imports one at a time off the event loop.

    Other writers share the same lock through :meth:`exclusive`.
    """

    exporter: CsvExporter
    importer: CsvImporter
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the transfer lock so direct store access never overlaps a transfer."""
        async with self._lock:
            yield

    async def export_csv(
        self, destination: Path, progress: ProgressCallback | None = None
    ) -> int:
        """Export the log, waiting for any running transfer first."""
        async with self._lock:
            return await asyncio.to_thread(self.exporter.export, destination, progress)

    async def import_csv(
        self, source: Path, progress: ProgressCallback | None = None
    ) -> ImportSummary:
        """Import a CSV file, waiting for any running transfer first."""
        async with self._lock:
            return await asyncio.to_thread(self.importer.import_file, source, progress)

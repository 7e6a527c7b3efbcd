"""CSV export of the consumption log."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

from nutrition_log.csv_format import EXPORT_HEADER, escape_field
from nutrition_log.domain.logs import ResolvedLogEntry
from nutrition_log.domain.transfer import ProgressCallback
from nutrition_log.services.files import FileSystemGateway
from nutrition_log.services.logs import LogService

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 10


@dataclass
class CsvExporter:
    """Writes every log entry to a CSV file, newest first."""

    log_service: LogService
    files: FileSystemGateway
    timezone_name: str = "UTC"
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL

    def export(self, destination: Path, progress: ProgressCallback | None = None) -> int:
        """Export all log entries and return the number of rows written.

        ``progress`` is called before the first row and after every
        ``progress_interval`` rows and the last row. When it returns True the
        export stops; the file still holds the header and every row counted.
        """
        started = time.monotonic()
        entries = self.log_service.list_all(descending=True)
        total = len(entries)
        interval = max(self.progress_interval, 1)
        tz = ZoneInfo(self.timezone_name)
        logger.info("Starting CSV export", extra={"total": total})

        written = 0
        with self.files.atomic_writer(destination) as handle:
            handle.write(EXPORT_HEADER + "\n")
            if progress is not None and progress(0.0, 0, total):
                logger.info("CSV export cancelled before the first row")
                return 0
            for resolved in self.log_service.iter_resolved(entries):
                handle.write(format_row(resolved, tz) + "\n")
                written += 1
                if progress is None:
                    continue
                if written % interval and written != total:
                    continue
                if progress(written / total, written, total):
                    logger.info(
                        "CSV export cancelled",
                        extra={"written": written, "total": total},
                    )
                    return written

        logger.info(
            "CSV export finished",
            extra={"written": written, "elapsed_s": round(time.monotonic() - started, 3)},
        )
        return written


def format_row(resolved: ResolvedLogEntry, tz: ZoneInfo) -> str:
    """Format one resolved entry as an export row."""
    entry = resolved.entry
    profile = resolved.profile
    values = resolved.values
    columns = [
        entry.timestamp.astimezone(tz).date().isoformat(),
        entry.meal_type.value,
        escape_field(profile.brand_name),
        escape_field(profile.product_name),
        _number(values.calories),
        _number(values.carbs),
        _number(values.dietary_fiber),
        _number(values.fat),
        _number(values.protein),
        _number(entry.number_of_servings),
        escape_field(profile.portion_unit),
    ]
    return ",".join(columns)


def _number(value: float) -> str:
    return str(float(value))

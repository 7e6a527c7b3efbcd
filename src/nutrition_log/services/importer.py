"""CSV import into the consumption log."""

import logging
import math
import re
import time as clock
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from zoneinfo import ZoneInfo

from nutrition_log.csv_format import (
    EXPORT_COLUMNS,
    LEGACY_IMPORT_COLUMNS,
    CsvRecord,
    iter_records,
)
from nutrition_log.domain.nutrition import MealType, NutritionSnapshot
from nutrition_log.domain.transfer import (
    ImportCommitMode,
    ImportSummary,
    ProgressCallback,
)
from nutrition_log.errors import DataError, DataErrorReason, FormatError, NumericError
from nutrition_log.services.files import FileSystemGateway
from nutrition_log.services.logs import LogService
from nutrition_log.services.store import ObjectStore

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ImportedRow:
    """A validated CSV row."""

    day: date
    meal_type: MealType
    servings: float
    snapshot: NutritionSnapshot


@dataclass(frozen=True)
class CsvLayout:
    """Column layout of an import file."""

    columns: tuple[str, ...]
    portion_column: str
    has_fiber: bool
    has_unit: bool

    def parse(self, record: CsvRecord) -> ImportedRow:
        """Validate a record, raising on the first problem found."""
        row = record.line_number
        if len(record.fields) != len(self.columns):
            raise FormatError(
                row,
                "*",
                DataErrorReason.INVALID_FORMAT,
                f"expected {len(self.columns)} columns, got {len(record.fields)}",
            )
        values = dict(zip(self.columns, record.fields, strict=True))

        day = _parse_date(values["date"])
        if day is None:
            raise FormatError(row, "date", DataErrorReason.INVALID_DATE, values["date"])
        meal_type = MealType.from_label(values["meal_type"])
        if meal_type is None:
            raise FormatError(
                row, "meal_type", DataErrorReason.INVALID_MEAL_TYPE, values["meal_type"]
            )

        nutrient_columns = ["calories", "carbs", "fat", "protein"]
        if self.has_fiber:
            nutrient_columns.append("dietary_fiber")
        nutrients: dict[str, float] = {}
        for column in nutrient_columns:
            number = _parse_number(values[column])
            if number is None:
                raise NumericError(
                    row, column, DataErrorReason.INVALID_NUMERIC, values[column]
                )
            nutrients[column] = number

        servings = _parse_number(values[self.portion_column])
        if servings is None or servings <= 0:
            raise NumericError(
                row,
                self.portion_column,
                DataErrorReason.INVALID_NUMERIC,
                values[self.portion_column],
            )

        fiber = nutrients.get("dietary_fiber", 0.0)
        snapshot = NutritionSnapshot(
            brand_name=values["brand_name"],
            product_name=values["product_name"],
            calories=nutrients["calories"],
            net_carbs=max(0.0, nutrients["carbs"] - fiber),
            dietary_fiber=fiber,
            fat=nutrients["fat"],
            protein=nutrients["protein"],
            portion_size=servings,
            portion_unit=values["portion_unit"] if self.has_unit else "",
        )
        return ImportedRow(
            day=day, meal_type=meal_type, servings=servings, snapshot=snapshot
        )


LEGACY_LAYOUT = CsvLayout(
    columns=LEGACY_IMPORT_COLUMNS,
    portion_column="portion",
    has_fiber=False,
    has_unit=False,
)

EXPORT_LAYOUT = CsvLayout(
    columns=EXPORT_COLUMNS,
    portion_column="portion_amount",
    has_fiber=True,
    has_unit=True,
)


def select_layout(header: list[str]) -> CsvLayout:
    """Use the export layout for export headers, the 9-column one otherwise."""
    if tuple(name.strip().lower() for name in header) == EXPORT_COLUMNS:
        return EXPORT_LAYOUT
    return LEGACY_LAYOUT


@dataclass
class CsvImporter:
    """Creates standalone log entries from CSV rows.

    The catalog is not touched. The first invalid row stops the import; in
    ``per_row`` mode the rows before it stay imported, in
    ``all_or_nothing`` mode nothing is kept.
    """

    log_service: LogService
    store: ObjectStore
    files: FileSystemGateway
    timezone_name: str = "UTC"
    commit_mode: ImportCommitMode = ImportCommitMode.PER_ROW

    def import_file(
        self, source: Path, progress: ProgressCallback | None = None
    ) -> ImportSummary:
        """Import a CSV file."""
        logger.info("Starting CSV import", extra={"source": Path(source).name})
        return self.import_text(self.files.read_text(source), progress)

    def import_text(
        self, text: str, progress: ProgressCallback | None = None
    ) -> ImportSummary:
        """Import CSV text; ``progress`` returning True stops after the current row."""
        started = clock.monotonic()
        records = list(iter_records(text))
        if not records:
            raise FormatError(1, "header", DataErrorReason.INVALID_FORMAT, "empty file")
        layout = select_layout(records[0].fields)
        rows = records[1:]
        total = len(rows)
        logger.info(
            "Importing CSV rows",
            extra={"total": total, "columns": len(layout.columns)},
        )
        if progress is not None and progress(0.0, 0, total):
            logger.info("CSV import cancelled before the first row")
            return ImportSummary(imported=0, total_rows=total, cancelled=True)

        tz = ZoneInfo(self.timezone_name)
        per_row = self.commit_mode == ImportCommitMode.PER_ROW
        imported = 0
        cancelled = False
        try:
            for record in rows:
                try:
                    parsed = layout.parse(record)
                except DataError as exc:
                    logger.warning(
                        "CSV import aborted",
                        extra={
                            "row": exc.row,
                            "column": exc.column,
                            "reason": exc.reason.value,
                            "imported": imported,
                        },
                    )
                    raise
                self.log_service.create(
                    datetime.combine(parsed.day, time.min, tzinfo=tz),
                    parsed.meal_type,
                    parsed.servings,
                    snapshot=parsed.snapshot,
                    commit=per_row,
                )
                imported += 1
                if progress is not None and progress(imported / total, imported, total):
                    logger.info(
                        "CSV import cancelled",
                        extra={"imported": imported, "total": total},
                    )
                    cancelled = True
                    break
            if not per_row:
                self.store.commit()
        except BaseException:
            if not per_row:
                self.store.rollback()
            raise

        logger.info(
            "CSV import finished",
            extra={
                "imported": imported,
                "elapsed_s": round(clock.monotonic() - started, 3),
            },
        )
        return ImportSummary(imported=imported, total_rows=total, cancelled=cancelled)


def _parse_date(value: str) -> date | None:
    if not _DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_number(value: str) -> float | None:
    cleaned = value.replace('"', "").replace(",", "").strip()
    if "_" in cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number

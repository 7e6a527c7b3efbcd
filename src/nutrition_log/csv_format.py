"""CSV wire format shared by the exporter and importer."""

from collections.abc import Iterator
from dataclasses import dataclass

from nutrition_log.errors import DataErrorReason, FormatError

EXPORT_COLUMNS = (
    "date",
    "meal_type",
    "brand_name",
    "product_name",
    "calories",
    "carbs",
    "dietary_fiber",
    "fat",
    "protein",
    "portion_amount",
    "portion_unit",
)

LEGACY_IMPORT_COLUMNS = (
    "date",
    "meal_type",
    "brand_name",
    "product_name",
    "portion",
    "calories",
    "carbs",
    "fat",
    "protein",
)

EXPORT_HEADER = ",".join(EXPORT_COLUMNS)

_NEEDS_QUOTING = ('"', ",", "\n", "\r")


def escape_field(value: str) -> str:
    """Quote a value containing quotes, commas or newlines."""
    if any(char in value for char in _NEEDS_QUOTING):
        return '"' + value.replace('"', '""') + '"'
    return value


@dataclass(frozen=True)
class CsvRecord:
    """Parsed fields of one record and the file line it starts on."""

    line_number: int
    fields: list[str]


def iter_records(text: str) -> Iterator[CsvRecord]:
    """Split CSV text into trimmed records, skipping blank lines.

    A ``"`` anywhere in a field toggles quoting, so commas and newlines
    between quotes stay in the field. Inside quotes ``""`` is a literal
    quote. Each record carries the line number it starts on, counting the
    header as 1.
    """
    fields: list[str] = []
    field: list[str] = []
    in_quotes = False
    line_number = 1
    start_line = 1
    index = 0
    while index < len(text):
        char = text[index]
        if char == '"':
            if in_quotes and text.startswith('""', index):
                field.append('"')
                index += 2
                continue
            in_quotes = not in_quotes
        elif char in "\r\n":
            if text.startswith("\r\n", index):
                char = "\r\n"
                index += 1
            line_number += 1
            if in_quotes:
                field.append(char)
            else:
                fields.append("".join(field))
                yield from _record(start_line, fields)
                fields, field = [], []
                start_line = line_number
        elif char == "," and not in_quotes:
            fields.append("".join(field))
            field = []
        else:
            field.append(char)
        index += 1

    if in_quotes:
        raise FormatError(
            start_line, "*", DataErrorReason.INVALID_FORMAT, "unterminated quoted field"
        )
    if fields or field:
        fields.append("".join(field))
        yield from _record(start_line, fields)


def _record(line_number: int, fields: list[str]) -> Iterator[CsvRecord]:
    if len(fields) <= 1 and not "".join(fields).strip():
        return
    yield CsvRecord(line_number=line_number, fields=[value.strip() for value in fields])

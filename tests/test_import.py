"""Tests for CSV import."""

import pytest

from nutrition_log.csv_format import EXPORT_HEADER, LEGACY_IMPORT_COLUMNS
from nutrition_log.domain.logs import Standalone
from nutrition_log.domain.nutrition import MealType
from nutrition_log.domain.transfer import ImportCommitMode
from nutrition_log.errors import DataErrorReason, FileAccessError, FormatError, NumericError
from nutrition_log.services.export import CsvExporter
from nutrition_log.services.importer import CsvImporter
from tests.conftest import ProgressRecorder, at, make_fields, make_snapshot

LEGACY_HEADER = ",".join(LEGACY_IMPORT_COLUMNS)


def _importer(log_service, store, files, **kwargs) -> CsvImporter:  # type: ignore[no-untyped-def]
    return CsvImporter(log_service=log_service, store=store, files=files, **kwargs)


def test_legacy_rows_become_standalone_entries(
    log_service, catalog_service, store, files
) -> None:
    food = catalog_service.create(make_fields())
    text = "\n".join(
        [
            LEGACY_HEADER,
            '2024-03-01,lunch,"Fjord, Inc.",Salmon,2,"1,200",10,50,80',
        ]
    )

    summary = _importer(log_service, store, files).import_text(text)

    assert summary.imported == 1
    assert summary.total_rows == 1
    [entry] = log_service.list_all()
    assert isinstance(entry.source, Standalone)
    assert entry.meal_type == MealType.LUNCH
    assert entry.timestamp == at(1, 0)
    assert entry.number_of_servings == 2.0
    assert entry.source.snapshot.brand_name == "Fjord, Inc."
    assert entry.source.snapshot.portion_unit == ""
    values = log_service.resolve(entry).values
    assert values.calories == pytest.approx(1200.0)
    assert values.carbs == pytest.approx(10.0)
    assert values.dietary_fiber == 0.0
    assert catalog_service.require(food.id).usage_count == 0


def test_wrong_column_count_stops_import_with_line_number(
    log_service, store, files
) -> None:
    text = "\n".join(
        [
            LEGACY_HEADER,
            "2024-03-01,Lunch,Acme,Bar,1,200,20,5,10",
            "2024-03-02,Lunch,Acme,Bar,1,200,20,5",
            "2024-03-03,Lunch,Acme,Bar,1,200,20,5,10",
        ]
    )

    with pytest.raises(FormatError) as excinfo:
        _importer(log_service, store, files).import_text(text)

    assert excinfo.value.row == 3
    assert excinfo.value.reason == DataErrorReason.INVALID_FORMAT
    assert [entry.timestamp for entry in log_service.list_all()] == [at(1, 0)]


@pytest.mark.parametrize(
    ("row", "error", "column", "reason"),
    [
        (
            "03/01/2024,Lunch,Acme,Bar,1,200,20,5,10",
            FormatError,
            "date",
            DataErrorReason.INVALID_DATE,
        ),
        (
            "2024-02-30,Lunch,Acme,Bar,1,200,20,5,10",
            FormatError,
            "date",
            DataErrorReason.INVALID_DATE,
        ),
        (
            "2024-03-01,Brunch,Acme,Bar,1,200,20,5,10",
            FormatError,
            "meal_type",
            DataErrorReason.INVALID_MEAL_TYPE,
        ),
        (
            "2024-03-01,Lunch,Acme,Bar,1,lots,20,5,10",
            NumericError,
            "calories",
            DataErrorReason.INVALID_NUMERIC,
        ),
        (
            "2024-03-01,Lunch,Acme,Bar,1,200,20,5,inf",
            NumericError,
            "protein",
            DataErrorReason.INVALID_NUMERIC,
        ),
        (
            "2024-03-01,Lunch,Acme,Bar,1,1_000,20,5,10",
            NumericError,
            "calories",
            DataErrorReason.INVALID_NUMERIC,
        ),
        (
            "2024-03-01,Lunch,Acme,Bar,0,200,20,5,10",
            NumericError,
            "portion",
            DataErrorReason.INVALID_NUMERIC,
        ),
    ],
)
def test_invalid_rows_are_rejected(  # noqa: PLR0913
    log_service, store, files, row, error, column, reason
) -> None:
    with pytest.raises(error) as excinfo:
        _importer(log_service, store, files).import_text(f"{LEGACY_HEADER}\n{row}\n")

    assert excinfo.value.row == 2
    assert excinfo.value.column == column
    assert excinfo.value.reason == reason
    assert log_service.list_all() == []


def test_empty_file_is_a_format_error(log_service, store, files) -> None:
    with pytest.raises(FormatError):
        _importer(log_service, store, files).import_text("\n\n")


def test_header_only_file_imports_nothing(log_service, store, files) -> None:
    recorder = ProgressRecorder()

    summary = _importer(log_service, store, files).import_text(
        LEGACY_HEADER + "\n", recorder
    )

    assert summary.imported == 0
    assert recorder.calls == [(0.0, 0, 0)]


def test_import_cancel_keeps_rows_already_committed(log_service, store, files) -> None:
    rows = [f"2024-03-{day:02d},Snack,Acme,Bar,1,100,10,1,2" for day in range(1, 11)]
    text = "\n".join([LEGACY_HEADER, *rows])

    summary = _importer(log_service, store, files).import_text(
        text, ProgressRecorder(cancel_at=4)
    )

    assert summary.cancelled
    assert summary.imported == 4
    assert summary.total_rows == 10
    store.rollback()
    assert len(log_service.list_all()) == 4


def test_all_or_nothing_import_rolls_back_on_error(log_service, store, files) -> None:
    log_service.create(at(20), MealType.LUNCH, 1.0, snapshot=make_snapshot())
    text = "\n".join(
        [
            LEGACY_HEADER,
            "2024-03-01,Lunch,Acme,Bar,1,200,20,5,10",
            "2024-03-02,Lunch,Acme,Bar,1,200,20,5,10",
            "2024-03-03,Feast,Acme,Bar,1,200,20,5,10",
        ]
    )
    importer = _importer(
        log_service, store, files, commit_mode=ImportCommitMode.ALL_OR_NOTHING
    )

    with pytest.raises(FormatError):
        importer.import_text(text)

    assert [entry.timestamp for entry in log_service.list_all()] == [at(20)]


def test_all_or_nothing_import_commits_once(log_service, store, files) -> None:
    rows = [f"2024-03-{day:02d},Snack,Acme,Bar,1,100,10,1,2" for day in range(1, 6)]
    commits = store.commit_count
    importer = _importer(
        log_service, store, files, commit_mode=ImportCommitMode.ALL_OR_NOTHING
    )

    summary = importer.import_text("\n".join([LEGACY_HEADER, *rows]))

    assert summary.imported == 5
    assert store.commit_count == commits + 1


def test_import_file_reads_through_gateway(tmp_path, log_service, store, files) -> None:
    source = tmp_path / "legacy.csv"
    source.write_text(
        LEGACY_HEADER + "\r\n2024-03-01,Dinner,Acme,Bar,1,200,20,5,10\r\n",
        encoding="utf-8",
    )

    summary = _importer(log_service, store, files).import_file(source)

    assert summary.imported == 1


def test_import_missing_file_raises_file_error(tmp_path, log_service, store, files) -> None:
    with pytest.raises(FileAccessError):
        _importer(log_service, store, files).import_file(tmp_path / "missing.csv")


def test_export_then_import_round_trip(
    tmp_path, log_service, catalog_service, store, files
) -> None:
    salmon = catalog_service.create(
        make_fields(
            brand_name="Fjord, Inc.",
            product_name='Smoked "Salmon"',
            calories=100.0,
            net_carbs=2.0,
            dietary_fiber=1.5,
            fat=5.0,
            protein=20.0,
            portion_unit="g",
            portion_size=50.0,
        )
    )
    log_service.create(at(1, 8), MealType.BREAKFAST, 75.0, catalog_id=salmon.id)
    log_service.create(at(1, 13), MealType.LUNCH, 1.0, snapshot=make_snapshot())
    log_service.create(at(2, 19), MealType.DINNER, 150.0, catalog_id=salmon.id)
    log_service.create(at(3, 10), MealType.SNACK, 0.5, snapshot=make_snapshot())
    log_service.create(at(4, 20), MealType.DINNER, 2.0, snapshot=make_snapshot())
    original = {
        (r.entry.timestamp.date(), r.entry.meal_type): r
        for r in log_service.iter_resolved(log_service.list_all())
    }
    destination = tmp_path / "export.csv"
    CsvExporter(log_service, files).export(destination)
    assert destination.read_text(encoding="utf-8").startswith(EXPORT_HEADER)

    for entry in log_service.list_all():
        log_service.delete(entry.id)
    summary = _importer(log_service, store, files).import_file(destination)

    assert summary.imported == 5
    restored = list(log_service.iter_resolved(log_service.list_all()))
    assert len(restored) == 5
    for resolved in restored:
        before = original[(resolved.entry.timestamp.date(), resolved.entry.meal_type)]
        assert resolved.profile.brand_name == before.profile.brand_name
        assert resolved.profile.product_name == before.profile.product_name
        assert resolved.profile.portion_unit == before.profile.portion_unit
        assert resolved.entry.number_of_servings == before.entry.number_of_servings
        for name in ("calories", "carbs", "dietary_fiber", "fat", "protein"):
            assert getattr(resolved.values, name) == pytest.approx(
                getattr(before.values, name)
            )


def test_legacy_layout_round_trip_loses_portion_unit(
    tmp_path, log_service, store, files
) -> None:
    for day in range(1, 6):
        log_service.create(
            at(day, 9),
            MealType.BREAKFAST,
            float(day),
            snapshot=make_snapshot(product_name=f"Porridge {day}", portion_unit="bowl"),
        )
    original = {
        r.profile.product_name: r for r in log_service.iter_resolved(log_service.list_all())
    }
    lines = [LEGACY_HEADER]
    for resolved in original.values():
        values = resolved.values
        lines.append(
            ",".join(
                [
                    resolved.entry.timestamp.date().isoformat(),
                    resolved.entry.meal_type.value,
                    resolved.profile.brand_name,
                    resolved.profile.product_name,
                    str(resolved.entry.number_of_servings),
                    str(values.calories),
                    str(values.carbs),
                    str(values.fat),
                    str(values.protein),
                ]
            )
        )
    source = tmp_path / "legacy.csv"
    source.write_text("\n".join(lines) + "\n", encoding="utf-8")
    for entry in log_service.list_all():
        log_service.delete(entry.id)

    summary = _importer(log_service, store, files).import_file(source)

    assert summary.imported == 5
    for resolved in log_service.iter_resolved(log_service.list_all()):
        before = original[resolved.profile.product_name]
        assert resolved.profile.portion_unit == ""
        assert resolved.entry.number_of_servings == before.entry.number_of_servings
        assert resolved.values.calories == pytest.approx(before.values.calories)
        assert resolved.values.carbs == pytest.approx(before.values.carbs)
        assert resolved.values.protein == pytest.approx(before.values.protein)
        assert resolved.values.dietary_fiber == 0.0


def test_quoted_field_after_space_imports(log_service, store, files) -> None:
    text = f'{LEGACY_HEADER}\n2024-03-01, Lunch, "Acme, Inc", Bar, 1, 100, 10, 5, 3\n'

    summary = _importer(log_service, store, files).import_text(text)

    assert summary.imported == 1
    [entry] = log_service.list_all()
    assert entry.source.snapshot.brand_name == "Acme, Inc"
    assert entry.source.snapshot.product_name == "Bar"


def test_all_or_nothing_import_rolls_back_when_progress_raises(
    log_service, store, files
) -> None:
    rows = [f"2024-03-{day:02d},Snack,Acme,Bar,1,100,10,1,2" for day in range(1, 6)]
    importer = _importer(
        log_service, store, files, commit_mode=ImportCommitMode.ALL_OR_NOTHING
    )

    def explode(_fraction: float, processed: int, _total: int) -> bool:
        if processed == 2:
            raise RuntimeError("progress sink closed")
        return False

    with pytest.raises(RuntimeError):
        importer.import_text("\n".join([LEGACY_HEADER, *rows]), explode)
    log_service.create(at(20), MealType.LUNCH, 1.0, snapshot=make_snapshot())
    store.rollback()

    assert [entry.timestamp for entry in log_service.list_all()] == [at(20)]

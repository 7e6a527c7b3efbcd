"""Tests for catalog service."""

from uuid import uuid4

import pytest

from nutrition_log.domain.catalog import make_dedup_key
from nutrition_log.errors import CatalogEntryNotFound, DuplicateKeyError
from tests.conftest import make_fields


def test_dedup_key_ignores_case_and_whitespace() -> None:
    first = make_fields(brand_name="Acme ", product_name="Oat  Bar")
    second = make_fields(brand_name="ACME", product_name="oat bar")

    assert first.dedup_key == second.dedup_key


@pytest.mark.parametrize(
    "override",
    [
        {"brand_name": "Other"},
        {"product_name": "Rice Bar"},
        {"calories": 201.0},
        {"fat": 7.5},
        {"protein": 11.0},
        {"net_carbs": 24.0},
        {"portion_unit": "g"},
    ],
)
def test_dedup_key_changes_with_each_identity_field(override) -> None:
    assert make_fields(**override).dedup_key != make_fields().dedup_key


def test_dedup_key_ignores_fiber_and_portion_size() -> None:
    base = make_fields()

    assert make_fields(dietary_fiber=9.0).dedup_key == base.dedup_key
    assert make_fields(portion_size=2.0).dedup_key == base.dedup_key


def test_dedup_key_escapes_separator() -> None:
    joined = make_dedup_key(
        brand_name="a|b",
        product_name="c",
        calories=0,
        fat=0,
        protein=0,
        net_carbs=0,
        portion_unit="",
    )
    split = make_dedup_key(
        brand_name="a",
        product_name="b|c",
        calories=0,
        fat=0,
        protein=0,
        net_carbs=0,
        portion_unit="",
    )

    assert joined != split
    assert joined.startswith("a\\|b|c|")


def test_dedup_key_rounds_to_two_decimals() -> None:
    assert make_fields(calories=200.001).dedup_key == make_fields().dedup_key
    assert make_fields(fat=-0.001).dedup_key == make_fields(fat=0.0).dedup_key


def test_create_rejects_duplicate_profile(catalog_service) -> None:
    entry = catalog_service.create(make_fields())

    with pytest.raises(DuplicateKeyError) as excinfo:
        catalog_service.create(make_fields(brand_name="ACME"))

    assert excinfo.value.existing_id == entry.id
    assert len(catalog_service.search(None)) == 1


def test_get_or_create_returns_existing_entry(catalog_service) -> None:
    entry = catalog_service.create(make_fields())

    again = catalog_service.get_or_create(make_fields(product_name="OAT BAR"))

    assert again.id == entry.id


def test_update_rederives_key_and_rejects_collisions(catalog_service) -> None:
    bar = catalog_service.create(make_fields())
    other = catalog_service.create(make_fields(product_name="Rice Bar"))

    updated = catalog_service.update(bar.id, make_fields(calories=180.0))

    assert updated.dedup_key == make_fields(calories=180.0).dedup_key
    assert catalog_service.require(bar.id).calories == 180.0
    with pytest.raises(DuplicateKeyError):
        catalog_service.update(other.id, make_fields(calories=180.0))


def test_require_unknown_entry_raises(catalog_service) -> None:
    with pytest.raises(CatalogEntryNotFound):
        catalog_service.require(uuid4())


def test_search_orders_by_usage_then_name(catalog_service) -> None:
    apple = catalog_service.create(make_fields(product_name="Apple"))
    banana = catalog_service.create(make_fields(product_name="banana"))
    cherry = catalog_service.create(make_fields(product_name="Cherry"))
    catalog_service.increment_usage(cherry.id)
    catalog_service.increment_usage(cherry.id)
    catalog_service.increment_usage(banana.id)

    results = catalog_service.search(None)

    assert [entry.id for entry in results] == [cherry.id, banana.id, apple.id]


def test_search_matches_brand_or_product_case_insensitive(catalog_service) -> None:
    catalog_service.create(make_fields(brand_name="Fjord", product_name="Salmon"))
    catalog_service.create(make_fields(brand_name="Acme", product_name="Oat Bar"))

    assert [e.product_name for e in catalog_service.search("fjo")] == ["Salmon"]
    assert [e.product_name for e in catalog_service.search("OAT")] == ["Oat Bar"]
    assert catalog_service.search("missing") == []


def test_search_pages_and_iter_search_visits_everything(catalog_service) -> None:
    for index in range(7):
        catalog_service.create(make_fields(product_name=f"Item {index}"))

    first = catalog_service.search(None, offset=0, limit=3)
    second = catalog_service.search(None, offset=3, limit=3)
    everything = list(catalog_service.iter_search(None, page_size=3))

    assert len(first) == 3
    assert len(second) == 3
    assert {e.id for e in first}.isdisjoint({e.id for e in second})
    assert len(everything) == 7
    assert [e.product_name for e in everything][:6] == [
        e.product_name for e in first + second
    ]


def test_usage_counter_is_symmetric_and_floored(catalog_service) -> None:
    entry = catalog_service.create(make_fields())

    used = catalog_service.increment_usage(entry.id, servings=2.5)
    assert used.usage_count == 1
    assert used.last_used_at is not None
    assert used.last_number_of_servings == 2.5

    catalog_service.decrement_usage(entry.id)
    floored = catalog_service.decrement_usage(entry.id)

    assert floored.usage_count == 0


@pytest.mark.parametrize("limit", [0, -1])
def test_search_rejects_non_positive_limits(catalog_service, limit) -> None:
    catalog_service.create(make_fields())

    with pytest.raises(ValueError):
        catalog_service.search(None, limit=limit)
    with pytest.raises(ValueError):
        list(catalog_service.iter_search(None, page_size=limit))

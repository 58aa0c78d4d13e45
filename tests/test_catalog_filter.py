import pytest

from app.modules.store.catalog.dtos import FilterCriteriaDto, ProductDto
from app.modules.store.catalog.enums import CatalogViewState, SortOption
from app.modules.store.catalog.services.catalog_filter import (
    filter_by_criteria, filter_products, resolve_view_state
)


def _product(id, name, price, category="rings", created_at=0, description=""):
    return ProductDto(
        id=id, name=name, description=description, price=price, category=category,
        image=f"https://pub-test.r2.dev/products/{id}.jpg", created_at=created_at, updated_at=created_at,
    )


@pytest.fixture
def products():
    return [
        _product("a", "Gold Ring", 1500, "rings", 3000, "22k yellow gold"),
        _product("b", "silver anklet", 800, "anklets", 1000, "Sterling silver"),
        _product("c", "Diamond Necklace", 25000, "necklaces", 2000, "with gold chain"),
        _product("d", "Pearl Earrings", 800, "earrings", 4000),
    ]


def test_default_sort_is_newest_first(products):
    result = filter_products(products)
    assert [p.id for p in result] == ["d", "a", "c", "b"]


def test_input_is_not_mutated(products):
    original = list(products)
    filter_products(products, sort="price-desc", search="gold")
    assert products == original


def test_search_matches_name_or_description_case_insensitive(products):
    result = filter_products(products, search="  GOLD ")
    assert {p.id for p in result} == {"a", "c"}


def test_blank_search_keeps_everything(products):
    assert len(filter_products(products, search="   ")) == 4


def test_category_exact_match(products):
    assert [p.id for p in filter_products(products, category="anklets")] == ["b"]
    assert filter_products(products, category="ring") == []
    assert len(filter_products(products, category="all")) == 4


def test_price_bounds_are_inclusive(products):
    result = filter_products(products, min_price=800, max_price=1500, sort="price-asc")
    assert [p.id for p in result] == ["b", "d", "a"]


def test_price_sort_is_stable_for_ties(products):
    asc = filter_products(products, sort="price-asc")
    assert [p.id for p in asc] == ["b", "d", "a", "c"]
    desc = filter_products(products, sort="price-desc")
    assert [p.id for p in desc] == ["c", "a", "b", "d"]


def test_name_sort_ignores_case(products):
    asc = filter_products(products, sort="name-asc")
    assert [p.name for p in asc] == ["Diamond Necklace", "Gold Ring", "Pearl Earrings", "silver anklet"]
    desc = filter_products(products, sort=SortOption.NAME_DESC)
    assert [p.name for p in desc] == ["silver anklet", "Pearl Earrings", "Gold Ring", "Diamond Necklace"]


def test_unknown_sort_falls_back_to_newest(products):
    assert [p.id for p in filter_products(products, sort="popularity")] == ["d", "a", "c", "b"]


def test_dict_products_with_camel_case_keys():
    items = [
        {"id": "x", "name": "Old", "price": 10, "category": "sets", "createdAt": 1},
        {"id": "y", "name": "New", "price": 20, "category": "sets", "createdAt": 2},
    ]
    assert [p["id"] for p in filter_products(items)] == ["y", "x"]


def test_filter_by_criteria_dto(products):
    criteria = FilterCriteriaDto.model_validate({"search": "silver", "minPrice": 500, "sort": "price-asc"})
    assert [p.id for p in filter_by_criteria(products, criteria)] == ["b"]


def test_view_state_distinguishes_empty_catalog_from_no_matches(products):
    assert resolve_view_state([], []) == CatalogViewState.EMPTY_CATALOG
    assert resolve_view_state(products, []) == CatalogViewState.NO_MATCHES
    assert resolve_view_state(products, products[:1]) == CatalogViewState.RESULTS


@pytest.mark.parametrize("criteria", [
    {},
    {"search": "gold"},
    {"category": "rings"},
    {"min_price": 800, "max_price": 1500, "sort": "price-asc"},
    {"search": "silver", "sort": "name-desc"},
    {"category": "sets"},
    {"max_price": 100000, "sort": "price-desc"},
])
def test_result_is_subset_and_reapplying_is_idempotent(products, criteria):
    result = filter_products(products, **criteria)
    assert {p.id for p in result} <= {p.id for p in products}
    assert filter_products(result, **criteria) == result

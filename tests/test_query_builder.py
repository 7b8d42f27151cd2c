"""Tests for the backend-agnostic query builder."""

import pytest

from src.services.catalog.errors import ConfigurationError
from src.services.catalog.query_builder import PREFIX_SENTINEL, create_query_builder


def test_build_orders_equality_before_range_predicates():
    query = (
        create_query_builder("products")
        .where("price", ">=", 100)
        .where("category", "==", "Bikes")
        .where("brand", "in", ["Trek", "Giant"])
        .order_by("rating", "desc")
        .limit(20)
        .build()
    )

    assert [(p.field, p.op) for p in query.predicates] == [
        ("category", "=="),
        ("brand", "in"),
        ("price", ">="),
    ]
    assert query.predicates[1].value == ("Trek", "Giant")
    assert query.limit == 20
    assert query.range_field == "price"


def test_none_and_empty_values_are_skipped():
    query = (
        create_query_builder("products")
        .where("category", "==", None)
        .where("brand", "in", [])
        .where_prefix("nameLower", "")
        .build()
    )

    assert query.predicates == ()


def test_where_prefix_adds_sentinel_upper_bound():
    query = create_query_builder("products").where_prefix("nameLower", "moun").build()

    assert [(p.op, p.value) for p in query.predicates] == [
        (">=", "moun"),
        ("<=", "moun" + PREFIX_SENTINEL),
    ]


def test_range_on_two_fields_is_rejected():
    builder = (
        create_query_builder("products")
        .where("price", ">=", 10)
        .where_prefix("nameLower", "trek")
    )

    with pytest.raises(ConfigurationError):
        builder.build()


def test_in_list_longer_than_thirty_values_is_rejected():
    with pytest.raises(ConfigurationError):
        create_query_builder("products").where("brand", "in", [f"b{i}" for i in range(31)])


@pytest.mark.parametrize("op", ["!=", "like", "array-contains"])
def test_unknown_operator_is_rejected(op):
    with pytest.raises(ConfigurationError):
        create_query_builder("products").where("brand", op, "Trek")


def test_invalid_direction_is_rejected():
    with pytest.raises(ConfigurationError):
        create_query_builder("products").order_by("price", "sideways")


def test_required_index_for_single_field_query_is_none():
    query = create_query_builder("products").order_by("rating", "desc").build()

    assert query.required_index() is None


def test_required_index_lists_equality_then_order_fields():
    query = (
        create_query_builder("products")
        .where("subCategory", "==", "Road Bikes")
        .where("category", "==", "Bikes")
        .order_by("price", "desc")
        .build()
    )

    assert query.required_index() == (
        ("category", "asc"),
        ("subCategory", "asc"),
        ("price", "desc"),
    )


def test_combined_in_filters_are_capped_by_disjunction_count():
    builder = (
        create_query_builder("products")
        .where("category", "in", [f"c{i}" for i in range(6)])
        .where("brand", "in", [f"b{i}" for i in range(6)])
    )

    with pytest.raises(ConfigurationError):
        builder.build()


def test_combined_in_filters_at_the_cap_compile():
    query = (
        create_query_builder("products")
        .where("category", "in", [f"c{i}" for i in range(5)])
        .where("brand", "in", [f"b{i}" for i in range(6)])
        .where("subCategory", "==", "Road Bikes")
        .build()
    )

    assert len(query.predicates) == 3


def test_required_index_puts_range_field_after_ordering():
    query = (
        create_query_builder("products")
        .where("category", "==", "Bikes")
        .where("price", "<=", 1000)
        .order_by("rating", "desc")
        .build()
    )

    assert query.required_index() == (
        ("category", "asc"),
        ("rating", "desc"),
        ("price", "asc"),
    )

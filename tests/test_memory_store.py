"""Tests for the in-memory document store."""

import pytest

from src.services.catalog.errors import InvalidQuery, NotFound, VersionConflict
from src.services.catalog.query_builder import create_query_builder
from src.services.storage.memory_store import InMemoryDocumentStore


@pytest.mark.asyncio
async def test_documents_without_the_sort_field_are_excluded():
    store = InMemoryDocumentStore()
    await store.set("products", "a", {"name": "Alpha", "price": 10})
    await store.set("products", "b", {"name": "Beta"})

    query = create_query_builder("products").order_by("price").build()
    results = await store.query(query)

    assert [doc.id for doc in results] == ["a"]


@pytest.mark.asyncio
async def test_in_filter_and_range_filter():
    store = InMemoryDocumentStore()
    await store.set("products", "a", {"brand": "Trek", "price": 500})
    await store.set("products", "b", {"brand": "Giant", "price": 1500})
    await store.set("products", "c", {"brand": "Bell", "price": 50})

    query = (
        create_query_builder("products")
        .where("brand", "in", ["Trek", "Giant"])
        .where("price", "<=", 1000)
        .build()
    )
    results = await store.query(query)

    assert [doc.id for doc in results] == ["a"]


@pytest.mark.asyncio
async def test_missing_composite_index_raises_invalid_query():
    store = InMemoryDocumentStore(indexes=[[("category", "asc"), ("rating", "desc")]])
    await store.set("products", "a", {"category": "Bikes", "brand": "Trek", "rating": 4})

    indexed = (
        create_query_builder("products")
        .where("category", "==", "Bikes")
        .order_by("rating", "desc")
        .build()
    )
    unindexed = (
        create_query_builder("products")
        .where("brand", "==", "Trek")
        .order_by("rating", "desc")
        .build()
    )

    assert [doc.id for doc in await store.query(indexed)] == ["a"]
    with pytest.raises(InvalidQuery) as excinfo:
        await store.query(unindexed)
    assert "brand asc, rating desc" in excinfo.value.message
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_conditional_update_detects_concurrent_change():
    store = InMemoryDocumentStore()
    created = await store.set("categories", "all", {"Bikes": {}})

    await store.update("categories", "all", {"Apparel": {}}, expected_version=created.version)

    with pytest.raises(VersionConflict):
        await store.update(
            "categories", "all", {"Kids": {}}, expected_version=created.version
        )
    current = await store.get("categories", "all")
    assert set(current.data) == {"Bikes", "Apparel"}


@pytest.mark.asyncio
async def test_stored_data_is_isolated_from_callers():
    store = InMemoryDocumentStore()
    data = {"images": ["one.jpg"]}
    created = await store.create("products", data)

    data["images"].append("two.jpg")
    fetched = await store.get("products", created.id)
    fetched.data["images"].clear()

    assert (await store.get("products", created.id)).data["images"] == ["one.jpg"]


@pytest.mark.asyncio
async def test_delete_missing_document_raises_not_found():
    store = InMemoryDocumentStore()

    with pytest.raises(NotFound):
        await store.delete("products", "nope")

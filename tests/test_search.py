"""Tests for the product name search adapter."""

import pytest
import pytest_asyncio

from src.services.catalog.errors import ValidationError
from src.services.catalog.search import ProductSearch, sanitize_query
from src.services.storage.memory_store import InMemoryDocumentStore

NAMES = ["Mountain Explorer", "Mountain King Helmet", "Road Racer", "Trail Mountain"]


@pytest_asyncio.fixture()
async def search():
    store = InMemoryDocumentStore()
    for index, name in enumerate(NAMES):
        await store.set(
            "products",
            f"p{index}",
            {
                "name": name,
                "nameLower": name.lower(),
                "brand": "Trek",
                "price": 100.0 + index,
                "rating": 4.0,
                "images": [f"https://cdn.example.com/{index}.jpg"],
                "category": "Bikes",
                "subCategory": "Mountain Bikes",
                "details": "long text that is not projected",
            },
        )
    return ProductSearch(store)


@pytest.mark.asyncio
async def test_prefix_matches_case_insensitively(search):
    results = await search.search("MOUNTAIN")

    assert [result.name for result in results] == ["Mountain Explorer", "Mountain King Helmet"]


@pytest.mark.asyncio
async def test_words_inside_a_name_do_not_match(search):
    assert await search.search("explorer") == []


@pytest.mark.asyncio
async def test_results_are_lightweight_projections(search):
    result = (await search.search("road"))[0]

    assert result.model_dump(by_alias=True) == {
        "id": "p2",
        "name": "Road Racer",
        "brand": "Trek",
        "price": 102.0,
        "rating": 4.0,
        "image": "https://cdn.example.com/2.jpg",
        "category": "Bikes",
        "subCategory": "Mountain Bikes",
    }


@pytest.mark.asyncio
async def test_offset_and_limit(search):
    results = await search.search("mountain", limit=1, offset=1)

    assert [result.id for result in results] == ["p1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit, offset", [(0, 0), (51, 0), (10, -1), (10, 501)])
async def test_out_of_range_paging_is_rejected(search, limit, offset):
    with pytest.raises(ValidationError):
        await search.search("mountain", limit=limit, offset=offset)


@pytest.mark.parametrize("raw", [None, "", "a", " a ", "x" * 101, "\x00\x01"])
def test_sanitize_rejects_bad_lengths(raw):
    with pytest.raises(ValidationError):
        sanitize_query(raw)


def test_sanitize_strips_control_characters():
    assert sanitize_query("  tr\x00ek\n ") == "trek"

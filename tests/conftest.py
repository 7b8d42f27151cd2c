"""Pytest configuration and fixtures for the catalog service."""

import asyncio

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from src.services.catalog.taxonomy import TaxonomyRepository
from src.services.clients.decoder_client import get_decoder_client
from src.services.ratelimit.sliding_window import get_redis_client
from src.services.storage.document_store import get_document_store
from src.services.storage.image_storage import get_image_storage
from src.services.storage.memory_store import InMemoryDocumentStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


@pytest.fixture(autouse=True)
def decoder_stub():
    """Provide a stub decoder so tests do not call external services."""
    from src.main import app

    class _StubDecoder:
        def __init__(self):
            self.prompts: list[tuple[str, str | None]] = []

        async def decode(self, prompt: str, *, system: str | None = None) -> str:
            await asyncio.sleep(0)
            self.prompts.append((prompt, system))
            return "- Helmet: protects you on rough descents"

    stub = _StubDecoder()
    app.dependency_overrides[get_decoder_client] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_decoder_client, None)


class StubImageStorage:
    """Records deletions; set ``fail`` to simulate a broken bucket."""

    def __init__(self):
        self.fail = False
        self.deleted_products: list[str] = []
        self.deleted_objects: list[str] = []

    async def delete_product_images(self, product_id: str) -> int:
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.deleted_products.append(product_id)
        return 1

    async def delete_object(self, path: str) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.deleted_objects.append(path)


@pytest.fixture(autouse=True)
def image_storage():
    from src.main import app

    stub = StubImageStorage()
    app.dependency_overrides[get_image_storage] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_image_storage, None)


@pytest_asyncio.fixture()
async def store():
    """Fresh in-memory store seeded with the bundled taxonomy."""
    from src.main import app

    document_store = InMemoryDocumentStore()
    await TaxonomyRepository(document_store).seed_if_missing()
    app.dependency_overrides[get_document_store] = lambda: document_store
    yield document_store
    app.dependency_overrides.pop(get_document_store, None)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from src.main import app

    client = fakeredis.FakeRedis()
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def client(store, redis_client):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


@pytest.fixture()
def product_payload():
    """Factory for valid admin product payloads."""

    def _build(**overrides):
        payload = {
            "name": "Mountain Explorer",
            "category": "Bikes",
            "subCategory": "Mountain Bikes",
            "brand": "Trek",
            "price": 899.0,
            "actualPrice": 999.0,
            "discountPercentage": 10.4,
            "rating": 4.5,
            "inventory": 3,
            "isRecommended": False,
            "images": ["https://cdn.example.com/explorer.jpg"],
            "shortDescription": "Hardtail trail bike",
        }
        payload.update(overrides)
        return payload

    return _build

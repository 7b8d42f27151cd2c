"""Document store abstraction consumed by the catalog core."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from src.config import settings
from src.services.catalog.errors import ServiceUnavailable
from src.services.catalog.query_builder import CompiledQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StoredDocument:
    """A document as returned by the store.

    ``version`` is opaque and only meaningful to the store that produced it;
    ``snapshot`` carries the native object some stores need for cursors.
    """

    id: str
    data: dict[str, Any]
    version: Any = None
    snapshot: Any = field(default=None, repr=False, compare=False)


class DocumentStore(ABC):
    """Abstract document store interface."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """Point lookup; ``None`` when the document does not exist."""

    @abstractmethod
    async def query(
        self,
        query: CompiledQuery,
        *,
        start_after: StoredDocument | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """Execute a compiled query, optionally continuing after a document."""

    @abstractmethod
    async def create(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        """Insert a document under a store-assigned identifier."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        expected_version: Any = None,
    ) -> Any:
        """Replace the given top-level fields and return the new version.

        Raises ``NotFound`` when the document is missing and
        ``VersionConflict`` when ``expected_version`` no longer matches.
        """

    @abstractmethod
    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument:
        """Create or overwrite a document under a caller-chosen identifier."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; raises ``NotFound`` when it does not exist."""


async def bounded(operation: Awaitable[T], timeout: float | None = None) -> T:
    """Await a store call, converting a timeout into ``ServiceUnavailable``."""
    limit = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(operation, timeout=limit)
    except TimeoutError as exc:
        logger.warning("Store call exceeded %.1fs timeout", limit)
        raise ServiceUnavailable("Document store timed out") from exc


_document_store: DocumentStore | None = None


def _initialize_store() -> DocumentStore:
    backend = settings.STORE_BACKEND.lower()
    if backend == "firestore":
        from src.services.storage.firestore_store import create_firestore_store

        return create_firestore_store()
    if backend == "memory":
        from src.services.storage.memory_store import InMemoryDocumentStore

        return InMemoryDocumentStore()
    raise ValueError(f"Unknown STORE_BACKEND {settings.STORE_BACKEND!r}")


def get_document_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide document store."""

    global _document_store
    if _document_store is None:
        _document_store = _initialize_store()
        logger.info("Document store initialized (%s)", settings.STORE_BACKEND)
    return _document_store

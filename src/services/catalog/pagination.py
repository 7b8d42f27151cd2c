"""Cursor-based pagination over compiled queries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar

from src.config import settings
from src.services.catalog.errors import ConfigurationError
from src.services.catalog.query_builder import CompiledQuery
from src.services.storage.document_store import DocumentStore, StoredDocument, bounded

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

StaleCursorPolicy = Literal["end", "restart"]


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the cursor for the next one.

    ``last_id`` is the id of the last document the store returned for this
    page, so mapping or dropping items never stalls the cursor.
    """

    items: list[T] = field(default_factory=list)
    has_more: bool = False
    last_id: str | None = None

    def map(self, transform: Callable[[T], U | None]) -> Page[U]:
        """Apply ``transform`` to every item, dropping ``None`` results."""
        mapped = [result for item in self.items if (result := transform(item)) is not None]
        return Page(items=mapped, has_more=self.has_more, last_id=self.last_id)


class CursorPaginator:
    """Executes compiled queries with the fetch-N+1 pattern.

    Total counts are deliberately not supported; they need a full scan.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        stale_cursor_policy: StaleCursorPolicy | None = None,
        timeout: float | None = None,
    ) -> None:
        policy = stale_cursor_policy or settings.STALE_CURSOR_POLICY
        if policy not in ("end", "restart"):
            raise ConfigurationError(f"Unknown stale cursor policy {policy!r}")
        self._store = store
        self._policy = policy
        self._timeout = timeout

    async def fetch_page(
        self,
        query: CompiledQuery,
        page_size: int,
        cursor: str | None = None,
    ) -> Page[StoredDocument]:
        if page_size < 1:
            raise ConfigurationError(f"Page size must be positive, got {page_size}")

        start_after: StoredDocument | None = None
        if cursor:
            start_after = await bounded(
                self._store.get(query.collection, cursor), self._timeout
            )
            if start_after is None:
                logger.warning(
                    "Pagination cursor no longer exists",
                    extra={
                        "cursor": cursor,
                        "collection": query.collection,
                        "policy": self._policy,
                    },
                )
                if self._policy == "end":
                    return Page()

        documents = await bounded(
            self._store.query(query, start_after=start_after, limit=page_size + 1),
            self._timeout,
        )

        has_more = len(documents) > page_size
        documents = documents[:page_size]
        last_id = documents[-1].id if documents else None
        return Page(items=documents, has_more=has_more, last_id=last_id)

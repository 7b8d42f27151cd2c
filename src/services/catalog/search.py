"""Prefix search over product names."""

from __future__ import annotations

import logging
import unicodedata
from typing import Any

from src.config import settings
from src.models.product import ProductSearchResult
from src.services.catalog.errors import ValidationError
from src.services.catalog.query_builder import create_query_builder
from src.services.storage.document_store import DocumentStore, bounded

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 100


def sanitize_query(raw: str | None) -> str:
    """Strip control characters and surrounding whitespace, then check the length."""
    cleaned = "".join(
        ch for ch in raw or "" if not unicodedata.category(ch).startswith("C")
    ).strip()
    if not MIN_QUERY_LENGTH <= len(cleaned) <= MAX_QUERY_LENGTH:
        raise ValidationError.for_field(
            "q",
            f"Search query must be between {MIN_QUERY_LENGTH} and "
            f"{MAX_QUERY_LENGTH} characters",
        )
    return cleaned


def to_search_result(doc_id: str, data: dict[str, Any]) -> ProductSearchResult:
    images = data.get("images") or []
    return ProductSearchResult(
        id=doc_id,
        name=data.get("name", ""),
        brand=data.get("brand"),
        price=data.get("price"),
        rating=data.get("rating"),
        image=data.get("image") or (images[0] if images else None),
        category=data.get("category"),
        sub_category=data.get("subCategory"),
    )


class ProductSearch:
    """Case-insensitive prefix match on ``nameLower``.

    Only name prefixes match: "mountain" finds "Mountain Explorer" but
    "explorer" does not.
    """

    def __init__(self, store: DocumentStore, collection: str | None = None) -> None:
        self._store = store
        self._collection = collection or settings.PRODUCTS_COLLECTION

    async def search(
        self,
        q: str | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ProductSearchResult]:
        term = sanitize_query(q).lower()
        limit = settings.SEARCH_DEFAULT_LIMIT if limit is None else limit
        if not 1 <= limit <= settings.SEARCH_MAX_LIMIT:
            raise ValidationError.for_field(
                "limit", f"limit must be between 1 and {settings.SEARCH_MAX_LIMIT}"
            )
        if not 0 <= offset <= settings.SEARCH_MAX_OFFSET:
            raise ValidationError.for_field(
                "offset", f"offset must be between 0 and {settings.SEARCH_MAX_OFFSET}"
            )

        query = (
            create_query_builder(self._collection)
            .where_prefix("nameLower", term)
            .order_by("nameLower")
            .limit(offset + limit)
            .build()
        )
        documents = await bounded(self._store.query(query))
        results = [to_search_result(doc.id, doc.data) for doc in documents[offset:]]
        logger.debug("Search %r returned %d results", term, len(results))
        return results

"""Product name search route."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.routes.params import client_identifier
from src.models.product import SearchResponse
from src.services.catalog.search import ProductSearch
from src.services.ratelimit.sliding_window import (
    SlidingWindowRateLimiter,
    get_search_rate_limiter,
)
from src.services.storage.document_store import DocumentStore, get_document_store

router = APIRouter(tags=["search"])


@router.get("/search", response_model=SearchResponse, summary="Search products by name")
async def search_products(
    request: Request,
    store: Annotated[DocumentStore, Depends(get_document_store)],
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_search_rate_limiter)],
    q: Annotated[str | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int, Query()] = 0,
) -> SearchResponse:
    """Case-insensitive prefix match on product names."""
    await limiter.hit(client_identifier(request))
    products = await ProductSearch(store).search(q, limit=limit, offset=offset)
    return SearchResponse(products=products)

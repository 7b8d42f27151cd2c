"""Product listing, lookup and administration on top of the document store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends
from pydantic import ValidationError as SchemaError

from src.config import settings
from src.models.product import Product, ProductInput
from src.services.catalog.errors import NotFound, ValidationError
from src.services.catalog.filters import FilterSpec, SortKey
from src.services.catalog.pagination import CursorPaginator, Page
from src.services.catalog.query_builder import CompiledQuery, Direction, create_query_builder
from src.services.catalog.taxonomy import TaxonomyLookup
from src.services.storage.document_store import (
    DocumentStore,
    StoredDocument,
    bounded,
    get_document_store,
)
from src.services.storage.image_storage import ImageStorage

logger = logging.getLogger(__name__)

SORT_ORDER: dict[SortKey, tuple[str, Direction]] = {
    SortKey.NAME: ("name", "asc"),
    SortKey.PRICE_LOW: ("price", "asc"),
    SortKey.PRICE_HIGH: ("price", "desc"),
    SortKey.RATING: ("rating", "desc"),
    SortKey.CREATED_AT: ("createdAt", "desc"),
}


def _equality(values: tuple[str, ...]) -> tuple[str, object]:
    if len(values) == 1:
        return "==", values[0]
    return "in", values


def build_listing_query(spec: FilterSpec, collection: str | None = None) -> CompiledQuery:
    """Translate a filter specification into a compiled product query."""
    builder = create_query_builder(collection or settings.PRODUCTS_COLLECTION)
    if spec.categories:
        builder.where("category", *_equality(spec.categories))
    builder.where("subCategory", "==", spec.sub_category)
    if spec.brands:
        builder.where("brand", *_equality(spec.brands))
    builder.where("price", ">=", spec.min_price)
    builder.where("price", "<=", spec.max_price)
    if spec.search:
        builder.where_prefix("nameLower", spec.search.lower())
    field, direction = SORT_ORDER[spec.sort]
    return builder.order_by(field, direction).build()


def _to_product(document: StoredDocument) -> Product | None:
    try:
        return Product.from_document(document.id, document.data)
    except SchemaError as exc:
        logger.warning(
            "Skipping product that fails validation",
            extra={"product_id": document.id, "errors": exc.error_count()},
        )
        return None


class ProductRepository:
    """Catalog reads and admin writes for the products collection."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str | None = None,
        paginator: CursorPaginator | None = None,
    ) -> None:
        self._store = store
        self._collection = collection or settings.PRODUCTS_COLLECTION
        self._paginator = paginator or CursorPaginator(store)

    async def list_products(self, spec: FilterSpec) -> Page[Product]:
        """Fill a page with valid products, reading past invalid documents.

        Each store fetch asks only for the missing count, so a full page
        always ends on a valid product and its id is the cursor.
        """
        query = build_listing_query(spec, self._collection)
        products: list[Product] = []
        cursor = spec.cursor
        has_more = False
        while len(products) < spec.page_size:
            raw = await self._paginator.fetch_page(
                query, spec.page_size - len(products), cursor
            )
            products.extend(raw.map(_to_product).items)
            has_more = raw.has_more
            if not has_more or raw.last_id is None:
                break
            cursor = raw.last_id
        return Page(
            items=products,
            has_more=has_more,
            last_id=products[-1].id if products else None,
        )

    async def get_product(self, product_id: str) -> Product:
        document = await bounded(self._store.get(self._collection, product_id))
        if document is None:
            raise NotFound(f"Product {product_id} not found")
        return Product.from_document(document.id, document.data)

    async def list_recommended(self, limit: int | None = None) -> dict[str, list[Product]]:
        """Recommended products grouped by category, best rated first."""
        query = (
            create_query_builder(self._collection)
            .where("isRecommended", "==", True)
            .order_by("rating", "desc")
            .limit(limit or settings.RECOMMENDED_LIMIT)
            .build()
        )
        documents = await bounded(self._store.query(query))
        grouped: dict[str, list[Product]] = {}
        for document in documents:
            product = _to_product(document)
            if product is not None:
                grouped.setdefault(product.category, []).append(product)
        return grouped

    async def create_product(self, payload: ProductInput, lookup: TaxonomyLookup) -> Product:
        data = await self._prepare(payload, lookup)
        now = datetime.now(UTC)
        data["createdAt"] = now
        data["updatedAt"] = now
        document = await bounded(self._store.create(self._collection, data))
        logger.info(
            "Product created",
            extra={"product_id": document.id, "category": data["category"]},
        )
        return Product.from_document(document.id, document.data)

    async def update_product(
        self,
        product_id: str,
        payload: ProductInput,
        lookup: TaxonomyLookup,
    ) -> Product:
        existing = await bounded(self._store.get(self._collection, product_id))
        if existing is None:
            raise NotFound(f"Product {product_id} not found")
        data = await self._prepare(payload, lookup)
        data["updatedAt"] = datetime.now(UTC)
        await bounded(self._store.update(self._collection, product_id, data))
        logger.info("Product updated", extra={"product_id": product_id})
        return Product.from_document(product_id, {**existing.data, **data})

    async def delete_product(
        self,
        product_id: str,
        images: ImageStorage | None = None,
    ) -> None:
        existing = await bounded(self._store.get(self._collection, product_id))
        if existing is None:
            raise NotFound(f"Product {product_id} not found")
        if images is not None:
            try:
                await images.delete_product_images(product_id)
            except Exception as exc:
                logger.warning(
                    "Failed to delete images for product %s, deleting the record anyway: %s",
                    product_id,
                    exc,
                )
        await bounded(self._store.delete(self._collection, product_id))
        logger.info("Product deleted", extra={"product_id": product_id})

    async def _prepare(self, payload: ProductInput, lookup: TaxonomyLookup) -> dict:
        try:
            category = await lookup.resolve_category(payload.category)
        except NotFound as exc:
            raise ValidationError.for_field("category", exc.message) from exc
        try:
            sub_category = await lookup.resolve_subcategory(category, payload.sub_category)
        except NotFound as exc:
            raise ValidationError.for_field("subCategory", exc.message) from exc
        data = payload.to_document()
        data["category"] = category
        data["subCategory"] = sub_category
        return data


def get_product_repository(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> ProductRepository:
    return ProductRepository(store)


ProductRepositoryDependency = Annotated[
    ProductRepository, Depends(get_product_repository)
]

"""Storefront product listing routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from src.api.routes.params import query_params
from src.models.product import Product, ProductPage, RecommendedProducts
from src.services.catalog.filters import CATEGORY, STOREFRONT, normalize_filters
from src.services.catalog.products import ProductRepositoryDependency
from src.services.catalog.taxonomy import TaxonomyLookupDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductPage,
    summary="List products with filters, sort and cursor pagination",
)
async def list_products(
    request: Request,
    repository: ProductRepositoryDependency,
) -> ProductPage:
    spec = normalize_filters(query_params(request), STOREFRONT).unwrap()
    page = await repository.list_products(spec)
    return ProductPage(
        products=page.items,
        has_more=page.has_more,
        last_product_id=page.last_id,
    )


@router.get(
    "/recommended",
    response_model=RecommendedProducts,
    summary="Recommended products grouped by category",
)
async def list_recommended(
    repository: ProductRepositoryDependency,
) -> RecommendedProducts:
    return RecommendedProducts(categories=await repository.list_recommended())


@router.get(
    "/category/{category}/{subcategory}",
    response_model=ProductPage,
    summary="List products of one subcategory",
)
async def list_category_products(
    category: str,
    subcategory: str,
    request: Request,
    repository: ProductRepositoryDependency,
    lookup: TaxonomyLookupDependency,
) -> ProductPage:
    """Path segments match the taxonomy case-insensitively.

    Unknown names are a 404; a known subcategory without products is an
    empty page.
    """
    canonical_category = await lookup.resolve_category(category)
    canonical_subcategory = await lookup.resolve_subcategory(category, subcategory)
    spec = normalize_filters(query_params(request), CATEGORY).unwrap()
    spec = spec.model_copy(
        update={
            "categories": (canonical_category,),
            "sub_category": canonical_subcategory,
        }
    )
    page = await repository.list_products(spec)
    logger.debug(
        "Category listing %s > %s returned %d products",
        canonical_category,
        canonical_subcategory,
        len(page.items),
    )
    return ProductPage(
        products=page.items,
        has_more=page.has_more,
        last_product_id=page.last_id,
    )


@router.get("/{product_id}", response_model=Product, summary="Fetch one product")
async def get_product(
    product_id: str,
    repository: ProductRepositoryDependency,
) -> Product:
    return await repository.get_product(product_id)

"""Admin product management routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status

from src.api.auth import require_admin
from src.api.routes.params import query_params
from src.models.product import ProductInput, ProductMutationResponse, ProductPage
from src.services.catalog.filters import ADMIN, normalize_filters
from src.services.catalog.products import ProductRepositoryDependency
from src.services.catalog.taxonomy import TaxonomyLookupDependency
from src.services.storage.image_storage import ImageStorageDependency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/products",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=ProductPage, summary="Admin product listing")
async def list_admin_products(
    request: Request,
    repository: ProductRepositoryDependency,
) -> ProductPage:
    """Newest first; ``search`` is a case-insensitive name prefix."""
    spec = normalize_filters(query_params(request), ADMIN).unwrap()
    page = await repository.list_products(spec)
    return ProductPage(
        products=page.items,
        has_more=page.has_more,
        last_product_id=page.last_id,
    )


@router.post(
    "",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(
    payload: ProductInput,
    repository: ProductRepositoryDependency,
    lookup: TaxonomyLookupDependency,
) -> ProductMutationResponse:
    product = await repository.create_product(payload, lookup)
    return ProductMutationResponse(
        message="Product created successfully",
        id=product.id,
        product=product,
    )


@router.put(
    "/{product_id}",
    response_model=ProductMutationResponse,
    summary="Replace a product",
)
async def update_product(
    product_id: str,
    payload: ProductInput,
    repository: ProductRepositoryDependency,
    lookup: TaxonomyLookupDependency,
) -> ProductMutationResponse:
    product = await repository.update_product(product_id, payload, lookup)
    return ProductMutationResponse(message="Product updated successfully", product=product)


@router.delete(
    "/{product_id}",
    response_model=ProductMutationResponse,
    response_model_exclude_none=True,
    summary="Delete a product and its images",
)
async def delete_product(
    product_id: str,
    repository: ProductRepositoryDependency,
    images: ImageStorageDependency,
) -> ProductMutationResponse:
    await repository.delete_product(product_id, images)
    return ProductMutationResponse(message="Product deleted successfully")

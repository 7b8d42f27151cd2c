"""Admin brand taxonomy routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.auth import require_admin
from src.models.taxonomy import BrandEntry, BrandListResponse
from src.services.catalog.taxonomy import (
    AddBrand,
    RemoveBrand,
    TaxonomyLookup,
    TaxonomyLookupDependency,
    TaxonomyOperation,
    TaxonomyRepositoryDependency,
)
from src.services.storage.image_storage import ImageStorage, ImageStorageDependency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/brands",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


async def _canonical(lookup: TaxonomyLookup, entry: BrandEntry) -> tuple[str, str]:
    category = await lookup.resolve_category(entry.category)
    subcategory = await lookup.resolve_subcategory(category, entry.subcategory)
    return category, subcategory


async def _cleanup_logos(
    operation: TaxonomyOperation, images: ImageStorage | None
) -> None:
    if images is None:
        return
    for path in operation.after_commit():
        try:
            await images.delete_object(path)
        except Exception as exc:
            logger.warning("Failed to delete brand logo %s: %s", path, exc)


@router.get("", response_model=BrandListResponse, summary="List brands")
async def list_brands(lookup: TaxonomyLookupDependency) -> BrandListResponse:
    taxonomy = await lookup.snapshot()
    brands = [
        BrandEntry(name=name, category=category, subcategory=subcategory)
        for name, category, subcategory in taxonomy.brand_entries()
    ]
    # the last occurrence of a name wins, first position is kept
    unique: dict[str, BrandEntry] = {}
    for brand in brands:
        unique[brand.name] = brand
    return BrandListResponse(
        brands=brands,
        unique_brands=list(unique.values()),
        categories_structure=taxonomy.tree,
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add a brand")
async def add_brand(
    payload: BrandEntry,
    lookup: TaxonomyLookupDependency,
    repository: TaxonomyRepositoryDependency,
) -> dict[str, str]:
    category, subcategory = await _canonical(lookup, payload)
    name = payload.name.strip()
    await repository.mutate_taxonomy(AddBrand(name, category, subcategory))
    logger.info(
        "Brand added",
        extra={"brand": name, "category": category, "subcategory": subcategory},
    )
    return {"message": "Brand added successfully"}


@router.delete("", summary="Remove a brand")
async def remove_brand(
    name: Annotated[str, Query(min_length=1)],
    category: Annotated[str, Query(min_length=1)],
    subcategory: Annotated[str, Query(min_length=1)],
    lookup: TaxonomyLookupDependency,
    repository: TaxonomyRepositoryDependency,
    images: ImageStorageDependency,
) -> dict[str, str]:
    name = name.strip()
    entry = BrandEntry(name=name, category=category, subcategory=subcategory)
    canonical_category, canonical_subcategory = await _canonical(lookup, entry)
    operation = RemoveBrand(name, canonical_category, canonical_subcategory)
    await repository.mutate_taxonomy(operation)
    await _cleanup_logos(operation, images)
    logger.info(
        "Brand removed",
        extra={
            "brand": name,
            "category": canonical_category,
            "subcategory": canonical_subcategory,
        },
    )
    return {"message": "Brand removed successfully"}

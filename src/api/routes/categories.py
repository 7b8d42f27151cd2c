"""Read-only taxonomy route."""

from __future__ import annotations

from fastapi import APIRouter

from src.models.taxonomy import CategoriesResponse
from src.services.catalog.taxonomy import TaxonomyLookupDependency

router = APIRouter(tags=["categories"])


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(lookup: TaxonomyLookupDependency) -> CategoriesResponse:
    taxonomy = await lookup.snapshot()
    return CategoriesResponse(
        categories=taxonomy.tree,
        subcategories_by_category=taxonomy.subcategories_by_category(),
        brands_by_subcategory=taxonomy.brands_by_subcategory(),
        brands_by_category=taxonomy.brands_by_category(),
        all_brands=taxonomy.all_brands(),
    )

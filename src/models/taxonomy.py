"""Taxonomy schemas for the category and brand endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class BrandEntry(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    subcategory: str = Field(..., min_length=1)


class BrandListResponse(BaseModel):
    brands: list[BrandEntry]
    unique_brands: list[BrandEntry] = Field(..., serialization_alias="uniqueBrands")
    categories_structure: dict[str, Any] = Field(
        ..., serialization_alias="categoriesStructure"
    )


class CategoriesResponse(BaseModel):
    """Taxonomy tree plus the derived lookup views."""

    categories: dict[str, Any]
    subcategories_by_category: dict[str, list[str]] = Field(
        ..., serialization_alias="subcategoriesByCategory"
    )
    brands_by_subcategory: dict[str, list[str]] = Field(
        ..., serialization_alias="brandsBySubcategory"
    )
    brands_by_category: dict[str, list[str]] = Field(
        ..., serialization_alias="brandsByCategory"
    )
    all_brands: list[str] = Field(..., serialization_alias="allBrands")

"""Product domain models and API schemas."""

from __future__ import annotations

import math
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def product_slug(name: str) -> str:
    """Lower-case, hyphen separated slug used in product URLs."""
    return _SLUG_SEPARATORS.sub("-", name.lower()).strip("-")


class CamelModel(BaseModel):
    """Base model serialising snake_case attributes as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductInput(CamelModel):
    """Fields an administrator submits when creating or replacing a product."""

    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    sub_category: str = Field(..., min_length=1)
    brand: str | None = None
    price: float | None = Field(None, ge=0, description="Selling price")
    actual_price: float = Field(..., ge=0, description="List price before discount")
    discount_percentage: float | None = Field(None, ge=0, le=100)
    rating: float = Field(..., ge=0, le=5)
    inventory: int = Field(1, ge=0)
    is_recommended: bool = False
    image: str | None = Field(None, description="Thumbnail image URL")
    images: list[str] = Field(default_factory=list)
    short_description: str | None = None
    details: str | None = None
    slug: str | None = None

    def to_document(self) -> dict:
        """Store representation, camelCase keys plus the search key."""
        document = self.model_dump(by_alias=True)
        document["nameLower"] = self.name.lower()
        return document


class Product(ProductInput):
    """A stored product with server-managed and derived fields."""

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _default_slug(self) -> Product:
        if not self.slug:
            self.slug = product_slug(self.name)
        return self

    @computed_field(alias="roundedDiscountPercentage")  # type: ignore[prop-decorator]
    @property
    def rounded_discount_percentage(self) -> int | None:
        if self.discount_percentage is None:
            return None
        return math.floor(self.discount_percentage)

    @computed_field(alias="discountedPrice")  # type: ignore[prop-decorator]
    @property
    def discounted_price(self) -> float:
        if self.price is not None:
            return self.price
        if self.rounded_discount_percentage is None:
            return self.actual_price
        return self.actual_price * (1 - self.rounded_discount_percentage / 100)

    @property
    def thumbnail(self) -> str | None:
        return self.image or (self.images[0] if self.images else None)

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> Product:
        return cls.model_validate({**data, "id": doc_id})


class ProductSearchResult(CamelModel):
    """Lightweight projection returned by name search."""

    id: str
    name: str
    brand: str | None = None
    price: float | None = None
    rating: float | None = None
    image: str | None = None
    category: str | None = None
    sub_category: str | None = None


class ProductPage(CamelModel):
    """One page of a product listing."""

    products: list[Product]
    has_more: bool
    last_product_id: str | None = None


class RecommendedProducts(BaseModel):
    categories: dict[str, list[Product]]


class SearchResponse(BaseModel):
    products: list[ProductSearchResult]


class ProductMutationResponse(BaseModel):
    message: str
    id: str | None = None
    product: Product | None = None

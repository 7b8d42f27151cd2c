"""Parsing of untrusted listing parameters into a validated filter specification."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as SchemaError

from src.config import settings
from src.services.catalog.errors import FieldError, ValidationError

logger = logging.getLogger(__name__)

RawParams = Mapping[str, str | Sequence[str]]


class SortKey(str, Enum):
    NAME = "name"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    CREATED_AT = "createdAt"


@dataclass(frozen=True)
class FilterProfile:
    """Defaults and bounds for one listing surface."""

    name: str
    default_page_size: int
    max_page_size: int
    default_sort: SortKey


STOREFRONT = FilterProfile(
    name="storefront",
    default_page_size=settings.LISTING_DEFAULT_PAGE_SIZE,
    max_page_size=settings.LISTING_MAX_PAGE_SIZE,
    default_sort=SortKey.RATING,
)
CATEGORY = FilterProfile(
    name="category",
    default_page_size=settings.CATEGORY_DEFAULT_PAGE_SIZE,
    max_page_size=settings.LISTING_MAX_PAGE_SIZE,
    default_sort=SortKey.RATING,
)
ADMIN = FilterProfile(
    name="admin",
    default_page_size=settings.ADMIN_DEFAULT_PAGE_SIZE,
    max_page_size=settings.ADMIN_MAX_PAGE_SIZE,
    default_sort=SortKey.CREATED_AT,
)


class FilterSpec(BaseModel):
    """Validated, immutable listing request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    categories: tuple[str, ...] = ()
    sub_category: str | None = Field(None, alias="subCategory")
    brands: tuple[str, ...] = ()
    min_price: float | None = Field(None, alias="minPrice", ge=0)
    max_price: float | None = Field(None, alias="maxPrice", ge=0)
    search: str | None = None
    sort: SortKey = Field(SortKey.RATING, alias="sortBy")
    page_size: int = Field(..., alias="pageSize", ge=1)
    cursor: str | None = Field(None, alias="startAfterId")

    @field_validator("max_price")
    @classmethod
    def _price_range(cls, value: float | None, info: ValidationInfo) -> float | None:
        minimum = info.data.get("min_price")
        if value is not None and minimum is not None and minimum > value:
            raise ValueError("minPrice cannot be greater than maxPrice")
        return value

    @field_validator("page_size")
    @classmethod
    def _page_bound(cls, value: int, info: ValidationInfo) -> int:
        maximum = (info.context or {}).get("max_page_size")
        if maximum is not None and value > maximum:
            raise ValueError(f"pageSize must be between 1 and {maximum}")
        return value


@dataclass(frozen=True)
class NormalizedFilters:
    """Tagged result of normalization: a spec, or the field errors."""

    spec: FilterSpec | None = None
    errors: tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return self.spec is not None

    def unwrap(self) -> FilterSpec:
        if self.spec is None:
            raise ValidationError("Invalid query parameters", self.errors)
        return self.spec


# wire name -> accepted aliases, first match wins
_ALIASES: dict[str, tuple[str, ...]] = {
    "categories": ("categories", "category"),
    "brands": ("brands", "brand"),
    "subCategory": ("subCategory", "subcategory"),
    "minPrice": ("minPrice",),
    "maxPrice": ("maxPrice",),
    "sortBy": ("sortBy", "sort"),
    "pageSize": ("pageSize",),
    "startAfterId": ("startAfterId", "lastId", "cursor"),
    "search": ("search", "q"),
}
_LIST_FIELDS = frozenset({"categories", "brands"})


def _values(raw: RawParams, name: str) -> list[str]:
    collected: list[str] = []
    for alias in _ALIASES[name]:
        value = raw.get(alias)
        if value is None:
            continue
        if isinstance(value, str):
            collected.append(value)
        else:
            collected.extend(value)
    return collected


def split_tokens(values: Sequence[str]) -> tuple[str, ...]:
    """Split comma-separated values, trimming and dropping empty or repeated tokens."""
    tokens: list[str] = []
    for value in values:
        for token in value.split(","):
            token = token.strip()
            if token and token not in tokens:
                tokens.append(token)
    return tuple(tokens)


def _first(values: Sequence[str]) -> str | None:
    for value in values:
        if value.strip():
            return value.strip()
    return None


def normalize_filters(raw: RawParams, profile: FilterProfile = STOREFRONT) -> NormalizedFilters:
    """Validate raw listing parameters against ``profile``.

    Unrecognised sort keys fall back to the profile default rather than
    failing, so a mistyped ``sortBy`` degrades to the usual ordering.
    """
    data: dict[str, object] = {}
    for name in _ALIASES:
        values = _values(raw, name)
        if name in _LIST_FIELDS:
            tokens = split_tokens(values)
            if tokens:
                data[name] = tokens
            continue
        value = _first(values)
        if value is not None:
            data[name] = value

    sort = data.get("sortBy")
    if sort not in {key.value for key in SortKey}:
        if sort is not None:
            logger.debug("Unknown sort key %r, using %s", sort, profile.default_sort.value)
        data["sortBy"] = profile.default_sort
    data.setdefault("pageSize", profile.default_page_size)

    try:
        spec = FilterSpec.model_validate(
            data, context={"max_page_size": profile.max_page_size}
        )
    except SchemaError as exc:
        errors = tuple(
            FieldError(
                field=".".join(str(part) for part in error["loc"]) or "query",
                message=error["msg"],
            )
            for error in exc.errors()
        )
        return NormalizedFilters(errors=errors)
    return NormalizedFilters(spec=spec)

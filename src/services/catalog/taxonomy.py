"""Category and brand taxonomy: request-scoped lookups and guarded mutations."""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any
from urllib.parse import unquote

from fastapi import Depends

from src.config import settings
from src.services.catalog.errors import NotFound, ValidationError, VersionConflict
from src.services.storage.document_store import (
    DocumentStore,
    bounded,
    get_document_store,
)

logger = logging.getLogger(__name__)

TaxonomyTree = dict[str, dict[str, Any]]


def _normalize_segment(value: str) -> str:
    return unquote(value).strip().casefold()


class Taxonomy:
    """Read-only view over the ``{Category: {subcategories: {...}}}`` tree."""

    def __init__(self, tree: TaxonomyTree | None = None) -> None:
        self.tree: TaxonomyTree = tree or {}

    def categories(self) -> list[str]:
        return list(self.tree)

    def subcategories(self, category: str) -> dict[str, Any]:
        return self.tree.get(category, {}).get("subcategories", {})

    def brands(self, category: str, subcategory: str) -> list[str]:
        return list(self.subcategories(category).get(subcategory, {}).get("brands", []))

    def subcategories_by_category(self) -> dict[str, list[str]]:
        return {category: list(self.subcategories(category)) for category in self.tree}

    def brands_by_subcategory(self) -> dict[str, list[str]]:
        # subcategory names can repeat across categories; merge their brands
        merged: dict[str, set[str]] = {}
        for category in self.tree:
            for subcategory, entry in self.subcategories(category).items():
                merged.setdefault(subcategory, set()).update(entry.get("brands", []))
        return {name: sorted(brands) for name, brands in merged.items()}

    def brands_by_category(self) -> dict[str, list[str]]:
        return {
            category: sorted(
                {
                    brand
                    for entry in self.subcategories(category).values()
                    for brand in entry.get("brands", [])
                }
            )
            for category in self.tree
        }

    def all_brands(self) -> list[str]:
        return sorted(
            {brand for brands in self.brands_by_category().values() for brand in brands}
        )

    def brand_entries(self) -> list[tuple[str, str, str]]:
        """Every (brand, category, subcategory) triple in document order."""
        return [
            (brand, category, subcategory)
            for category in self.tree
            for subcategory, entry in self.subcategories(category).items()
            for brand in entry.get("brands", [])
        ]


async def _read_taxonomy(store: DocumentStore) -> tuple[Taxonomy, Any]:
    document = await bounded(
        store.get(settings.TAXONOMY_COLLECTION, settings.TAXONOMY_DOCUMENT)
    )
    if document is None:
        logger.warning(
            "Taxonomy document is missing, treating it as empty",
            extra={
                "collection": settings.TAXONOMY_COLLECTION,
                "document": settings.TAXONOMY_DOCUMENT,
            },
        )
        return Taxonomy(), None
    return Taxonomy(document.data), document.version


class TaxonomyLookup:
    """Request-scoped taxonomy snapshot.

    The taxonomy document is read at most once per instance; every resolver
    matches path segments case-insensitively after URL-decoding and trimming
    and returns the canonical stored name.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._snapshot: Taxonomy | None = None

    async def snapshot(self) -> Taxonomy:
        if self._snapshot is None:
            self._snapshot, _ = await _read_taxonomy(self._store)
        return self._snapshot

    async def resolve_category(self, value: str) -> str:
        taxonomy = await self.snapshot()
        wanted = _normalize_segment(value)
        for category in taxonomy.categories():
            if category.casefold() == wanted:
                return category
        raise NotFound(f"Category '{unquote(value).strip()}' not found")

    async def resolve_subcategory(self, category: str, value: str) -> str:
        canonical_category = await self.resolve_category(category)
        taxonomy = await self.snapshot()
        wanted = _normalize_segment(value)
        for subcategory in taxonomy.subcategories(canonical_category):
            if subcategory.casefold() == wanted:
                return subcategory
        raise NotFound(
            f"Subcategory '{unquote(value).strip()}' not found in {canonical_category}"
        )

    async def brands_for_subcategory(self, category: str, subcategory: str) -> list[str]:
        canonical_category = await self.resolve_category(category)
        canonical_subcategory = await self.resolve_subcategory(category, subcategory)
        taxonomy = await self.snapshot()
        return taxonomy.brands(canonical_category, canonical_subcategory)

    async def brands_for_category(self, category: str) -> list[str]:
        canonical = await self.resolve_category(category)
        taxonomy = await self.snapshot()
        return taxonomy.brands_by_category()[canonical]

    async def all_brands(self) -> list[str]:
        taxonomy = await self.snapshot()
        return taxonomy.all_brands()


class TaxonomyOperation(ABC):
    """A change applied to a private copy of the taxonomy tree."""

    @abstractmethod
    def apply(self, tree: TaxonomyTree) -> TaxonomyTree:
        """Return the mutated tree or raise a catalog error."""

    def after_commit(self) -> list[str]:
        """Brand logo paths that become orphaned once the change is stored."""
        return []


def _locate_brands(tree: TaxonomyTree, category: str, subcategory: str) -> list[str]:
    if category not in tree:
        raise NotFound(f"Category '{category}' not found")
    subcategories = tree[category].setdefault("subcategories", {})
    if subcategory not in subcategories:
        raise NotFound(f"Subcategory '{subcategory}' not found in {category}")
    return subcategories[subcategory].setdefault("brands", [])


@dataclass(frozen=True)
class AddBrand(TaxonomyOperation):
    name: str
    category: str
    subcategory: str

    def apply(self, tree: TaxonomyTree) -> TaxonomyTree:
        brands = _locate_brands(tree, self.category, self.subcategory)
        if self.name in brands:
            raise ValidationError.for_field(
                "name",
                f"Brand '{self.name}' already exists in {self.category} > {self.subcategory}",
            )
        brands.append(self.name)
        brands.sort()
        return tree


@dataclass(frozen=True)
class RemoveBrand(TaxonomyOperation):
    name: str
    category: str
    subcategory: str

    def apply(self, tree: TaxonomyTree) -> TaxonomyTree:
        brands = _locate_brands(tree, self.category, self.subcategory)
        if self.name not in brands:
            raise NotFound(
                f"Brand '{self.name}' not found in {self.category} > {self.subcategory}"
            )
        brands.remove(self.name)
        return tree

    def after_commit(self) -> list[str]:
        return [brand_logo_path(self.name)]


def brand_logo_path(brand: str) -> str:
    slug = "-".join(brand.lower().split())
    return f"brandLogos/{slug}.png"


class TaxonomyRepository:
    """Read-modify-write access to the taxonomy document.

    Every mutation reads the document with its version, applies the operation
    to a copy and writes it back conditionally on that version. A lost race is
    retried from a fresh read up to ``max_attempts`` times.
    """

    def __init__(self, store: DocumentStore, *, max_attempts: int | None = None) -> None:
        self._store = store
        self._max_attempts = max_attempts or settings.TAXONOMY_MAX_ATTEMPTS

    async def load(self) -> Taxonomy:
        taxonomy, _ = await _read_taxonomy(self._store)
        return taxonomy

    async def mutate_taxonomy(self, operation: TaxonomyOperation) -> Taxonomy:
        for attempt in range(1, self._max_attempts + 1):
            taxonomy, version = await _read_taxonomy(self._store)
            if version is None:
                raise NotFound("Taxonomy document does not exist")
            updated = operation.apply(copy.deepcopy(taxonomy.tree))
            try:
                await bounded(
                    self._store.update(
                        settings.TAXONOMY_COLLECTION,
                        settings.TAXONOMY_DOCUMENT,
                        updated,
                        expected_version=version,
                    )
                )
            except VersionConflict:
                logger.info(
                    "Taxonomy changed concurrently, retrying",
                    extra={"attempt": attempt, "operation": type(operation).__name__},
                )
                continue
            return Taxonomy(updated)

        raise VersionConflict(
            f"Taxonomy update did not settle after {self._max_attempts} attempts"
        )

    async def seed_if_missing(self, seed_file: str | Path | None = None) -> bool:
        """Write the bundled taxonomy when the document does not exist yet."""
        existing = await bounded(
            self._store.get(settings.TAXONOMY_COLLECTION, settings.TAXONOMY_DOCUMENT)
        )
        if existing is not None:
            return False
        path = Path(seed_file or settings.TAXONOMY_SEED_FILE)
        tree = json.loads(path.read_text(encoding="utf-8"))
        await bounded(
            self._store.set(settings.TAXONOMY_COLLECTION, settings.TAXONOMY_DOCUMENT, tree)
        )
        logger.info("Seeded taxonomy from %s (%d categories)", path, len(tree))
        return True


def get_taxonomy_lookup(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> TaxonomyLookup:
    """FastAPI dependency providing one lookup per request."""
    return TaxonomyLookup(store)


def get_taxonomy_repository(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> TaxonomyRepository:
    return TaxonomyRepository(store)


TaxonomyLookupDependency = Annotated[TaxonomyLookup, Depends(get_taxonomy_lookup)]
TaxonomyRepositoryDependency = Annotated[
    TaxonomyRepository, Depends(get_taxonomy_repository)
]

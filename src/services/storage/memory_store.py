"""In-memory document store emulating Firestore query semantics.

Used for local development and tests. Documents missing a filtered or
ordered field are excluded from results, ties break on document id in the
direction of the last ordering, and ``start_after`` continues strictly after
the cursor document's sort key. When ``indexes`` is given, queries that need
a composite index outside that set fail the way Firestore does.
"""

from __future__ import annotations

import copy
import itertools
import logging
import uuid
from collections.abc import Iterable, Sequence
from functools import cmp_to_key
from threading import RLock
from typing import Any

from src.services.catalog.errors import InvalidQuery, NotFound, VersionConflict
from src.services.catalog.query_builder import (
    CompiledQuery,
    Ordering,
    Predicate,
    describe_index,
)
from src.services.storage.document_store import DocumentStore, StoredDocument

logger = logging.getLogger(__name__)

_MISSING = object()


def _lookup(data: dict[str, Any], field: str) -> Any:
    current: Any = data
    for part in field.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _matches(data: dict[str, Any], predicate: Predicate) -> bool:
    value = _lookup(data, predicate.field)
    if value is _MISSING:
        return False
    try:
        match predicate.op:
            case "==":
                return value == predicate.value
            case "in":
                return value in predicate.value
            case "<":
                return value < predicate.value
            case "<=":
                return value <= predicate.value
            case ">":
                return value > predicate.value
            case ">=":
                return value >= predicate.value
    except TypeError:
        # mismatched types never match, as in Firestore
        return False
    return False


def _compare_values(left: Any, right: Any) -> int:
    if left == right:
        return 0
    if left is _MISSING:
        return -1
    if right is _MISSING:
        return 1
    try:
        return -1 if left < right else 1
    except TypeError:
        left_type, right_type = type(left).__name__, type(right).__name__
        return -1 if left_type < right_type else 1


class InMemoryDocumentStore(DocumentStore):
    """Naive thread-safe store keeping every collection in a dict."""

    def __init__(
        self,
        indexes: Iterable[Sequence[tuple[str, str]]] | None = None,
    ) -> None:
        self._lock = RLock()
        self._collections: dict[str, dict[str, tuple[dict[str, Any], int]]] = {}
        self._versions = itertools.count(1)
        self._indexes = (
            None
            if indexes is None
            else {tuple(tuple(entry) for entry in index) for index in indexes}
        )

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        with self._lock:
            entry = self._collections.get(collection, {}).get(doc_id)
            if entry is None:
                return None
            data, version = entry
            return StoredDocument(id=doc_id, data=copy.deepcopy(data), version=version)

    async def query(
        self,
        query: CompiledQuery,
        *,
        start_after: StoredDocument | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        self._check_index(query)

        with self._lock:
            documents = [
                StoredDocument(id=doc_id, data=copy.deepcopy(data), version=version)
                for doc_id, (data, version) in self._collections.get(
                    query.collection, {}
                ).items()
            ]

        orderings = self._effective_orderings(query)
        matching = [
            doc
            for doc in documents
            if all(_matches(doc.data, p) for p in query.predicates)
            and all(_lookup(doc.data, o.field) is not _MISSING for o in orderings)
        ]

        def compare(left: StoredDocument, right: StoredDocument) -> int:
            for ordering in orderings:
                result = _compare_values(
                    _lookup(left.data, ordering.field),
                    _lookup(right.data, ordering.field),
                )
                if result:
                    return -result if ordering.direction == "desc" else result
            tie = _compare_values(left.id, right.id)
            if orderings and orderings[-1].direction == "desc":
                return -tie
            return tie

        matching.sort(key=cmp_to_key(compare))
        if start_after is not None:
            matching = [doc for doc in matching if compare(doc, start_after) > 0]

        effective_limit = limit if limit is not None else query.limit
        if effective_limit is not None:
            matching = matching[:effective_limit]
        return matching

    async def create(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        doc_id = uuid.uuid4().hex[:20]
        with self._lock:
            version = next(self._versions)
            self._collections.setdefault(collection, {})[doc_id] = (
                copy.deepcopy(data),
                version,
            )
        return StoredDocument(id=doc_id, data=copy.deepcopy(data), version=version)

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        expected_version: Any = None,
    ) -> Any:
        with self._lock:
            documents = self._collections.get(collection, {})
            if doc_id not in documents:
                raise NotFound(f"Document {collection}/{doc_id} not found")
            current, version = documents[doc_id]
            if expected_version is not None and expected_version != version:
                raise VersionConflict(
                    f"Document {collection}/{doc_id} changed since it was read"
                )
            merged = {**current, **copy.deepcopy(data)}
            new_version = next(self._versions)
            documents[doc_id] = (merged, new_version)
            return new_version

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument:
        with self._lock:
            version = next(self._versions)
            self._collections.setdefault(collection, {})[doc_id] = (
                copy.deepcopy(data),
                version,
            )
        return StoredDocument(id=doc_id, data=copy.deepcopy(data), version=version)

    async def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            documents = self._collections.get(collection, {})
            if doc_id not in documents:
                raise NotFound(f"Document {collection}/{doc_id} not found")
            del documents[doc_id]

    @staticmethod
    def _effective_orderings(query: CompiledQuery) -> list[Ordering]:
        orderings = list(query.order_by)
        range_field = query.range_field
        if range_field and range_field not in {o.field for o in orderings}:
            # the inequality field is ordered implicitly after explicit orderings
            orderings.append(Ordering(field=range_field, direction="asc"))
        return orderings

    def _check_index(self, query: CompiledQuery) -> None:
        if self._indexes is None:
            return
        required = query.required_index()
        if required is None or required in self._indexes:
            return
        logger.error(
            "Query on %s requires a missing composite index",
            query.collection,
            extra={"index": describe_index(required)},
        )
        raise InvalidQuery(
            f"The query requires a composite index on {query.collection}: "
            f"{describe_index(required)}"
        )

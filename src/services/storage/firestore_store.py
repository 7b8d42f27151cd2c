"""Firestore-backed document store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from google.api_core import exceptions as google_exceptions  # type: ignore[import]
from google.cloud import firestore  # type: ignore[import]
from google.cloud.firestore_v1.base_query import FieldFilter  # type: ignore[import]
from google.cloud.firestore_v1.field_path import FieldPath  # type: ignore[import]

from src.config import settings
from src.services.catalog.errors import (
    AccessDenied,
    CatalogError,
    InternalError,
    InvalidQuery,
    NotFound,
    ServiceUnavailable,
    VersionConflict,
)
from src.services.catalog.query_builder import CompiledQuery
from src.services.storage.document_store import DocumentStore, StoredDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNAVAILABLE = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ResourceExhausted,
    google_exceptions.Aborted,
    google_exceptions.RetryError,
)
_DENIED = (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)


def classify_store_error(exc: Exception, *, conditional: bool = False) -> CatalogError:
    """Map a Google API failure onto the catalog error taxonomy.

    ``FailedPrecondition`` means a missing composite index on reads and a lost
    ``last_update_time`` precondition on conditional writes.
    """
    if isinstance(exc, _UNAVAILABLE):
        return ServiceUnavailable(f"Document store unavailable: {exc}")
    if isinstance(exc, _DENIED):
        return AccessDenied(f"Document store access denied: {exc}")
    if isinstance(exc, google_exceptions.FailedPrecondition):
        if conditional:
            return VersionConflict(f"Document changed since it was read: {exc}")
        return InvalidQuery(f"Query rejected by the document store: {exc}")
    if isinstance(exc, google_exceptions.InvalidArgument):
        return InvalidQuery(f"Query rejected by the document store: {exc}")
    if isinstance(exc, google_exceptions.NotFound):
        return NotFound(f"Document not found: {exc}")
    return InternalError(f"Unexpected document store failure: {exc}")


class FirestoreDocumentStore(DocumentStore):
    """Service wrapping the synchronous Firestore client in worker threads."""

    def __init__(self, client: firestore.Client):
        self.client = client

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        reference = self.client.collection(collection).document(doc_id)
        snapshot = await self._call(reference.get)
        if not snapshot.exists:
            return None
        return self._to_document(snapshot)

    async def query(
        self,
        query: CompiledQuery,
        *,
        start_after: StoredDocument | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        native = self.client.collection(query.collection)
        for predicate in query.predicates:
            value = list(predicate.value) if predicate.op == "in" else predicate.value
            native = native.where(
                filter=FieldFilter(predicate.field, predicate.op, value)
            )
        for ordering in query.order_by:
            direction = (
                firestore.Query.DESCENDING
                if ordering.direction == "desc"
                else firestore.Query.ASCENDING
            )
            native = native.order_by(ordering.field, direction=direction)
        if start_after is not None:
            native = native.start_after(
                start_after.snapshot
                if start_after.snapshot is not None
                else start_after.data
            )
        effective_limit = limit if limit is not None else query.limit
        if effective_limit is not None:
            native = native.limit(effective_limit)

        snapshots = await self._call(lambda: list(native.stream()))
        return [self._to_document(snapshot) for snapshot in snapshots]

    async def create(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        update_time, reference = await self._call(
            self.client.collection(collection).add, data
        )
        return StoredDocument(id=reference.id, data=dict(data), version=update_time)

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        expected_version: Any = None,
    ) -> Any:
        reference = self.client.collection(collection).document(doc_id)
        # top-level keys may contain spaces or slashes ("Tyres & Tubes")
        field_updates = {FieldPath(key).to_api_repr(): value for key, value in data.items()}
        option = (
            self.client.write_option(last_update_time=expected_version)
            if expected_version is not None
            else None
        )
        result = await self._call(
            reference.update,
            field_updates,
            option=option,
            conditional=expected_version is not None,
        )
        return result.update_time

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument:
        reference = self.client.collection(collection).document(doc_id)
        result = await self._call(reference.set, data)
        return StoredDocument(id=doc_id, data=dict(data), version=result.update_time)

    async def delete(self, collection: str, doc_id: str) -> None:
        reference = self.client.collection(collection).document(doc_id)
        await self._call(reference.delete, option=self.client.write_option(exists=True))

    async def _call(
        self,
        func: Callable[..., T],
        *args: Any,
        conditional: bool = False,
        **kwargs: Any,
    ) -> T:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except google_exceptions.GoogleAPIError as exc:
            error = classify_store_error(exc, conditional=conditional)
            log = logger.error if isinstance(error, InvalidQuery) else logger.warning
            log("Firestore call failed: %s", error.message)
            raise error from exc

    @staticmethod
    def _to_document(snapshot: Any) -> StoredDocument:
        return StoredDocument(
            id=snapshot.id,
            data=snapshot.to_dict() or {},
            version=snapshot.update_time,
            snapshot=snapshot,
        )


def create_firestore_store() -> FirestoreDocumentStore:
    """Factory function to create a Firestore document store."""
    client = firestore.Client(
        project=settings.FIRESTORE_PROJECT,
        database=settings.FIRESTORE_DATABASE,
    )
    return FirestoreDocumentStore(client)

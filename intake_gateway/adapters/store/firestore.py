"""Google Firestore document store adapter.

Wraps a ``google.cloud.firestore.Client`` obtained through the Firebase Admin
SDK. Every Google API failure is translated into ``StoreUnavailableError`` so
services never see provider exceptions. ``commit`` runs inside a Firestore
transaction: all precondition reads happen first, then all writes.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import firebase_admin
from firebase_admin import credentials
from firebase_admin import firestore as admin_firestore
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from intake_gateway.adapters.store.base import (
    AbstractDocumentStore,
    Direction,
    Document,
    DocumentExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreUnavailableError,
    WriteOp,
)

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except google_exceptions.GoogleAPIError as exc:
        logger.error(
            "store.firestore_error",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StoreUnavailableError(f"Firestore {operation} failed: {exc}") from exc


@firestore.transactional
def _apply_writes(
    transaction: firestore.Transaction,
    client: firestore.Client,
    writes: Sequence[WriteOp],
) -> None:
    for op in writes:
        if not (op.merge or op.expected or op.create_only):
            continue
        snapshot = client.collection(op.collection).document(op.key).get(transaction=transaction)
        if op.create_only:
            if snapshot.exists:
                raise DocumentExistsError(op.collection, op.key)
            continue
        if not snapshot.exists:
            raise DocumentNotFoundError(op.collection, op.key)
        current = snapshot.to_dict() or {}
        for field, value in (op.expected or {}).items():
            if current.get(field) != value:
                raise PreconditionFailedError(op.collection, op.key, field)

    for op in writes:
        ref = client.collection(op.collection).document(op.key)
        if op.merge:
            transaction.update(ref, dict(op.record))
        else:
            transaction.set(ref, dict(op.record))


class FirestoreDocumentStore(AbstractDocumentStore):
    """Document store backed by Cloud Firestore."""

    def __init__(self, client: firestore.Client) -> None:
        self._client = client

    @classmethod
    def from_service_account(cls, key_path: str) -> "FirestoreDocumentStore":
        """Initialize the default Firebase app from a service account file.

        Args:
            key_path: Path to the service account JSON key.

        Returns:
            Store bound to the default app's Firestore client.
        """
        try:
            app = firebase_admin.get_app()
        except ValueError:
            app = firebase_admin.initialize_app(credentials.Certificate(key_path))
        return cls(admin_firestore.client(app))

    def _ref(self, collection: str, key: str):
        return self._client.collection(collection).document(key)

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with _translate_errors("get"):
            snapshot = self._ref(collection, key).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set(self, collection: str, key: str, record: Mapping[str, Any]) -> None:
        with _translate_errors("set"):
            self._ref(collection, key).set(dict(record))

    def update(self, collection: str, key: str, fields: Mapping[str, Any]) -> None:
        ref = self._ref(collection, key)
        try:
            ref.update(dict(fields))
        except google_exceptions.NotFound as exc:
            raise DocumentNotFoundError(collection, key) from exc
        except google_exceptions.GoogleAPIError as exc:
            logger.error(
                "store.firestore_error",
                extra={"operation": "update", "error_type": type(exc).__name__},
            )
            raise StoreUnavailableError(f"Firestore update failed: {exc}") from exc

    def delete(self, collection: str, key: str) -> bool:
        with _translate_errors("delete"):
            ref = self._ref(collection, key)
            if not ref.get().exists:
                return False
            ref.delete()
        return True

    def query_ordered(
        self,
        collection: str,
        order_field: str,
        direction: Direction = "asc",
    ) -> list[Document]:
        order = firestore.Query.DESCENDING if direction == "desc" else firestore.Query.ASCENDING
        with _translate_errors("query"):
            snapshots = self._client.collection(collection).order_by(order_field, direction=order).stream()
            return [Document(snapshot.id, snapshot.to_dict() or {}) for snapshot in snapshots]

    def commit(self, writes: Sequence[WriteOp]) -> None:
        with _translate_errors("commit"):
            _apply_writes(self._client.transaction(), self._client, list(writes))

    def ping(self) -> None:
        with _translate_errors("ping"):
            next(iter(self._client.collections()), None)

"""In-memory document store.

Used for local development and tests. Thread-safe: one re-entrant lock guards
all collections, which also makes ``commit`` trivially atomic. Records are
deep-copied on the way in and out so callers never share mutable state with
the store.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Mapping, Sequence

from intake_gateway.adapters.store.base import (
    AbstractDocumentStore,
    Direction,
    Document,
    DocumentExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
    WriteOp,
)


class InMemoryDocumentStore(AbstractDocumentStore):
    """Dictionary-backed store: ``{collection: {key: record}}``."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        with self._lock:
            sizes = {name: len(records) for name, records in self._collections.items()}
        return f"InMemoryDocumentStore(collections={sizes})"

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._collection(collection).get(key)
            return copy.deepcopy(record) if record is not None else None

    def set(self, collection: str, key: str, record: Mapping[str, Any]) -> None:
        with self._lock:
            self._collection(collection)[key] = copy.deepcopy(dict(record))

    def update(self, collection: str, key: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            current = self._collection(collection).get(key)
            if current is None:
                raise DocumentNotFoundError(collection, key)
            current.update(copy.deepcopy(dict(fields)))

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(key, None) is not None

    def query_ordered(
        self,
        collection: str,
        order_field: str,
        direction: Direction = "asc",
    ) -> list[Document]:
        with self._lock:
            documents = [
                Document(key, copy.deepcopy(record))
                for key, record in self._collection(collection).items()
                if record.get(order_field) is not None
            ]
        documents.sort(key=lambda doc: doc.data[order_field], reverse=direction == "desc")
        return documents

    def commit(self, writes: Sequence[WriteOp]) -> None:
        with self._lock:
            # Validate everything against the current state before touching it.
            for op in writes:
                current = self._collection(op.collection).get(op.key)
                if op.create_only and current is not None:
                    raise DocumentExistsError(op.collection, op.key)
                if (op.merge or op.expected) and current is None:
                    raise DocumentNotFoundError(op.collection, op.key)
                for field, value in (op.expected or {}).items():
                    if current.get(field) != value:
                        raise PreconditionFailedError(op.collection, op.key, field)

            for op in writes:
                if op.merge:
                    self._collection(op.collection)[op.key].update(copy.deepcopy(dict(op.record)))
                else:
                    self._collection(op.collection)[op.key] = copy.deepcopy(dict(op.record))

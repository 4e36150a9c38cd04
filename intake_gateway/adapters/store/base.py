"""Document store interfaces.

Services depend on this abstraction only. The store is a plain
collection/key → record mapping with one extra primitive, ``commit``, which
applies several writes atomically and supports field preconditions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Mapping, NamedTuple, Sequence

Direction = Literal["asc", "desc"]


class DocumentStoreError(Exception):
    """Base error raised by document store adapters."""


class StoreUnavailableError(DocumentStoreError):
    """Raised when the backing store cannot be reached or fails a call."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when an update targets a record that does not exist."""

    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"{collection}/{key} does not exist")
        self.collection = collection
        self.key = key


class DocumentExistsError(DocumentStoreError):
    """Raised when a create-only write targets an existing record."""

    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"{collection}/{key} already exists")
        self.collection = collection
        self.key = key


class PreconditionFailedError(DocumentStoreError):
    """Raised when a conditional write finds unexpected field values."""

    def __init__(self, collection: str, key: str, field: str) -> None:
        super().__init__(f"{collection}/{key}: precondition on '{field}' failed")
        self.collection = collection
        self.key = key
        self.field = field


class Document(NamedTuple):
    key: str
    data: dict[str, Any]


@dataclass(frozen=True)
class WriteOp:
    """One write inside an atomic ``commit``.

    Attributes:
        collection: Target collection.
        key: Target record key.
        record: Full record (``merge=False``) or fields to update (``merge=True``).
        merge: Update an existing record instead of replacing/creating it.
        expected: Field values the current record must hold for the commit
            to proceed. Implies the record must exist.
        create_only: Fail instead of replacing an existing record.
    """

    collection: str
    key: str
    record: Mapping[str, Any]
    merge: bool = False
    expected: Mapping[str, Any] | None = None
    create_only: bool = False


class AbstractDocumentStore(ABC):
    """Interface for the persistence collaborator."""

    @abstractmethod
    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a copy of the record, or None when absent."""

    @abstractmethod
    def set(self, collection: str, key: str, record: Mapping[str, Any]) -> None:
        """Create or replace a record."""

    @abstractmethod
    def update(self, collection: str, key: str, fields: Mapping[str, Any]) -> None:
        """Merge fields into an existing record.

        Raises:
            DocumentNotFoundError: If the record does not exist.
        """

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """Delete a record; return whether it existed."""

    @abstractmethod
    def query_ordered(
        self,
        collection: str,
        order_field: str,
        direction: Direction = "asc",
    ) -> list[Document]:
        """Return all records holding ``order_field``, sorted by it."""

    @abstractmethod
    def commit(self, writes: Sequence[WriteOp]) -> None:
        """Apply all writes atomically, or none of them.

        Raises:
            DocumentNotFoundError: If a merge/conditional write targets a
                missing record.
            DocumentExistsError: If a create-only write targets an existing
                record.
            PreconditionFailedError: If an ``expected`` field does not match.
        """

    def ping(self) -> None:
        """Verify the store is reachable. Raises StoreUnavailableError."""

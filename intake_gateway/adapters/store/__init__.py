"""Document store adapters (persistence collaborator)."""

from intake_gateway.adapters.store.base import (
    AbstractDocumentStore,
    Document,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    PreconditionFailedError,
    StoreUnavailableError,
    WriteOp,
)
from intake_gateway.adapters.store.factory import create_document_store
from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore

__all__ = [
    "AbstractDocumentStore",
    "Document",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "DocumentStoreError",
    "InMemoryDocumentStore",
    "PreconditionFailedError",
    "StoreUnavailableError",
    "WriteOp",
    "create_document_store",
]

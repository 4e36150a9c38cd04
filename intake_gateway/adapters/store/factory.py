"""Factory for the configured document store backend."""

from __future__ import annotations

import logging
from pathlib import Path

from intake_gateway.adapters.store.base import AbstractDocumentStore, StoreUnavailableError
from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore
from intake_gateway.core.config import StoreSettings

logger = logging.getLogger(__name__)


def resolve_credentials_path(store_settings: StoreSettings) -> Path:
    """Pick the first existing service account file.

    The mounted secret path wins over the file next to the working directory.

    Raises:
        StoreUnavailableError: If neither file exists.
    """
    for candidate in (store_settings.credentials_path, store_settings.fallback_credentials_path):
        path = Path(candidate)
        if path.is_file():
            return path
    raise StoreUnavailableError(
        "No Firestore service account file found at "
        f"{store_settings.credentials_path} or {store_settings.fallback_credentials_path}"
    )


def create_document_store(store_settings: StoreSettings) -> AbstractDocumentStore:
    """Instantiate the document store selected by ``STORE_BACKEND``.

    Returns:
        AbstractDocumentStore: Ready-to-use store (not yet pinged).

    Raises:
        StoreUnavailableError: If the backend cannot be configured.
    """
    if store_settings.backend == "memory":
        logger.info("store.selected", extra={"backend": "memory"})
        return InMemoryDocumentStore()

    if store_settings.backend == "firestore":
        # Imported here so the memory backend runs without Google libraries loaded.
        from intake_gateway.adapters.store.firestore import FirestoreDocumentStore

        key_path = resolve_credentials_path(store_settings)
        logger.info("store.selected", extra={"backend": "firestore", "credentials_path": str(key_path)})
        try:
            return FirestoreDocumentStore.from_service_account(str(key_path))
        except (ValueError, OSError) as exc:
            raise StoreUnavailableError(f"Firestore initialization failed: {exc}") from exc

    raise StoreUnavailableError(f"Unknown store backend: '{store_settings.backend}'")

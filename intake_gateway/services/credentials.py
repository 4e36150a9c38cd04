"""Access credential lifecycle: issue, validate, deactivate.

A credential is a (case id, passcode) pair. Only a bcrypt hash of the passcode
is persisted, keyed by the case id, together with a status that moves from
``active`` to ``used`` exactly once and never back.

Stored record (collection ``access_credentials`` by default)::

    {"passcodeHash": "$2b$10$...", "status": "active", "createdAt": datetime}
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

import bcrypt

from intake_gateway.adapters.store.base import (
    AbstractDocumentStore,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    PreconditionFailedError,
    WriteOp,
)
from intake_gateway.core.errors import (
    ForbiddenAppError,
    NotFoundAppError,
    UnauthorizedAppError,
    UpstreamAppError,
)

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_USED = "used"

ALPHABET = string.ascii_uppercase + string.digits

INVALID_LOGIN_MESSAGE = "Invalid login details."
EXPIRED_MESSAGE = "This intake session has expired."

# bcrypt only looks at the first 72 bytes of a secret.
_BCRYPT_MAX_BYTES = 72

# Case id collisions are retried with a fresh suffix this many times.
_MAX_ISSUE_ATTEMPTS = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _random_string(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_case_id(prefix: str, suffix_length: int, now: datetime) -> str:
    """Build a human-readable case id such as ``CI-20240101-AB12``.

    The date part is the UTC calendar date of ``now``. The suffix is random
    but short, so ids are not guaranteed unique.
    """
    return f"{prefix}-{now.astimezone(timezone.utc):%Y%m%d}-{_random_string(suffix_length)}"


def generate_passcode(length: int) -> str:
    """Return ``length`` uppercase alphanumeric characters from a CSPRNG.

    Each character carries log2(36) ≈ 5.17 bits; every drawn value is used.
    """
    return _random_string(length)


def hash_passcode(passcode: str, rounds: int) -> str:
    """Salted bcrypt hash of ``passcode`` at the given cost factor."""
    return bcrypt.hashpw(passcode.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_passcode(passcode: str, passcode_hash: str) -> bool:
    """Compare a presented passcode with a stored bcrypt hash.

    Malformed hashes and over-long inputs count as a mismatch.
    """
    candidate = passcode.encode("utf-8")
    if len(candidate) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(candidate, passcode_hash.encode("ascii"))
    except ValueError:
        logger.error("credential.malformed_hash")
        return False


@dataclass(frozen=True)
class IssuedCredential:
    """Credential as handed to the issuing caller, the only time the
    plaintext passcode exists outside the caller."""

    case_id: str
    passcode: str = field(repr=False)


@dataclass(frozen=True)
class CredentialRecord:
    """Stored credential state (never holds the plaintext)."""

    case_id: str
    passcode_hash: str = field(repr=False)
    status: str
    created_at: datetime | None = None
    used_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @classmethod
    def from_document(cls, case_id: str, data: Mapping[str, Any]) -> "CredentialRecord":
        return cls(
            case_id=case_id,
            passcode_hash=str(data.get("passcodeHash", "")),
            status=str(data.get("status", "")),
            created_at=data.get("createdAt"),
            used_at=data.get("usedAt"),
        )


def _store_failure(code: str, message: str, exc: Exception, **extra: Any) -> UpstreamAppError:
    logger.error(code, extra={"error_type": type(exc).__name__, "error_msg": str(exc), **extra})
    return UpstreamAppError(code=code, message=message)


class CredentialGenerator:
    """Creates new active credentials and persists their hashes."""

    def __init__(
        self,
        store: AbstractDocumentStore,
        *,
        collection: str = "access_credentials",
        case_prefix: str = "CI",
        case_suffix_length: int = 4,
        passcode_length: int = 8,
        bcrypt_rounds: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._collection = collection
        self._case_prefix = case_prefix
        self._case_suffix_length = case_suffix_length
        self._passcode_length = passcode_length
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock

    def issue(self) -> IssuedCredential:
        """Generate, hash and persist a new credential.

        The record is written create-only, so a case id collision with an
        existing credential (used or not) picks a new suffix instead of
        overwriting it.

        Returns:
            IssuedCredential holding the plaintext passcode.

        Raises:
            UpstreamAppError: If the store fails or no free case id was found;
                no credential exists in that case.
        """
        passcode = generate_passcode(self._passcode_length)
        passcode_hash = hash_passcode(passcode, self._bcrypt_rounds)

        for attempt in range(1, _MAX_ISSUE_ATTEMPTS + 1):
            now = self._clock()
            case_id = generate_case_id(self._case_prefix, self._case_suffix_length, now)
            record = {"passcodeHash": passcode_hash, "status": STATUS_ACTIVE, "createdAt": now}
            try:
                self._store.commit([WriteOp(self._collection, case_id, record, create_only=True)])
            except DocumentExistsError:
                logger.warning("credential.case_id_collision", extra={"case_id": case_id, "attempt": attempt})
                continue
            except DocumentStoreError as exc:
                raise _store_failure(
                    "credential_persist_failed",
                    "Failed to generate access credential.",
                    exc,
                ) from exc

            logger.info("credential.issued", extra={"case_id": case_id})
            return IssuedCredential(case_id=case_id, passcode=passcode)

        logger.error("credential_case_id_exhausted", extra={"attempts": _MAX_ISSUE_ATTEMPTS})
        raise UpstreamAppError(
            code="credential_case_id_exhausted",
            message="Failed to generate access credential.",
        )


class CredentialVerifier:
    """Checks a presented (case id, passcode) pair against stored state.

    Validation never mutates the record. Unknown case ids and wrong passcodes
    share the same message so callers cannot probe which ids exist, and an
    unknown id still pays for one bcrypt comparison.
    """

    def __init__(
        self,
        store: AbstractDocumentStore,
        *,
        collection: str = "access_credentials",
        bcrypt_rounds: int = 10,
    ) -> None:
        self._store = store
        self._collection = collection
        self._dummy_hash = hash_passcode(generate_passcode(16), bcrypt_rounds)

    def validate(self, case_id: str, passcode: str) -> CredentialRecord:
        """Validate a credential pair.

        Returns:
            The stored CredentialRecord when the credential is active and the
            passcode matches.

        Raises:
            NotFoundAppError: No credential exists for ``case_id``.
            ForbiddenAppError: The credential is no longer active.
            UnauthorizedAppError: The passcode does not match.
            UpstreamAppError: The store failed.
        """
        try:
            data = self._store.get(self._collection, case_id)
        except DocumentStoreError as exc:
            raise _store_failure(
                "credential_lookup_failed",
                "Failed to validate access credential.",
                exc,
                case_id=case_id,
            ) from exc

        if data is None:
            verify_passcode(passcode, self._dummy_hash)
            logger.warning("credential.validation_failed", extra={"case_id": case_id, "reason": "not_found"})
            raise NotFoundAppError(code="invalid_credentials", message=INVALID_LOGIN_MESSAGE)

        record = CredentialRecord.from_document(case_id, data)
        if not record.is_active:
            logger.warning(
                "credential.validation_failed",
                extra={"case_id": case_id, "reason": "expired", "status": record.status},
            )
            raise ForbiddenAppError(code="credential_expired", message=EXPIRED_MESSAGE)

        if not verify_passcode(passcode, record.passcode_hash):
            logger.warning("credential.validation_failed", extra={"case_id": case_id, "reason": "mismatch"})
            raise UnauthorizedAppError(code="invalid_credentials", message=INVALID_LOGIN_MESSAGE)

        logger.info("credential.validated", extra={"case_id": case_id})
        return record


class CredentialDeactivator:
    """Moves credentials to the terminal ``used`` status."""

    def __init__(
        self,
        store: AbstractDocumentStore,
        *,
        collection: str = "access_credentials",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._collection = collection
        self._clock = clock

    def deactivation_write(self, case_id: str) -> WriteOp:
        """The active → used transition as a conditional write.

        The write only applies while the record is still active, which lets a
        caller commit it together with other writes and detect a concurrent
        deactivation.
        """
        return WriteOp(
            collection=self._collection,
            key=case_id,
            record={"status": STATUS_USED, "usedAt": self._clock()},
            merge=True,
            expected={"status": STATUS_ACTIVE},
        )

    def deactivate(self, case_id: str) -> None:
        """Mark a credential as used.

        Re-deactivating a used credential is a no-op; the first ``usedAt``
        is kept.

        Raises:
            NotFoundAppError: No credential exists for ``case_id``.
            UpstreamAppError: The store failed.
        """
        try:
            self._store.commit([self.deactivation_write(case_id)])
        except DocumentNotFoundError as exc:
            logger.warning("credential.deactivation_failed", extra={"case_id": case_id, "reason": "not_found"})
            raise NotFoundAppError(
                code="credential_not_found",
                message=f"No access credential exists for case {case_id}.",
            ) from exc
        except PreconditionFailedError:
            logger.info("credential.already_used", extra={"case_id": case_id})
            return
        except DocumentStoreError as exc:
            raise _store_failure(
                "credential_deactivation_failed",
                "Failed to deactivate access credential.",
                exc,
                case_id=case_id,
            ) from exc

        logger.info("credential.deactivated", extra={"case_id": case_id})

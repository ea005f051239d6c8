"""
User repository interface and implementations.

Defines the port (interface) for user record persistence.
Includes an in-memory implementation for testing and development.
Firestore implementation is available when configured.
"""

import logging
from datetime import datetime, UTC
from typing import Any, Callable, Protocol

from app.infrastructure.firestore import FirestoreSettings, init_firestore
from app.users.models import LoginUpdate, UserRecord


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UserRepository(Protocol):
    """
    Protocol defining the user repository interface.

    This is the "port" in hexagonal architecture - it defines what
    operations the login flow needs, without specifying how they're
    implemented.
    """

    async def upsert_login(self, update: LoginUpdate) -> None:
        """
        Insert or update the record for update.external_id.

        Atomic per record: sets every provided field, sets created_at only
        when the record is inserted, always touches updated_at.

        Args:
            update: Fields produced by a successful login
        """
        ...

    async def get_by_id(self, record_id: str) -> UserRecord | None:
        """
        Get a user record by internal id.

        Returns:
            UserRecord if found, None otherwise
        """
        ...

    async def get_by_external_id(self, external_id: str) -> UserRecord | None:
        """
        Get a user record by LinkedIn subject identifier.

        Returns:
            UserRecord if found, None otherwise
        """
        ...

    async def update_profile(self, record_id: str, fields: dict[str, Any]) -> bool:
        """
        Apply a partial profile update.

        Args:
            record_id: Internal record id
            fields: Fields to set; fields not present are left untouched

        Returns:
            True if updated, False if the record does not exist
        """
        ...

    async def update_tokens(
        self,
        record_id: str,
        access_token: str,
        token_expires_at: int,
        refresh_token_encrypted: str | None = None,
    ) -> bool:
        """
        Store a refreshed access token.

        The encrypted refresh token is replaced only when a new one is given.

        Returns:
            True if updated, False if the record does not exist
        """
        ...


class InMemoryUserRepository(UserRepository):
    """
    In-memory implementation of UserRepository.

    Useful for testing and local development without Firestore.
    Data is lost when the application restarts.
    """

    def __init__(self, clock: Clock = _utcnow):
        self._records: dict[str, UserRecord] = {}
        self._clock = clock

    async def upsert_login(self, update: LoginUpdate) -> None:
        now = self._clock()
        fields = update.to_fields()
        existing = self._records.get(update.record_id)

        if existing is None:
            self._records[update.record_id] = UserRecord(
                **fields, created_at=now, updated_at=now
            )
            logger.info(
                "Created user record", extra={"external_id": update.external_id}
            )
            return

        self._records[update.record_id] = existing.model_copy(
            update={**fields, "updated_at": now}
        )
        logger.info("Updated user record", extra={"external_id": update.external_id})

    async def get_by_id(self, record_id: str) -> UserRecord | None:
        return self._records.get(record_id)

    async def get_by_external_id(self, external_id: str) -> UserRecord | None:
        for record in self._records.values():
            if record.external_id == external_id:
                return record
        return None

    async def update_profile(self, record_id: str, fields: dict[str, Any]) -> bool:
        record = self._records.get(record_id)
        if record is None:
            return False

        self._records[record_id] = record.model_copy(
            update={**fields, "updated_at": self._clock()}
        )
        logger.info(f"Updated profile fields {sorted(fields)}", extra={"user_id": record_id})
        return True

    async def update_tokens(
        self,
        record_id: str,
        access_token: str,
        token_expires_at: int,
        refresh_token_encrypted: str | None = None,
    ) -> bool:
        record = self._records.get(record_id)
        if record is None:
            return False

        changes: dict[str, Any] = {
            "access_token": access_token,
            "token_expires_at": token_expires_at,
            "updated_at": self._clock(),
        }
        if refresh_token_encrypted is not None:
            changes["refresh_token_encrypted"] = refresh_token_encrypted

        self._records[record_id] = record.model_copy(update=changes)
        logger.info("Stored refreshed access token", extra={"user_id": record_id})
        return True

    def delete(self, record_id: str) -> bool:
        """Remove a record (simulates an out-of-band deletion)."""
        return self._records.pop(record_id, None) is not None


# Singleton instance for dependency injection
_repository: UserRepository | None = None


def get_user_repository() -> UserRepository:
    """
    Get the user repository singleton.

    Returns FirestoreUserRepository, backed by the shared Firestore client,
    if a GCP project is configured (GCP_PROJECT_ID or GOOGLE_CLOUD_PROJECT).
    Falls back to InMemoryUserRepository for testing/development.

    Can be overridden via set_user_repository for testing.
    """
    global _repository
    if _repository is None:
        settings = FirestoreSettings.from_env()
        if settings is not None:
            from app.infrastructure.firestore_repository import (
                FirestoreUserRepository,
            )

            _repository = FirestoreUserRepository(init_firestore(settings))
            logger.info("Using Firestore user repository")
        else:
            logger.info("Using in-memory user repository")
            _repository = InMemoryUserRepository()
    return _repository


def set_user_repository(repository: UserRepository) -> None:
    """
    Set the user repository implementation.

    Use this to inject Firestore or mock repositories.
    """
    global _repository
    _repository = repository


def reset_user_repository() -> None:
    """
    Reset the user repository singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _repository
    _repository = None

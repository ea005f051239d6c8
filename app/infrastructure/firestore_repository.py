"""
Firestore implementation of UserRepository.

Stores one document per LinkedIn identity. This is a driven adapter that
implements the UserRepository interface.
"""

import logging
from datetime import datetime, UTC
from typing import Any, TYPE_CHECKING

from google.api_core.exceptions import AlreadyExists, NotFound

if TYPE_CHECKING:
    from google.cloud.firestore_v1 import AsyncClient

from app.users.models import LoginUpdate, UserRecord, record_id_for

logger = logging.getLogger(__name__)


class FirestoreUserRepository:
    """
    Firestore implementation of UserRepository.

    Data model:
    - Collection: users
      - Document ID: {record id} (derived from the LinkedIn subject id)
      - Fields: id, external_id, full_name, email, headline, profile_url,
                profile_picture, location, experience, education,
                access_token, refresh_token_encrypted, token_expires_at,
                created_at, updated_at, raw

    Upserts are two single-document atomic writes: create() inserts with
    created_at and fails with AlreadyExists if the document is present, in
    which case a merge set() without created_at updates it.
    """

    def __init__(self, db: "AsyncClient", collection: str = "users"):
        """
        Initialize Firestore repository.

        Args:
            db: Firestore async client instance
            collection: Collection holding user records
        """
        self._db = db
        self._users = db.collection(collection)

    async def upsert_login(self, update: LoginUpdate) -> None:
        """
        Insert or update the record for a login.

        The encrypted refresh token, when present, is part of the same write
        as the profile fields.
        """
        now = datetime.now(UTC)
        doc_ref = self._users.document(update.record_id)
        fields = {**update.to_fields(), "updated_at": now}

        try:
            await doc_ref.create({**fields, "created_at": now})
            logger.info(
                "Created user record", extra={"external_id": update.external_id}
            )
        except AlreadyExists:
            await doc_ref.set(fields, merge=True)
            logger.info(
                "Updated user record", extra={"external_id": update.external_id}
            )

    async def get_by_id(self, record_id: str) -> UserRecord | None:
        """
        Get a user record by internal id.

        Returns:
            UserRecord if found, None otherwise
        """
        doc = await self._users.document(record_id).get()

        if not doc.exists:
            return None

        data = doc.to_dict()
        if data is None:
            return None

        data.setdefault("id", record_id)
        return UserRecord.model_validate(data)

    async def get_by_external_id(self, external_id: str) -> UserRecord | None:
        """Get a user record by LinkedIn subject identifier."""
        return await self.get_by_id(record_id_for(external_id))

    async def update_profile(self, record_id: str, fields: dict[str, Any]) -> bool:
        """
        Apply a partial profile update.

        Uses update(), which fails on missing documents instead of creating
        a record without an identity.
        """
        try:
            await self._users.document(record_id).update(
                {**fields, "updated_at": datetime.now(UTC)}
            )
        except NotFound:
            return False

        logger.info(
            f"Updated profile fields {sorted(fields)}", extra={"user_id": record_id}
        )
        return True

    async def update_tokens(
        self,
        record_id: str,
        access_token: str,
        token_expires_at: int,
        refresh_token_encrypted: str | None = None,
    ) -> bool:
        """Store a refreshed access token (and a rotated refresh token)."""
        changes: dict[str, Any] = {
            "access_token": access_token,
            "token_expires_at": token_expires_at,
            "updated_at": datetime.now(UTC),
        }
        if refresh_token_encrypted is not None:
            changes["refresh_token_encrypted"] = refresh_token_encrypted

        try:
            await self._users.document(record_id).update(changes)
        except NotFound:
            return False

        logger.info("Stored refreshed access token", extra={"user_id": record_id})
        return True

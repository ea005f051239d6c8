"""
Shared Firestore client resource.

The user store holds one AsyncClient for the whole process. It is opened
once from FirestoreSettings when the application starts (see the lifespan
in app/main.py), handed to every repository, and never closed while the
server runs. The emulator is picked up from FIRESTORE_EMULATOR_HOST by the
client library itself.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from google.cloud.firestore_v1 import AsyncClient

logger = logging.getLogger(__name__)

PROJECT_ENV_VARS = ("GCP_PROJECT_ID", "GOOGLE_CLOUD_PROJECT")

_client: Optional["AsyncClient"] = None


@dataclass(frozen=True)
class FirestoreSettings:
    """Where the user store lives."""

    project_id: str
    emulator_host: str | None = None

    @classmethod
    def from_env(cls) -> Optional["FirestoreSettings"]:
        """
        Read Firestore settings from the environment.

        Returns:
            FirestoreSettings, or None when no GCP project is configured
            (the in-memory store is used instead)
        """
        project_id = next(
            (os.environ[name] for name in PROJECT_ENV_VARS if os.getenv(name)), None
        )
        if project_id is None:
            return None
        return cls(
            project_id=project_id,
            emulator_host=os.getenv("FIRESTORE_EMULATOR_HOST") or None,
        )


def init_firestore(settings: FirestoreSettings) -> "AsyncClient":
    """
    Open the process-wide client. Later calls return the same handle.
    """
    global _client

    if _client is not None:
        return _client

    # Part of the gcp extra; only needed when a project is configured
    from google.cloud.firestore_v1 import AsyncClient

    _client = AsyncClient(project=settings.project_id)

    if settings.emulator_host:
        logger.info(f"Using Firestore emulator at {settings.emulator_host}")
    else:
        logger.info(f"Firestore client initialized for project: {settings.project_id}")

    return _client


def get_firestore_client() -> "AsyncClient":
    """
    Return the shared client, opening it from the environment if needed.

    Raises:
        ValueError: If neither GCP_PROJECT_ID nor GOOGLE_CLOUD_PROJECT is set
    """
    if _client is not None:
        return _client

    settings = FirestoreSettings.from_env()
    if settings is None:
        raise ValueError(
            "GCP_PROJECT_ID or GOOGLE_CLOUD_PROJECT must be set for Firestore"
        )
    return init_firestore(settings)


def reset_firestore_client() -> None:
    """Forget the shared client (tests only)."""
    global _client
    _client = None

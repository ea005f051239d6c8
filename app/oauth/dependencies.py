"""
FastAPI dependencies for the LinkedIn login endpoints.

Provides dependency injection for the identity provider, repository and
login service.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status

from app.auth.dependencies import get_session_service
from app.auth.services import SessionTokenService
from app.core.login_service import LoginService
from app.core.ports import IdentityProvider
from app.infrastructure.encryption import get_token_cipher
from app.infrastructure.linkedin_client import LinkedInClient
from app.oauth.config import get_linkedin_config, LinkedInConfig
from app.users.repository import get_user_repository, UserRepository


logger = logging.getLogger(__name__)


def get_identity_provider(
    config: Annotated[LinkedInConfig, Depends(get_linkedin_config)],
) -> IdentityProvider:
    """
    Provide the LinkedIn client.

    Raises:
        HTTPException: 503 if client credentials are not configured
    """
    if not config.is_configured:
        logger.error("LinkedIn OAuth not configured (missing credentials)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="LinkedIn login is not configured",
        )
    return LinkedInClient(config)


def get_repository() -> UserRepository:
    """Provide UserRepository dependency."""
    return get_user_repository()


def get_login_service(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    repository: Annotated[UserRepository, Depends(get_repository)],
    session_service: Annotated[SessionTokenService, Depends(get_session_service)],
) -> LoginService:
    """Wire the login service with its infrastructure dependencies."""
    return LoginService(
        provider=provider,
        repository=repository,
        session_service=session_service,
        cipher=get_token_cipher(),
    )


# Type aliases for cleaner dependency injection
Provider = Annotated[IdentityProvider, Depends(get_identity_provider)]
Repository = Annotated[UserRepository, Depends(get_repository)]
Login = Annotated[LoginService, Depends(get_login_service)]

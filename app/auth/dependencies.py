"""
FastAPI dependencies for authentication.

Provides dependency injection for session validation.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from pydantic import ValidationError

from app.auth.config import get_auth_config, AuthConfig
from app.auth.services import SessionTokenService, get_session_token_service
from app.core.domain import SessionClaims


logger = logging.getLogger(__name__)


def get_session_service() -> SessionTokenService:
    """Provide SessionTokenService dependency."""
    return get_session_token_service()


async def get_current_session(
    request: Request,
    config: AuthConfig = Depends(get_auth_config),
    session_service: SessionTokenService = Depends(get_session_service),
) -> SessionClaims:
    """
    Dependency to get the current authenticated session.

    Reads the session cookie, verifies it and returns its claims.

    Args:
        request: Incoming request (cookie name is configurable)
        config: Session configuration
        session_service: Service for session validation

    Returns:
        Claims carried by the session token

    Raises:
        HTTPException: 401 if the cookie is missing or invalid
    """
    token = request.cookies.get(config.session_cookie_name)
    if not token:
        logger.info("No session cookie provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="not authenticated",
        )

    claims = session_service.verify(token)
    if claims is None:
        logger.info("Session token failed verification")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid token",
        )

    try:
        return SessionClaims.model_validate(claims)
    except ValidationError:
        logger.warning("Session token is missing required claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid token",
        )


CurrentSession = Annotated[SessionClaims, Depends(get_current_session)]

"""
LinkedIn login API endpoints.

- GET  /api/auth/linkedin - Start OAuth flow (state cookie + redirect)
- GET  /api/auth/callback - Exchange code, persist profile, issue session
- POST /api/auth/refresh  - Refresh the stored access token
- POST /api/auth/logout   - Clear the session cookie

Logout is client-side only: tokens already issued stay valid until they
expire, since there is no server-side revocation list.
"""

import hmac
import logging
from typing import Annotated

from authlib.common.security import generate_token
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import (
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)

from app.auth.config import get_auth_config, AuthConfig
from app.auth.dependencies import CurrentSession
from app.oauth.dependencies import Login, Provider


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["oauth"])

STATE_LENGTH = 32

Config = Annotated[AuthConfig, Depends(get_auth_config)]


def _delete_cookie(response: Response, name: str, config: AuthConfig) -> None:
    response.delete_cookie(
        key=name,
        path="/",
        httponly=True,
        secure=config.secure_cookies,
        samesite="lax",
    )


def _reject_callback(detail: str, config: AuthConfig) -> Response:
    """400 response that also clears the one-time state cookie."""
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail}
    )
    _delete_cookie(response, config.state_cookie_name, config)
    return response


@router.get("/linkedin")
async def authorize(provider: Provider, config: Config):
    """
    Start the LinkedIn OAuth2 authorization flow.

    Generates a one-time state nonce, stores it in a short-lived cookie and
    redirects the browser to LinkedIn's authorization page.
    """
    state = generate_token(STATE_LENGTH)
    authorization_url = provider.authorization_url(state)

    logger.info("Redirecting to LinkedIn authorization endpoint")

    response = RedirectResponse(
        url=authorization_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
    response.set_cookie(
        key=config.state_cookie_name,
        value=state,
        max_age=config.state_cookie_max_age,
        path="/",
        httponly=True,
        secure=config.secure_cookies,
        samesite="lax",
    )
    return response


@router.get("/callback")
async def callback(
    request: Request,
    login_service: Login,
    config: Config,
    code: Annotated[str | None, Query(description="Authorization code")] = None,
    state: Annotated[str | None, Query(description="State nonce")] = None,
    error: Annotated[str | None, Query(description="Provider error code")] = None,
    error_description: Annotated[
        str | None, Query(description="Provider error description")
    ] = None,
) -> Response:
    """
    Handle the OAuth2 callback from LinkedIn.

    Validates the state nonce against the state cookie, then completes the
    login and redirects with the session cookie set. The state cookie is
    cleared on every outcome.

    Returns:
        302 to the post-login page on success, 400 on a provider error or
        state mismatch, 500 if the login cannot be completed
    """
    if error:
        message = f"LinkedIn OAuth error: {error}"
        if error_description:
            message = f"{message} - {error_description}"
        logger.error(message)
        return _reject_callback(message, config)

    expected_state = request.cookies.get(config.state_cookie_name)
    if (
        not code
        or not state
        or not expected_state
        or not hmac.compare_digest(state, expected_state)
    ):
        logger.warning("OAuth callback rejected: missing code or state mismatch")
        return _reject_callback("Invalid state or code", config)

    try:
        result = await login_service.complete_login(code)
    except Exception as e:
        logger.error(f"LinkedIn callback failed: {e}", exc_info=True)
        failure = PlainTextResponse(
            content="Authentication failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        _delete_cookie(failure, config.state_cookie_name, config)
        return failure

    response = RedirectResponse(
        url=config.post_login_redirect, status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        key=config.session_cookie_name,
        value=result.session_token,
        max_age=config.session_ttl_seconds,
        path="/",
        httponly=True,
        secure=config.secure_cookies,
        samesite="lax",
    )
    _delete_cookie(response, config.state_cookie_name, config)
    return response


@router.post("/refresh")
async def refresh(session: CurrentSession, login_service: Login):
    """
    Refresh the stored LinkedIn access token.

    The new access token stays server-side; only expiry data is returned.
    Missing or undecryptable refresh tokens and provider failures are
    mapped by the exception handlers in main.py.
    """
    result = await login_service.refresh_access_token(session.user_id)
    return {
        "ok": True,
        "expires_in": result.expires_in,
        "token_expires_at": result.token_expires_at,
    }


@router.post("/logout")
async def logout(config: Config):
    """
    Clear the session cookie.

    Stateless: a copy of the token held elsewhere remains valid until it
    expires.
    """
    response = JSONResponse(content={"ok": True})
    _delete_cookie(response, config.session_cookie_name, config)
    return response

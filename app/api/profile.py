"""
Session-bound user data endpoints.

- GET  /api/me                  - Presentation-safe view of the user record
- POST /api/onboarding/complete - Partial update of email / profile picture

Both endpoints identify the user solely by the session cookie.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from app.auth.dependencies import CurrentSession
from app.oauth.dependencies import Repository
from app.users.models import ProfileUpdate, UserProfileView


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/me", response_model=UserProfileView)
async def me(session: CurrentSession, repository: Repository):
    """
    Return the current user's profile.

    Tokens and raw upstream responses are never included.

    Raises:
        HTTPException: 401 without a valid session, 404 if the record is gone
    """
    record = await repository.get_by_id(session.user_id)
    if record is None:
        logger.warning(
            "Session refers to a missing user record",
            extra={"user_id": session.user_id},
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="user not found"
        )
    return record.to_view()


@router.post("/onboarding/complete")
async def complete_onboarding(
    body: ProfileUpdate, session: CurrentSession, repository: Repository
):
    """
    Apply the onboarding form.

    Only provided fields are written; omitted fields keep their values.

    Raises:
        HTTPException: 400 if no field is provided, 404 if the record is gone
    """
    if body.is_empty:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="nothing to update"
        )

    updated = await repository.update_profile(session.user_id, body.to_fields())
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="user not found"
        )

    return {"ok": True}

"""
Profile Router - read and update the authenticated account's profile.
"""
import logging
from fastapi import APIRouter, Depends, Request

from ..auth import TokenClaims
from ..dependencies import get_current_claims, get_profile_service
from ..schemas import ErrorResponse, UpdateProfileRequest, UserProfile
from ..service import ProfileService
from ..utils.event_logger import log_auth_event

router = APIRouter(prefix="/profile", tags=["profile"])
logger = logging.getLogger(__name__)

_error_responses = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    404: {"model": ErrorResponse, "description": "Account not found"},
}


@router.get("", response_model=UserProfile, responses=_error_responses)
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Return the profile of the account named by the bearer token."""
    account = profiles.get_profile(claims.subject)
    return UserProfile.model_validate(account)


@router.put(
    "",
    response_model=UserProfile,
    responses={400: {"model": ErrorResponse, "description": "Bad request"}, **_error_responses},
)
def update_profile(
    payload: UpdateProfileRequest,
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Update the profile of the account named by the bearer token.

    Only the fields present in the body are changed; an explicit null clears a field.
    """
    fields = payload.model_dump(exclude_unset=True)
    account = profiles.update_profile(claims.subject, fields)
    log_auth_event("profile_update", account.id, account.email, request)
    return UserProfile.model_validate(account)

"""
FastAPI dependencies shared by the route modules.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth import TokenClaims
from .errors import InvalidToken
from .service import AuthFlow, ProfileService

_bearer_scheme = HTTPBearer(auto_error=False, bearerFormat="JWT")


def get_auth_flow(request: Request) -> AuthFlow:
    """Resolve the `AuthFlow` stored on the FastAPI application state."""
    return request.app.state.auth_flow


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    flow: AuthFlow = Depends(get_auth_flow),
) -> TokenClaims:
    """Verify the bearer token; a missing header is as invalid as a forged token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidToken()
    return flow.authenticate(credentials.credentials)

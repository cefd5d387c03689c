"""Authentication API endpoints and dependencies.

Sign-in itself happens against the managed auth backend; this API only keeps
the resulting session in httpOnly cookies and resolves the caller from the
access token on every request.
"""

import logging
from typing import Literal
from uuid import UUID

__all__ = ["CurrentUser", "get_current_user", "router"]

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from backend.app.api.deps import get_app_settings
from backend.app.config import Settings
from backend.app.generation.errors import UnauthorizedError, ValidationError
from backend.app.security import AuthenticationError, verify_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


class CurrentUser(BaseModel):
    """Current authenticated user context."""
    user_id: UUID
    email: str | None = None


class SessionTokens(BaseModel):
    """Session issued by the auth backend."""
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_in: int | None = Field(default=None, gt=0)


class AuthSessionRequest(BaseModel):
    """Auth state change forwarded by the UI."""
    event: Literal["SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED", "PASSWORD_RECOVERY"]
    session: SessionTokens | None = None


# auto_error=False: the cookie is checked when the header is absent
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser:
    """Resolve the caller from the bearer header or the session cookie.

    Args:
        request: Incoming request (for the session cookie)
        credentials: HTTP Authorization header with Bearer token
        settings: Application settings

    Returns:
        CurrentUser with user_id and email

    Raises:
        UnauthorizedError: If no valid token is present and no development
            identity is configured
    """
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.session_cookie_name)

    if token:
        try:
            payload = verify_access_token(token, settings)
            return CurrentUser(user_id=payload.user_id, email=payload.email)
        except AuthenticationError as e:
            logger.info(f"Rejected access token: {e}")
            if settings.auth_enforced:
                raise UnauthorizedError("Invalid or expired session") from e

    if not settings.auth_enforced and settings.dev_user_id is not None:
        return CurrentUser(user_id=settings.dev_user_id)

    raise UnauthorizedError()


def _clear_session_cookies(response: Response, settings: Settings) -> None:
    for name in (settings.session_cookie_name, settings.refresh_cookie_name):
        response.delete_cookie(
            name,
            path="/",
            secure=settings.session_cookie_secure,
            httponly=True,
            samesite="lax",
        )


@router.post("/session", status_code=status.HTTP_204_NO_CONTENT)
async def sync_session(
    payload: AuthSessionRequest,
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Store or clear the session cookies after an auth state change.

    Returns:
        Empty 204 response carrying the cookie changes
    """
    response = Response(status_code=status.HTTP_204_NO_CONTENT)

    if payload.event == "SIGNED_OUT":
        _clear_session_cookies(response, settings)
        return response

    if payload.session is None:
        raise ValidationError(
            "session", "Missing session payload for authentication event."
        )

    try:
        verify_access_token(payload.session.access_token, settings)
    except AuthenticationError as e:
        raise UnauthorizedError("Invalid session tokens") from e

    response.set_cookie(
        settings.session_cookie_name,
        payload.session.access_token,
        max_age=payload.session.expires_in,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )
    response.set_cookie(
        settings.refresh_cookie_name,
        payload.session.refresh_token,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(settings: Settings = Depends(get_app_settings)) -> Response:
    """Clear the session cookies."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_session_cookies(response, settings)
    return response

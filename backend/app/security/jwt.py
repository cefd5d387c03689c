"""Verification of access tokens issued by the managed auth backend."""

from datetime import datetime, timezone
from uuid import UUID

import jwt
from pydantic import BaseModel

from backend.app.config import Settings, get_settings

ALGORITHM = "HS256"


class TokenPayload(BaseModel):
    """Verified access token claims."""
    user_id: UUID
    email: str | None = None
    expires_at: datetime | None = None


class AuthenticationError(Exception):
    """Authentication-related errors."""
    pass


def get_jwt_secret(settings: Settings) -> str:
    """Get the shared signing secret from settings."""
    secret = settings.auth_jwt_secret.strip()

    if not secret:
        raise AuthenticationError(
            "JWT secret not configured. Set AUTH_JWT_SECRET in environment."
        )

    return secret


def verify_access_token(token: str, settings: Settings | None = None) -> TokenPayload:
    """Verify and decode an access token.

    Args:
        token: JWT token string
        settings: Settings to read the secret and audience from

    Returns:
        TokenPayload with the user id and email

    Raises:
        AuthenticationError: If token is invalid, expired, or malformed
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            get_jwt_secret(settings),
            algorithms=[ALGORITHM],
            audience=settings.auth_jwt_audience,
            options={"require": ["sub", "exp"]},
        )

        return TokenPayload(
            user_id=UUID(payload["sub"]),
            email=payload.get("email"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {e}")
    except (KeyError, ValueError) as e:
        raise AuthenticationError(f"Malformed token payload: {e}")

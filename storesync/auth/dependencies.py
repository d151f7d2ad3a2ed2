"""
Bearer JWT verification and FastAPI caller dependencies.

Tokens are HS256 JWTs signed with JWT_SECRET. The user id is the "id"
claim, falling back to "sub". This module does NOT issue tokens.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from storesync.config.settings import AuthSettings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class TokenVerificationError(Exception):
    """Exception raised when bearer token verification fails."""

    def __init__(self, message: str, error_code: str = "verification_failed"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


def verify_token(token: str, settings: AuthSettings) -> Dict[str, Any]:
    """
    Decode and verify a bearer token.

    Raises:
        TokenVerificationError: If the token is missing, invalid or expired,
            or no secret is configured
    """
    if not token:
        raise TokenVerificationError("Token is required", error_code="missing_token")
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; rejecting all tokens")
        raise TokenVerificationError("Authentication not configured", error_code="not_configured")

    if token.startswith("Bearer "):
        token = token[7:]

    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise TokenVerificationError("Token has expired", error_code="token_expired")
    except InvalidTokenError as e:
        logger.warning("Invalid token", extra={"error": str(e)})
        raise TokenVerificationError(f"Invalid token: {e}", error_code="invalid_token")


def _auth_settings(request: Request) -> AuthSettings:
    settings = getattr(request.app.state, "auth_settings", None)
    return settings or AuthSettings.from_env()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> CurrentUser:
    """FastAPI dependency resolving the caller; 401 when unauthenticated."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = verify_token(credentials.credentials, _auth_settings(request))
    except TokenVerificationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token has no user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(id=str(user_id), email=claims.get("email"))


def get_current_user_id(user: CurrentUser = Depends(get_current_user)) -> str:
    return user.id

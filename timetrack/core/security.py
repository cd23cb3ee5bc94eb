"""
Security utilities: verification of identity-provider JWTs.

Login, signup and password reset live with the external identity provider.
It signs HS256 access tokens with the shared SECRET_KEY; the ``sub`` claim is
the opaque auth user id and ``email`` / ``name`` are optional profile claims.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import logging

from jose import jwt

from timetrack.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign an access token in the identity provider's format.

    Used by development tooling and tests; production tokens are issued by
    the provider itself.
    """
    logger.trace("Creating access token for user id=%s", user_id)
    now = datetime.now(tz=timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + expires_delta,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    logger.info("Issued access token for subject=%s", user_id)
    return token


def decode_token(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        jose.JWTError: if the token is invalid or expired.
    """
    logger.trace("Decoding JWT token")
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

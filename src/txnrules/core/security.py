"""JWT verification for requests from the web client.

Tokens are issued by the auth service with a shared secret; this service only
verifies access tokens. ``create_access_token`` mints tokens in the same
format for local tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from txnrules.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Encode an access token for ``user_id``.

    Args:
        user_id: User ID stored in the ``sub`` claim
        expires_delta: Lifetime (defaults to ``JWT_ACCESS_EXPIRE_MINUTES``)
    """
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_expire_minutes)
    claims = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        JWTError: If the token is malformed, tampered with or expired
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_user_id_from_token(token: str) -> UUID:
    """
    Return the user an access token was issued to.

    Raises:
        JWTError: If the token is invalid, not an access token, or has no subject
        ValueError: If the subject is not a UUID
    """
    claims = decode_token(token)
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("Not an access token")
    subject = claims.get("sub")
    if not subject:
        raise JWTError("Token missing 'sub' claim")
    return UUID(subject)

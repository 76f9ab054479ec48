"""Session token signing and verification (JWT carried in a cookie)."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from fieldops.core.config import settings
from fieldops.schemas.auth import TokenPayload


ALGORITHM = "HS256"


def create_session_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    token_version: int,
) -> str:
    """Sign a session token with the current secret."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "role": role,
        "token_version": token_version,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_session_token(token: str) -> TokenPayload:
    """
    Verify a session token against the current secret, then the previous one.

    Raises:
        jwt.InvalidTokenError: signature, expiry or claims are invalid
    """
    error: jwt.InvalidTokenError | None = None
    for secret in settings.jwt_secrets:
        try:
            claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except jwt.InvalidTokenError as exc:
            error = exc
            continue
        return TokenPayload.model_validate(claims)
    raise error or jwt.InvalidTokenError("No signing secret configured")

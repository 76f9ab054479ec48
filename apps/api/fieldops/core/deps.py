"""Request dependencies: database session, caller identity, role and CSRF guards."""

from typing import Generator

import jwt
from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops.core.security import decode_session_token
from fieldops.db.enums import Role
from fieldops.db.models import Membership, User
from fieldops.db.session import SessionLocal
from fieldops.schemas.auth import UserSession


COOKIE_NAME = "fieldops_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed afterwards; routers commit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the user behind the session cookie.

    Rejects a missing or invalid token, unknown or disabled users, and tokens
    issued before the user's sessions were revoked.

    Raises:
        HTTPException 401
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except (jwt.InvalidTokenError, ValidationError):
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.execute(select(User).where(User.id == payload.sub)).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")
    if user.token_version != payload.token_version:
        raise HTTPException(status_code=401, detail="Session revoked")
    return user


def get_current_session(request: Request, db: Session = Depends(get_db)) -> UserSession:
    """
    Build the caller's UserSession (user, company, role).

    Every checklist and inspection endpoint depends on this; the result is
    passed explicitly into service calls, which scope all queries by org_id.

    Raises:
        HTTPException 401: not authenticated
        HTTPException 403: no company membership, or a role this service does not know
    """
    user = get_current_user(request, db)

    membership = db.execute(
        select(Membership).where(Membership.user_id == user.id)
    ).scalar_one_or_none()
    if not membership:
        raise HTTPException(status_code=403, detail="No company profile")
    if not Role.has_value(membership.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{membership.role}'. Contact administrator.",
        )

    return UserSession(
        user_id=user.id,
        org_id=membership.organization_id,
        role=Role(membership.role),
        email=user.email,
        display_name=user.display_name,
    )


def require_roles(allowed_roles):
    """Dependency factory: the caller's session, or 403 unless their role is allowed."""
    def dependency(request: Request, db: Session = Depends(get_db)) -> UserSession:
        session = get_current_session(request, db)
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' not authorized for this action",
            )
        return session
    return dependency


def require_csrf_header(request: Request) -> None:
    """Reject state-changing requests without the X-Requested-With header (403)."""
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )

"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from fieldops.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    org_id: UUID
    role: str
    token_version: int


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    Resolved once per request by get_current_session and passed explicitly
    into every service call; org_id is the company every query is scoped to.
    """
    user_id: UUID
    org_id: UUID
    role: Role  # Validated enum
    email: str
    display_name: str

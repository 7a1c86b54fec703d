"""Pydantic schemas for account and user-directory procedures.

Learn: request models only check shape and types; the business rules
(email syntax, password strength, positive ids) live in the validators so
they produce the same typed InvalidArgument whether called over HTTP,
from the CLI, or directly in tests.

UserRead deliberately has no password field: converting a UserRecord to
UserRead is how every procedure strips the hash before returning.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from userdesk.db.models import UserRole, UserStatus


# ─── Inputs ─────────────────────────────────────────────

class SignupRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateProfileRequest(BaseModel):
    name: str
    email: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# ─── Outputs ────────────────────────────────────────────

class UserRead(BaseModel):
    id: int
    identity: str
    email: str
    name: Optional[str] = None
    login_method: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: datetime
    updated_at: datetime
    last_signed_in: datetime

    model_config = {"from_attributes": True}


class AuthResult(BaseModel):
    success: bool = True
    user: UserRead


class SuccessResponse(BaseModel):
    success: bool = True


class UserPage(BaseModel):
    """One page of the admin user directory."""
    users: list[UserRead]
    total: int
    page: int
    limit: int
    pages: int

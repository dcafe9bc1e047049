"""
Pydantic schemas for account operations and authentication.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dealership.models.account import AccountRole


# ── Registration ─────────────────────────────────────────────────────────────
class AccountCreate(BaseModel):
    """Customer self-registration."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=30)
    password: str = Field(..., min_length=1, max_length=128)


class AccountCreateAdmin(BaseModel):
    """Staff-created account; the password is generated server-side."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=30)


class AccountCreateSeller(AccountCreateAdmin):
    """Seller created by staff with a temporary password."""


# ── Login ────────────────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginUser(BaseModel):
    """Safe account view returned with a session token."""
    id: uuid.UUID
    email: str
    name: str
    surname: str
    role: AccountRole

    model_config = ConfigDict(from_attributes=True)


class LoginResult(BaseModel):
    token: str
    user: LoginUser


class VerifyResult(BaseModel):
    """Session issued after the email address is confirmed."""
    token: str
    email: str


# ── Account Responses ────────────────────────────────────────────────────────
class AccountResponse(BaseModel):
    """Public account view (never carries the password hash)."""
    id: uuid.UUID
    email: str
    name: str
    surname: str
    phone_number: str | None
    fiscal_code: str | None
    role: AccountRole
    profile_picture: str | None
    active: bool
    verified: bool
    created_at: datetime
    updated_at: datetime | None
    last_login: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ProfilePictureUrl(BaseModel):
    url: str | None


# ── Updates ──────────────────────────────────────────────────────────────────
class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left untouched."""
    name: str | None = Field(None, min_length=1, max_length=100)
    surname: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=30)
    fiscal_code: str | None = Field(None, max_length=32)


class EmailUpdate(BaseModel):
    email: EmailStr


class PasswordUpdate(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


class ToggleActive(BaseModel):
    active: bool


# ── Password reset ───────────────────────────────────────────────────────────
class RequestPasswordReset(BaseModel):
    email: EmailStr


class ResetPassword(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


# ── Generic Responses ────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    detail: str | None = None

"""Pydantic schemas for login and password changes."""

from __future__ import annotations

from pydantic import field_validator

from app.schemas.common import CamelModel


class LoginRequest(CamelModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def _normalise(cls, v: str) -> str:
        return v.strip().lower()


class SessionUser(CamelModel):
    id: int
    username: str
    role: str


class LoginResponse(CamelModel):
    success: bool = True
    require_password_change: bool = False
    user: SessionUser | None = None
    # Only set when a forced password change is pending
    user_id: int | None = None
    username: str | None = None


class PasswordChange(CamelModel):
    current_password: str
    new_password: str
    confirm_password: str | None = None


class ForcedPasswordChange(PasswordChange):
    user_id: int


class PasswordChangeResponse(CamelModel):
    success: bool = True
    message: str
    user: SessionUser | None = None

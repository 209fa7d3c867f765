"""Pydantic schemas for account management and profiles."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import field_validator

from app.core.policy import ROLE_USER, VALID_ROLES
from app.schemas.common import CamelModel
from app.schemas.record import RecordRead

_USERNAME_RE = re.compile(r"^[a-z0-9._-]{2,64}$")


def _check_role(v: str | None) -> str | None:
    if v is not None and v not in VALID_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(VALID_ROLES)}")
    return v


class UserCreate(CamelModel):
    username: str
    password: str
    role: str = ROLE_USER
    phone: str = ""
    email: str = ""

    @field_validator("username")
    @classmethod
    def _normalise_username(cls, v: str) -> str:
        v = v.strip().lower()
        if not _USERNAME_RE.match(v):
            raise ValueError(
                "Username must be 2-64 characters (letters, digits, '.', '_' or '-')"
            )
        return v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        return _check_role(v)  # type: ignore[return-value]


class UserUpdate(CamelModel):
    role: str | None = None
    password: str | None = None
    phone: str | None = None
    email: str | None = None
    avatar: str | None = None

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str | None) -> str | None:
        return _check_role(v)


class RoleChange(CamelModel):
    role: str

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        return _check_role(v)  # type: ignore[return-value]


class ProfileUpdate(CamelModel):
    phone: str | None = None
    email: str | None = None
    avatar: str | None = None

    @field_validator("phone", "avatar")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v


class UserRead(CamelModel):
    id: int
    username: str
    role: str
    is_active: bool
    must_change_password: bool
    created_by: str
    last_login: datetime | None
    login_count: int
    phone: str
    email: str
    avatar: str
    created_at: datetime | None


class UserEnvelope(CamelModel):
    success: bool = True
    user: UserRead


class UserStatus(CamelModel):
    id: int
    username: str
    is_active: bool


class UserStatusResponse(CamelModel):
    success: bool = True
    user: UserStatus


class UserRole(CamelModel):
    id: int
    username: str
    role: str


class UserRoleResponse(CamelModel):
    success: bool = True
    user: UserRole


class PasswordResetResponse(CamelModel):
    success: bool = True
    temporary_password: str
    message: str


class UserRecordsResponse(CamelModel):
    success: bool = True
    username: str
    records: list[RecordRead]

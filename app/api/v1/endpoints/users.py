"""
User management endpoints (admin / supervisor).

Granting ``admin`` or ``supervisor`` is further restricted to the root admin.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, require_admin
from app.core.policy import Principal
from app.models.user import User
from app.schemas.common import SuccessResponse
from app.schemas.record import RecordRead
from app.schemas.user import (PasswordResetResponse, RoleChange, UserCreate,
                              UserEnvelope, UserRead, UserRecordsResponse,
                              UserRole, UserRoleResponse, UserStatus,
                              UserStatusResponse, UserUpdate)
from app.services import accounts, records

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[UserRead])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> list[User]:
    """All accounts, newest first."""
    return await accounts.list_users(db)


@router.post("", response_model=UserEnvelope, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserEnvelope:
    """Create an account; the new user must change the password at first login."""
    user = await accounts.create_user(db, admin, **body.model_dump())
    return UserEnvelope(user=UserRead.model_validate(user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: int,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserEnvelope:
    user = await accounts.update_user(db, admin, user_id, **body.model_dump(exclude_unset=True))
    return UserEnvelope(user=UserRead.model_validate(user))


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> SuccessResponse:
    user = await accounts.delete_user(db, admin, user_id)
    return SuccessResponse(message=f"User '{user.username}' deleted")


@router.put("/{user_id}/role", response_model=UserRoleResponse)
async def change_role(
    user_id: int,
    body: RoleChange,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserRoleResponse:
    user = await accounts.change_role(db, admin, user_id, body.role)
    return UserRoleResponse(user=UserRole.model_validate(user))


@router.put("/{user_id}/toggle-status", response_model=UserStatusResponse)
async def toggle_status(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserStatusResponse:
    """Block or unblock an account. Blocking ends its sessions."""
    user = await accounts.toggle_status(db, admin, user_id)
    return UserStatusResponse(user=UserStatus.model_validate(user))


@router.put("/{user_id}/reset-password", response_model=PasswordResetResponse)
async def reset_password(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> PasswordResetResponse:
    _user, temporary = await accounts.reset_password(db, admin, user_id)
    return PasswordResetResponse(
        temporary_password=temporary,
        message="Password reset. The user must change it at next login.",
    )


@router.get("/{user_id}/records", response_model=UserRecordsResponse)
async def list_user_records(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserRecordsResponse:
    user, user_records = await records.list_for_user(db, admin, user_id)
    return UserRecordsResponse(
        username=user.username,
        records=[RecordRead.model_validate(r) for r in user_records],
    )

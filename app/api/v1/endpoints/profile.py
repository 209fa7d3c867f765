"""
Self-service endpoints — own profile and own password.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_principal, get_db
from app.core.policy import Principal
from app.schemas.auth import PasswordChange
from app.schemas.common import SuccessResponse
from app.schemas.user import ProfileUpdate, UserEnvelope, UserRead
from app.services import accounts

router = APIRouter(tags=["profile"])


@router.get("/me", response_model=UserEnvelope)
async def read_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    user = await accounts.get_or_404(db, principal.account_id)
    return UserEnvelope(user=UserRead.model_validate(user))


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    body: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Update contact fields and avatar of the current user."""
    user = await accounts.update_profile(db, principal, **body.model_dump(exclude_unset=True))
    return UserEnvelope(user=UserRead.model_validate(user))


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    body: PasswordChange,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    user = await accounts.get_or_404(db, principal.account_id)
    await accounts.change_password(
        db, user, body.current_password, body.new_password, body.confirm_password
    )
    return SuccessResponse(message="Password updated")

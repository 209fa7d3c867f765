"""
Auth endpoints — login, logout, forced password change and current user.
"""

from fastapi import APIRouter, Depends, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (get_client_info, get_current_principal, get_db,
                             get_session_token)
from app.core.config import settings
from app.core.exceptions import AccountBlocked
from app.core.policy import Principal
from app.models.user import User
from app.schemas.auth import (ForcedPasswordChange, LoginRequest,
                              LoginResponse, PasswordChangeResponse,
                              SessionUser)
from app.schemas.common import SuccessResponse
from app.schemas.user import UserRead
from app.services import accounts, sessions
from app.services.sessions import ClientInfo

# Rate limiter keyed by client IP
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,  # Set to True in HTTPS production
        samesite="lax",
        max_age=settings.SESSION_TTL_HOURS * 60 * 60,
    )


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    client: ClientInfo = Depends(get_client_info),
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate and open a session (HttpOnly cookie).

    Accounts flagged ``mustChangePassword`` get no session; the caller has
    to finish ``/auth/change-password`` first.
    """
    user = await sessions.authenticate(db, body.username, body.password, client)

    if user.must_change_password:
        return LoginResponse(
            require_password_change=True,
            user_id=user.id,
            username=user.username,
        )

    token = await sessions.create_session(db, user)
    set_session_cookie(response, token)
    return LoginResponse(
        require_password_change=False,
        user=SessionUser.model_validate(user),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    client: ClientInfo = Depends(get_client_info),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    """End the session and clear the cookie."""
    await sessions.destroy(db, token, client)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return SuccessResponse(message="Logged out")


@router.post("/change-password", response_model=PasswordChangeResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def change_password_and_login(
    request: Request,
    response: Response,
    body: ForcedPasswordChange,
    db: AsyncSession = Depends(get_db),
) -> PasswordChangeResponse:
    """Complete a forced password change and open the session."""
    user: User = await accounts.get_or_404(db, body.user_id)
    if not user.is_active:
        raise AccountBlocked()

    user = await accounts.change_password(
        db, user, body.current_password, body.new_password, body.confirm_password
    )
    token = await sessions.create_session(db, user)
    set_session_cookie(response, token)
    return PasswordChangeResponse(
        message="Password updated",
        user=SessionUser.model_validate(user),
    )


@router.get("/me", response_model=UserRead)
async def read_current_user(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the profile of the currently authenticated user."""
    return await accounts.get_or_404(db, principal.account_id)

"""
FastAPI dependencies — database session, principal resolution and role guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationRequired
from app.core.policy import Action, Principal, require
from app.db.session import async_session_factory
from app.services import sessions
from app.services.sessions import ClientInfo

# auto_error=False so the session cookie can be used when the header is missing
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False
)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Request context ─────────────────────────────────────────────────
def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_session_token(
    token: Optional[str] = Depends(oauth2_scheme),
    session_cookie: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
) -> Optional[str]:
    """Header wins over cookie."""
    return token or session_cookie


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_principal(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    principal = await sessions.resolve(db, token)
    if principal is None:
        raise AuthenticationRequired()
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Admin and supervisor roles both pass."""
    require(principal, Action.ADMINISTER)
    return principal

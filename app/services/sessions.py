"""
Session authority — login, token resolution and logout.

A session is a row in ``auth_sessions``; the cookie carries a signed token
naming that row.  Expiry is fixed from issue time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccountBlocked, InvalidCredentials
from app.core.policy import Principal
from app.core.security import (create_session_token, decode_session_token,
                               new_session_id, pwd_context, session_expiry,
                               verify_password)
from app.models.auth_session import AuthSession
from app.models.user import User
from app.services import accounts, audit

logger = logging.getLogger(__name__)


@dataclass
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


async def authenticate(
    db: AsyncSession,
    username: str,
    password: str,
    client: ClientInfo | None = None,
) -> User:
    """Check credentials and record the attempt.

    Unknown usernames and wrong passwords fail identically.  A blocked
    account is reported as such and its login counters are left untouched.
    """
    client = client or ClientInfo()
    name = accounts.normalise_username(username)
    user = await accounts.get_by_username(db, name)

    if user is None:
        pwd_context.dummy_verify()
        matched = False
    else:
        matched = verify_password(password, user.hashed_password)

    if not matched:
        await audit.record_access(
            db, name, audit.ACCESS_FAILED_LOGIN, client.ip_address, client.user_agent
        )
        logger.info("Failed login for %s", name)
        raise InvalidCredentials()

    if not user.is_active:
        logger.info("Blocked account %s tried to log in", user.username)
        raise AccountBlocked()

    user.last_login = datetime.now(timezone.utc)
    user.login_count = (user.login_count or 0) + 1
    await db.commit()
    await db.refresh(user)

    username = user.username
    logged = await audit.record_access(
        db, username, audit.ACCESS_LOGIN, client.ip_address, client.user_agent
    )
    if logged is None:
        # The failed write rolled back and expired the account
        await db.refresh(user)
    logger.info("User %s logged in", username)
    return user


async def create_session(db: AsyncSession, user: User) -> str:
    """Persist a new session for *user* and return its signed token."""
    expires_at = session_expiry()
    session_row = AuthSession(
        id=new_session_id(),
        user_id=user.id,
        username=user.username,
        role=user.role,
        expires_at=expires_at,
    )
    db.add(session_row)
    await db.commit()
    return create_session_token(session_row.id, expires_at)


async def _load(db: AsyncSession, token: str | None) -> AuthSession | None:
    if not token:
        return None
    session_id = decode_session_token(token)
    if session_id is None:
        return None
    return await db.get(AuthSession, session_id)


async def resolve(db: AsyncSession, token: str | None) -> Principal | None:
    """Return the principal bound to *token*, or ``None`` when there is none."""
    session_row = await _load(db, token)
    if session_row is None:
        return None

    if _as_utc(session_row.expires_at) <= datetime.now(timezone.utc):
        await db.delete(session_row)
        await db.commit()
        return None

    user = await db.get(User, session_row.user_id)
    if user is None or not user.is_active:
        return None

    return Principal(
        account_id=user.id,
        username=user.username,
        role=user.role,
        session_id=session_row.id,
    )


async def destroy(db: AsyncSession, token: str | None, client: ClientInfo | None = None) -> None:
    """Log out.  The logout entry is written first and may fail silently."""
    client = client or ClientInfo()
    session_row = await _load(db, token)
    if session_row is None:
        return

    session_id = session_row.id
    username = session_row.username
    await audit.record_access(
        db, username, audit.ACCESS_LOGOUT, client.ip_address, client.user_agent
    )
    # record_access may have rolled back; fetch the row again before deleting
    session_row = await db.get(AuthSession, session_id)
    if session_row is not None:
        await db.delete(session_row)
        await db.commit()
    logger.info("User %s logged out", username)

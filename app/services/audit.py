"""
Audit trail writer and reader.

Nothing here updates or deletes a log row.  Access events are best-effort
(a failed write is logged and swallowed so login/logout still succeed);
modification events are flushed into the caller's transaction so the audit
entry and the mutation it describes commit or fail together.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AccessLog, ModificationLog

logger = logging.getLogger(__name__)

ACCESS_LOGIN = "login"
ACCESS_LOGOUT = "logout"
ACCESS_FAILED_LOGIN = "failed_login"

MODIFICATION_EDIT = "edit"
MODIFICATION_DELETE = "delete"


async def record_access(
    db: AsyncSession,
    username: str,
    action: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AccessLog | None:
    entry = AccessLog(
        username=username,
        action=action,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Could not write %s access log for %s", action, username, exc_info=True)
        return None
    return entry


async def record_modification(
    db: AsyncSession,
    *,
    admin_username: str,
    target_username: str,
    record_id: int,
    action: str,
    changes: dict[str, Any] | None,
    reason: str = "",
) -> ModificationLog:
    """Stage a modification entry in the current transaction.

    The caller commits; the entry is flushed here so its id is available.
    """
    entry = ModificationLog(
        admin_username=admin_username,
        target_username=target_username,
        record_id=record_id,
        action=action,
        changes=changes,
        reason=reason or "",
    )
    db.add(entry)
    await db.flush()
    return entry


async def query_access(
    db: AsyncSession,
    *,
    username: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[AccessLog], int]:
    query = select(AccessLog)
    count_query = select(func.count()).select_from(AccessLog)
    if username:
        query = query.where(AccessLog.username == username.lower())
        count_query = count_query.where(AccessLog.username == username.lower())

    result = await db.execute(
        query.order_by(AccessLog.timestamp.desc(), AccessLog.id.desc()).offset(offset).limit(limit)
    )
    total = (await db.execute(count_query)).scalar_one()
    return list(result.scalars().all()), total


async def query_modifications(
    db: AsyncSession,
    *,
    admin_username: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[ModificationLog], int]:
    query = select(ModificationLog)
    count_query = select(func.count()).select_from(ModificationLog)
    if admin_username:
        query = query.where(ModificationLog.admin_username == admin_username.lower())
        count_query = count_query.where(ModificationLog.admin_username == admin_username.lower())

    result = await db.execute(
        query.order_by(ModificationLog.timestamp.desc(), ModificationLog.id.desc())
        .offset(offset)
        .limit(limit)
    )
    total = (await db.execute(count_query)).scalar_one()
    return list(result.scalars().all()), total

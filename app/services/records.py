"""
Record store — owner-scoped shift CRUD plus the audited admin override.

Owner-scoped lookups filter on ``owner_id`` so another user's record is
simply "not found".  The override path snapshots the record, stages a
modification log entry and mutates in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.policy import Action, Principal, require
from app.models.audit_log import ModificationLog
from app.models.record import RECORD_FIELDS, Record
from app.models.user import User
from app.services import accounts, audit

logger = logging.getLogger(__name__)

_NOT_FOUND = "Record not found"


def _ordered(query):
    return query.order_by(Record.date.desc(), Record.created_at.desc(), Record.id.desc())


def _apply(record: Record, changes: dict[str, Any]) -> None:
    for field, value in changes.items():
        if field in RECORD_FIELDS and value is not None:
            setattr(record, field, value)


async def list_own(db: AsyncSession, principal: Principal) -> list[Record]:
    result = await db.execute(_ordered(select(Record).where(Record.owner_id == principal.account_id)))
    return list(result.scalars().all())


async def get_own(db: AsyncSession, principal: Principal, record_id: int) -> Record:
    result = await db.execute(
        select(Record).where(Record.id == record_id, Record.owner_id == principal.account_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundError(_NOT_FOUND)
    return record


async def create(db: AsyncSession, principal: Principal, data: dict[str, Any]) -> Record:
    record = Record(owner_id=principal.account_id)
    record.notes = ""
    _apply(record, data)
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def update_own(
    db: AsyncSession, principal: Principal, record_id: int, changes: dict[str, Any]
) -> Record:
    record = await get_own(db, principal, record_id)
    _apply(record, changes)
    await db.commit()
    await db.refresh(record)
    return record


async def delete_own(db: AsyncSession, principal: Principal, record_id: int) -> None:
    record = await get_own(db, principal, record_id)
    await db.delete(record)
    await db.commit()


async def list_for_user(db: AsyncSession, actor: Principal, user_id: int) -> tuple[User, list[Record]]:
    user = await accounts.get_or_404(db, user_id)
    require(actor, Action.ACCESS_RECORD, resource_owner_id=user.id)
    result = await db.execute(_ordered(select(Record).where(Record.owner_id == user.id)))
    return user, list(result.scalars().all())


async def _load_for_override(db: AsyncSession, actor: Principal, record_id: int) -> tuple[Record, str]:
    require(actor, Action.OVERRIDE_RECORD)
    record = await db.get(Record, record_id)
    if record is None:
        raise NotFoundError(_NOT_FOUND)
    owner = await db.get(User, record.owner_id)
    if owner is None:
        raise NotFoundError("Record owner not found")
    return record, owner.username


async def admin_edit(
    db: AsyncSession,
    actor: Principal,
    record_id: int,
    changes: dict[str, Any],
    reason: str = "",
) -> tuple[Record, ModificationLog]:
    record, owner_username = await _load_for_override(db, actor, record_id)

    before = record.snapshot()
    applied = {k: v for k, v in changes.items() if k in RECORD_FIELDS and v is not None}
    entry = await audit.record_modification(
        db,
        admin_username=actor.username,
        target_username=owner_username,
        record_id=record.id,
        action=audit.MODIFICATION_EDIT,
        changes={"before": before, "after": {**before, **applied}},
        reason=reason,
    )
    _apply(record, applied)
    await db.commit()
    await db.refresh(record)
    logger.info(
        "Record %d of %s edited by %s (log %d)", record.id, owner_username, actor.username, entry.id
    )
    return record, entry


async def admin_delete(
    db: AsyncSession,
    actor: Principal,
    record_id: int,
    reason: str = "",
) -> ModificationLog:
    record, owner_username = await _load_for_override(db, actor, record_id)

    entry = await audit.record_modification(
        db,
        admin_username=actor.username,
        target_username=owner_username,
        record_id=record.id,
        action=audit.MODIFICATION_DELETE,
        changes={"deleted": record.snapshot()},
        reason=reason,
    )
    await db.delete(record)
    await db.commit()
    logger.info(
        "Record %d of %s deleted by %s (log %d)", record_id, owner_username, actor.username, entry.id
    )
    return entry

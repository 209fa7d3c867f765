"""
Direct messaging over a flat, append-only message table.

Conversations and unread counts are not stored anywhere: they are derived
from the messages on every read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.policy import Principal, is_root_username
from app.models.message import Message
from app.services import accounts

logger = logging.getLogger(__name__)


@dataclass
class Conversation:
    other_user: str
    last_message_preview: str
    last_timestamp: datetime | None
    unread_count: int


def preview(body: str, length: int | None = None) -> str:
    length = length or settings.MESSAGE_PREVIEW_LENGTH
    if len(body) <= length:
        return body
    return body[:length] + "..."


def _between(me: str, other: str):
    return or_(
        and_(Message.sender == me, Message.recipient == other),
        and_(Message.sender == other, Message.recipient == me),
    )


async def _require_account(db: AsyncSession, username: str, message: str) -> str:
    user = await accounts.get_by_username(db, username)
    if user is None:
        raise NotFoundError(message)
    return user.username


async def send(db: AsyncSession, sender: str, to: str, body: str | None) -> Message:
    body = body or ""
    # The limit applies to the body as sent, before trimming
    if len(body) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(
            f"Message is too long (max {settings.MESSAGE_MAX_LENGTH} characters)"
        )
    text = body.strip()
    if not text:
        raise ValidationError("Message must not be empty")
    recipient = await _require_account(db, to or "", "Recipient not found")

    message = Message(
        sender=accounts.normalise_username(sender),
        recipient=recipient,
        body=text,
        is_read=False,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    logger.debug("Message %d from %s to %s", message.id, message.sender, message.recipient)
    return message


async def mark_read(db: AsyncSession, me: str, other: str) -> int:
    """Mark everything *other* sent to *me* as read; returns rows changed."""
    result = await db.execute(
        update(Message)
        .where(
            Message.sender == accounts.normalise_username(other),
            Message.recipient == me,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    return result.rowcount or 0


async def list_with(db: AsyncSession, me: str, other: str, *, mark_as_read: bool = True) -> list[Message]:
    """Both directions of the (me, other) thread, oldest first.

    Viewing a thread marks the incoming side as read.
    """
    other = await _require_account(db, other, "User not found")
    result = await db.execute(
        select(Message).where(_between(me, other)).order_by(Message.timestamp.asc(), Message.id.asc())
    )
    messages = list(result.scalars().all())
    if mark_as_read:
        await mark_read(db, me, other)
    return messages


async def unread_count(db: AsyncSession, me: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Message)
        .where(Message.recipient == me, Message.is_read.is_(False))
    )
    return result.scalar_one()


async def list_conversations(db: AsyncSession, principal: Principal) -> list[Conversation]:
    """One summary per counterpart, most recent first.

    Non-administrative users always get an entry for the root admin so they
    have someone to write to.
    """
    me = principal.username
    result = await db.execute(
        select(Message)
        .where(or_(Message.sender == me, Message.recipient == me))
        .order_by(Message.timestamp.desc(), Message.id.desc())
    )
    messages = list(result.scalars().all())

    unread_rows = await db.execute(
        select(Message.sender, func.count())
        .where(Message.recipient == me, Message.is_read.is_(False))
        .group_by(Message.sender)
    )
    unread_by_sender = {sender: count for sender, count in unread_rows.all()}

    conversations: dict[str, Conversation] = {}
    for msg in messages:
        other = msg.recipient if msg.sender == me else msg.sender
        if other in conversations:
            continue
        conversations[other] = Conversation(
            other_user=other,
            last_message_preview=preview(msg.body),
            last_timestamp=msg.timestamp,
            unread_count=unread_by_sender.get(other, 0),
        )

    summaries = list(conversations.values())
    root = accounts.normalise_username(settings.ROOT_ADMIN_USERNAME)
    if not principal.is_administrative and not is_root_username(me) and root not in conversations:
        summaries.append(
            Conversation(
                other_user=root,
                last_message_preview="",
                last_timestamp=None,
                unread_count=0,
            )
        )
    return summaries

"""
Direct message endpoints. Clients poll; there is no push channel.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_principal, get_db
from app.core.policy import Principal
from app.schemas.message import (ConversationList, ConversationRead,
                                 MarkReadResult, MessageList, MessageRead,
                                 MessageSend, MessageSent, UnreadCount)
from app.services import messaging

router = APIRouter(prefix="/messages", tags=["messages"])


# Fixed paths first so they are not captured by /{username}
@router.get("/conversations", response_model=ConversationList)
async def list_conversations(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> ConversationList:
    conversations = await messaging.list_conversations(db, principal)
    return ConversationList(
        conversations=[ConversationRead.model_validate(c) for c in conversations]
    )


@router.get("/unread/count", response_model=UnreadCount)
async def unread_count(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> UnreadCount:
    return UnreadCount(count=await messaging.unread_count(db, principal.username))


@router.post("", response_model=MessageSent, status_code=201)
async def send_message(
    body: MessageSend,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> MessageSent:
    message = await messaging.send(db, principal.username, body.to, body.body)
    return MessageSent(message=MessageRead.model_validate(message))


@router.get("/{username}", response_model=MessageList)
async def list_messages(
    username: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> MessageList:
    """Thread with *username*, oldest first; incoming messages become read."""
    messages = await messaging.list_with(db, principal.username, username)
    return MessageList(messages=[MessageRead.model_validate(m) for m in messages])


@router.put("/{username}/mark-read", response_model=MarkReadResult)
async def mark_read(
    username: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> MarkReadResult:
    updated = await messaging.mark_read(db, principal.username, username)
    return MarkReadResult(updated=updated)

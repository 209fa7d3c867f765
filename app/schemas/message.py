"""Pydantic schemas for direct messages and conversation summaries."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, Field

from app.schemas.common import CamelModel


class MessageSend(CamelModel):
    to: str
    # "message" is accepted for older clients
    body: str = Field(validation_alias=AliasChoices("body", "message"))


class MessageRead(CamelModel):
    id: int
    sender: str = Field(validation_alias=AliasChoices("sender", "from"), serialization_alias="from")
    recipient: str = Field(validation_alias=AliasChoices("recipient", "to"), serialization_alias="to")
    body: str
    is_read: bool
    timestamp: datetime


class MessageList(CamelModel):
    success: bool = True
    messages: list[MessageRead]


class MessageSent(CamelModel):
    success: bool = True
    message: MessageRead


class ConversationRead(CamelModel):
    other_user: str
    last_message_preview: str
    last_timestamp: datetime | None
    unread_count: int


class ConversationList(CamelModel):
    success: bool = True
    conversations: list[ConversationRead]


class UnreadCount(CamelModel):
    success: bool = True
    count: int


class MarkReadResult(CamelModel):
    success: bool = True
    updated: int

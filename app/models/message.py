"""
Direct messages between two usernames. Append-only apart from ``is_read``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from app.db.base import Base


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_pair_time", "sender", "recipient", "timestamp"),
        Index("ix_messages_recipient_unread", "recipient", "is_read"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    sender: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    recipient: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    body: str = Column(String(1000), nullable=False)  # type: ignore[assignment]
    is_read: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

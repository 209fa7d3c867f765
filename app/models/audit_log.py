"""
Audit trail — access events and admin modification events.

Both tables are append-only: the application only ever inserts rows.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from app.db.base import Base


class AccessLog(Base):
    __tablename__ = "access_logs"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    username: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    action: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # login | logout | failed_login
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    ip_address: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]


class ModificationLog(Base):
    __tablename__ = "modification_logs"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    admin_username: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    target_username: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    record_id: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    action: str = Column(String(20), nullable=False)  # type: ignore[assignment]  # edit | delete
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    changes: dict | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    reason: str = Column(String(500), nullable=False, default="")  # type: ignore[assignment]

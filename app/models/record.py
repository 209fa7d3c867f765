"""
Record model — one logged work shift owned by a user.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String

from app.db.base import Base

RECORD_FIELDS = ("date", "start_time", "end_time", "total_hours", "location", "notes")


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (Index("ix_records_owner_date", "owner_id", "date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    start_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:MM
    end_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    total_hours: float = Column(Float, nullable=False)  # type: ignore[assignment]
    location: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    notes: str = Column(String(2000), nullable=False, default="")  # type: ignore[assignment]
    owner_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def snapshot(self) -> dict:
        """Plain-dict copy of the editable fields, used for audit payloads."""
        return {field: getattr(self, field) for field in RECORD_FIELDS}

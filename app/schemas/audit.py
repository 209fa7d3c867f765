"""Pydantic schemas for the audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.schemas.common import CamelModel


class AccessLogRead(CamelModel):
    id: int
    username: str
    action: str
    timestamp: datetime
    ip_address: str | None
    user_agent: str | None


class ModificationLogRead(CamelModel):
    id: int
    admin_username: str
    target_username: str
    record_id: int
    action: str
    timestamp: datetime
    changes: dict[str, Any] | None
    reason: str


class AccessLogPage(CamelModel):
    success: bool = True
    logs: list[AccessLogRead]
    total: int


class ModificationLogPage(CamelModel):
    success: bool = True
    logs: list[ModificationLogRead]
    total: int

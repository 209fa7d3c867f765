"""Pydantic schemas for shift records."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.common import CamelModel

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_date(v: str | None) -> str | None:
    if v is not None and not _DATE_RE.match(v.strip()):
        raise ValueError("Date must be formatted YYYY-MM-DD")
    return v.strip() if v is not None else v


def _check_time(v: str | None) -> str | None:
    if v is not None and not _TIME_RE.match(v.strip()):
        raise ValueError("Time must be formatted HH:MM")
    return v.strip() if v is not None else v


class RecordCreate(CamelModel):
    date: str
    start_time: str
    end_time: str
    total_hours: float = Field(ge=0)
    location: str
    notes: str = ""

    @field_validator("date")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return _check_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _times(cls, v: str | None) -> str | None:
        return _check_time(v)

    @field_validator("location")
    @classmethod
    def _location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location must not be empty")
        return v


class RecordUpdate(CamelModel):
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    total_hours: float | None = Field(default=None, ge=0)
    location: str | None = None
    notes: str | None = None

    @field_validator("date")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return _check_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _times(cls, v: str | None) -> str | None:
        return _check_time(v)

    @field_validator("location")
    @classmethod
    def _location(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Location must not be empty")
        return v.strip() if v is not None else v


class AdminRecordEdit(RecordUpdate):
    reason: str = ""


class AdminRecordDelete(CamelModel):
    reason: str = ""


class RecordRead(CamelModel):
    id: int
    date: str
    start_time: str
    end_time: str
    total_hours: float
    location: str
    notes: str
    owner_id: int
    created_at: datetime | None


class AdminEditResponse(CamelModel):
    success: bool = True
    record: RecordRead
    log_id: int


class AdminDeleteResponse(CamelModel):
    success: bool = True
    message: str
    log_id: int

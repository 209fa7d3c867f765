"""
Shift record endpoints.

Plain CRUD is scoped to the caller's own records; ``admin-edit`` and
``admin-delete`` reach any record and leave a modification log entry.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_principal, get_db, require_admin
from app.core.policy import Principal
from app.models.record import Record
from app.schemas.common import SuccessResponse
from app.schemas.record import (AdminDeleteResponse, AdminEditResponse,
                                AdminRecordDelete, AdminRecordEdit,
                                RecordCreate, RecordRead, RecordUpdate)
from app.services import records

router = APIRouter(prefix="/records", tags=["records"])


@router.get("", response_model=list[RecordRead])
async def list_records(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> list[Record]:
    return await records.list_own(db, principal)


@router.post("", response_model=RecordRead, status_code=201)
async def create_record(
    body: RecordCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Record:
    return await records.create(db, principal, body.model_dump())


@router.get("/{record_id}", response_model=RecordRead)
async def get_record(
    record_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Record:
    return await records.get_own(db, principal, record_id)


@router.put("/{record_id}", response_model=RecordRead)
async def update_record(
    record_id: int,
    body: RecordUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Record:
    return await records.update_own(db, principal, record_id, body.model_dump(exclude_unset=True))


@router.delete("/{record_id}", response_model=SuccessResponse)
async def delete_record(
    record_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await records.delete_own(db, principal, record_id)
    return SuccessResponse(message="Record deleted")


# ── Admin override ──────────────────────────────────────────────────
@router.put("/{record_id}/admin-edit", response_model=AdminEditResponse)
async def admin_edit_record(
    record_id: int,
    body: AdminRecordEdit,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> AdminEditResponse:
    changes = body.model_dump(exclude_unset=True, exclude={"reason"})
    record, entry = await records.admin_edit(db, admin, record_id, changes, body.reason)
    return AdminEditResponse(record=RecordRead.model_validate(record), log_id=entry.id)


@router.delete("/{record_id}/admin-delete", response_model=AdminDeleteResponse)
async def admin_delete_record(
    record_id: int,
    body: AdminRecordDelete | None = None,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> AdminDeleteResponse:
    reason = body.reason if body else ""
    entry = await records.admin_delete(db, admin, record_id, reason)
    return AdminDeleteResponse(message="Record deleted", log_id=entry.id)

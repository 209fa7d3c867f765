"""
Audit log endpoints (admin / supervisor), paginated by limit/offset.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, require_admin
from app.core.config import settings
from app.core.policy import Principal
from app.schemas.audit import (AccessLogPage, AccessLogRead,
                               ModificationLogPage, ModificationLogRead)
from app.services import audit

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("/access", response_model=AccessLogPage)
async def access_logs(
    limit: int = Query(default=settings.LOG_PAGE_DEFAULT, ge=1, le=settings.LOG_PAGE_MAX),
    offset: int = Query(default=0, ge=0),
    username: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> AccessLogPage:
    entries, total = await audit.query_access(db, username=username, limit=limit, offset=offset)
    return AccessLogPage(logs=[AccessLogRead.model_validate(e) for e in entries], total=total)


@router.get("/modifications", response_model=ModificationLogPage)
async def modification_logs(
    limit: int = Query(default=settings.LOG_PAGE_DEFAULT, ge=1, le=settings.LOG_PAGE_MAX),
    offset: int = Query(default=0, ge=0),
    admin_username: str | None = Query(default=None, alias="adminUsername"),
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> ModificationLogPage:
    entries, total = await audit.query_modifications(
        db, admin_username=admin_username, limit=limit, offset=offset
    )
    return ModificationLogPage(
        logs=[ModificationLogRead.model_validate(e) for e in entries], total=total
    )

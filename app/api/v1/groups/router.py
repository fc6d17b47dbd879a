from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import MANAGEMENT_ROLES, STAFF_ROLES
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import GroupCreate, GroupResponse, GroupUpdate
from . import service

router = APIRouter(prefix="/api/v1/groups", tags=["groups"])


@router.get("", response_model=ApiResponse[List[GroupResponse]])
async def list_groups(
    grade_level: Optional[int] = Query(None, ge=1, le=6),
    school_year: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    """TEACHER sees only the groups they tutor."""
    groups = await service.list_groups(
        db, current_user, grade_level=grade_level, school_year=school_year, active=active
    )
    return ok(groups)


@router.get("/{group_id}", response_model=ApiResponse[GroupResponse])
async def get_group(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.get_group(db, current_user, group_id))


@router.post(
    "",
    response_model=ApiResponse[GroupResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_group(
    payload: GroupCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.create_group(db, audit, current_user, payload), "Group created")


@router.put("/{group_id}", response_model=ApiResponse[GroupResponse])
async def update_group(
    group_id: UUID,
    payload: GroupUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.update_group(db, audit, current_user, group_id, payload), "Group updated")


@router.delete("/{group_id}", response_model=ApiResponse[GroupResponse])
async def deactivate_group(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.deactivate_group(db, audit, current_user, group_id), "Group deactivated")

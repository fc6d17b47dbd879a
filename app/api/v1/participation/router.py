from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import STAFF_ROLES
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import ParticipationCreate, ParticipationResponse
from . import service

router = APIRouter(prefix="/api/v1/participation", tags=["participation"])


@router.post(
    "",
    response_model=ApiResponse[ParticipationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_participation(
    payload: ParticipationCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.create_participation(db, audit, current_user, payload), "Participation recorded")


@router.get("", response_model=ApiResponse[List[ParticipationResponse]])
async def list_participation(
    student_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    group_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    records = await service.list_participation(
        db, current_user, student_id=student_id, subject_id=subject_id, group_id=group_id
    )
    return ok(records)

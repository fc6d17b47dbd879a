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

from .schemas import SubjectCreate, SubjectResponse, SubjectUpdate
from . import service

router = APIRouter(prefix="/api/v1/subjects", tags=["subjects"])


@router.post(
    "",
    response_model=ApiResponse[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.create_subject(db, audit, current_user, payload), "Subject created")


@router.get("", response_model=ApiResponse[List[SubjectResponse]])
async def list_subjects(
    grade_level: Optional[int] = Query(None, ge=1, le=6),
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.list_subjects(db, grade_level=grade_level, active=active))


@router.get("/{subject_id}", response_model=ApiResponse[SubjectResponse])
async def get_subject(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    subject = await service.get_subject_or_404(db, subject_id)
    return ok(SubjectResponse.model_validate(subject))


@router.put("/{subject_id}", response_model=ApiResponse[SubjectResponse])
async def update_subject(
    subject_id: UUID,
    payload: SubjectUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.update_subject(db, audit, current_user, subject_id, payload), "Subject updated")


@router.delete("/{subject_id}", response_model=ApiResponse[SubjectResponse])
async def deactivate_subject(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.deactivate_subject(db, audit, current_user, subject_id), "Subject deactivated")

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

from .schemas import GradeCreate, GradeResponse, GradeUpdate
from . import service

router = APIRouter(prefix="/api/v1/grades", tags=["grades"])


@router.post(
    "",
    response_model=ApiResponse[GradeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_grade(
    payload: GradeCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    """TEACHER: target group must be tutored and the student actively enrolled in it."""
    return ok(await service.create_grade(db, audit, current_user, payload), "Grade recorded")


@router.get("", response_model=ApiResponse[List[GradeResponse]])
async def list_grades(
    student_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    group_id: Optional[UUID] = Query(None),
    term: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    grades = await service.list_grades(
        db, current_user, student_id=student_id, subject_id=subject_id, group_id=group_id, term=term
    )
    return ok(grades)


@router.put("/{grade_id}", response_model=ApiResponse[GradeResponse])
async def update_grade(
    grade_id: UUID,
    payload: GradeUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.update_grade(db, audit, current_user, grade_id, payload), "Grade updated")

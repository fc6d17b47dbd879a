from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import MANAGEMENT_ROLES, STAFF_ROLES, StudentStatus
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import StudentCreate, StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("", response_model=ApiResponse[List[StudentResponse]])
async def list_students(
    status_filter: Optional[StudentStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    group_id: Optional[UUID] = Query(None, description="Only students with an ACTIVE enrollment in this group"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    students = await service.list_students(
        db, current_user, status=status_filter, search=search, group_id=group_id
    )
    return ok(students)


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse])
async def get_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.get_student(db, current_user, student_id))


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.create_student(db, audit, current_user, payload), "Student created")


@router.put("/{student_id}", response_model=ApiResponse[StudentResponse])
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.update_student(db, audit, current_user, student_id, payload), "Student updated")


@router.delete("/{student_id}", response_model=ApiResponse[StudentResponse])
async def deactivate_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.deactivate_student(db, audit, current_user, student_id), "Student deactivated")

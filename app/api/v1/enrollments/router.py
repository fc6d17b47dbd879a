from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import EnrollmentStatus, MANAGEMENT_ROLES, STAFF_ROLES
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import EnrollmentCreate, EnrollmentResponse, EnrollmentUpdate
from . import service

router = APIRouter(prefix="/api/v1/enrollments", tags=["enrollments"])


@router.get("", response_model=ApiResponse[List[EnrollmentResponse]])
async def list_enrollments(
    group_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    status_filter: Optional[EnrollmentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    enrollments = await service.list_enrollments(
        db, current_user, group_id=group_id, student_id=student_id, status=status_filter
    )
    return ok(enrollments)


@router.post(
    "",
    response_model=ApiResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_enrollment(
    payload: EnrollmentCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    return ok(await service.create_enrollment(db, audit, current_user, payload), "Enrollment created")


@router.put("/{enrollment_id}", response_model=ApiResponse[EnrollmentResponse])
async def update_enrollment(
    enrollment_id: UUID,
    payload: EnrollmentUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    enrollment = await service.update_enrollment(db, audit, current_user, enrollment_id, payload)
    return ok(enrollment, "Enrollment updated")


@router.delete("/{enrollment_id}", response_model=ApiResponse[None])
async def delete_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES)),
):
    await service.delete_enrollment(db, audit, current_user, enrollment_id)
    return ok(None, "Enrollment deleted")

from datetime import date
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

from .schemas import AttendanceRecordResponse, AttendanceSave, StudentAttendanceItem
from . import service

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post(
    "",
    response_model=ApiResponse[AttendanceRecordResponse],
    status_code=status.HTTP_201_CREATED,
)
async def save_attendance(
    payload: AttendanceSave,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    """Create or replace the attendance roll of a group for one day."""
    return ok(await service.save_attendance(db, audit, current_user, payload), "Attendance saved")


@router.get("", response_model=ApiResponse[List[AttendanceRecordResponse]])
async def list_attendance(
    group_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    records = await service.list_attendance(
        db, current_user, group_id=group_id, date_from=date_from, date_to=date_to
    )
    return ok(records)


@router.get("/student/{student_id}", response_model=ApiResponse[List[StudentAttendanceItem]])
async def get_student_attendance(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.get_student_attendance(db, current_user, student_id))

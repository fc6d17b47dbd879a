from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.enums import STAFF_ROLES
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import AttendanceSummaryItem, AverageSummaryItem
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get("/attendance-summary", response_model=ApiResponse[List[AttendanceSummaryItem]])
async def attendance_summary(
    group_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    """Per-student PRESENT/ABSENT/LATE/EXCUSED counts for one group."""
    return ok(await service.attendance_summary(db, current_user, group_id, date_from, date_to))


@router.get("/grades-summary", response_model=ApiResponse[List[AverageSummaryItem]])
async def grades_summary(
    group_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.grades_summary(db, current_user, group_id, subject_id))


@router.get("/participation-summary", response_model=ApiResponse[List[AverageSummaryItem]])
async def participation_summary(
    group_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.participation_summary(db, current_user, group_id, subject_id))

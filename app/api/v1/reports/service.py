from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.enums import ResourceType
from app.core.exceptions import ValidationError
from app.core.models import AttendanceEntry, AttendanceRecord, Grade, ParticipationRecord

from . import aggregator
from .schemas import AttendanceSummaryItem, AverageSummaryItem


def _require_group(group_id: Optional[UUID]) -> UUID:
    if group_id is None:
        raise ValidationError("group_id is required")
    return group_id


async def attendance_summary(
    db: AsyncSession,
    current_user: CurrentUser,
    group_id: Optional[UUID],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[AttendanceSummaryItem]:
    scope = await authorize(db, current_user, ResourceType.ATTENDANCE, group_id=_require_group(group_id))
    stmt = select(AttendanceRecord).options(
        selectinload(AttendanceRecord.entries).selectinload(AttendanceEntry.student)
    )
    stmt = scope.filter_groups(stmt, AttendanceRecord.group_id)
    if date_from is not None:
        stmt = stmt.where(AttendanceRecord.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(AttendanceRecord.date <= date_to)
    result = await db.execute(stmt.order_by(AttendanceRecord.date))
    return aggregator.summarize_attendance(result.scalars().all())


async def grades_summary(
    db: AsyncSession,
    current_user: CurrentUser,
    group_id: Optional[UUID],
    subject_id: Optional[UUID] = None,
) -> List[AverageSummaryItem]:
    scope = await authorize(db, current_user, ResourceType.GRADE, group_id=_require_group(group_id))
    stmt = scope.filter_groups(select(Grade).options(selectinload(Grade.student)), Grade.group_id)
    if subject_id is not None:
        stmt = stmt.where(Grade.subject_id == subject_id)
    result = await db.execute(stmt)
    return aggregator.summarize_grades(result.scalars().all())


async def participation_summary(
    db: AsyncSession,
    current_user: CurrentUser,
    group_id: Optional[UUID],
    subject_id: Optional[UUID] = None,
) -> List[AverageSummaryItem]:
    scope = await authorize(db, current_user, ResourceType.PARTICIPATION, group_id=_require_group(group_id))
    stmt = scope.filter_groups(
        select(ParticipationRecord).options(selectinload(ParticipationRecord.student)),
        ParticipationRecord.group_id,
    )
    if subject_id is not None:
        stmt = stmt.where(ParticipationRecord.subject_id == subject_id)
    result = await db.execute(stmt)
    return aggregator.summarize_participation(result.scalars().all())

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.audit_service import AuditRecorder
from app.core.enums import ResourceType
from app.core.exceptions import ConflictError, ValidationError
from app.core.models import AttendanceEntry, AttendanceRecord
from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.groups import service as group_service
from app.api.v1.students import service as student_service

from .schemas import AttendanceRecordResponse, AttendanceSave, StudentAttendanceItem


def _with_entries(stmt):
    return stmt.options(
        selectinload(AttendanceRecord.group),
        selectinload(AttendanceRecord.entries).selectinload(AttendanceEntry.student),
    )


async def _find_record(db: AsyncSession, group_id: UUID, day: date) -> Optional[AttendanceRecord]:
    result = await db.execute(
        _with_entries(select(AttendanceRecord))
        .where(AttendanceRecord.group_id == group_id, AttendanceRecord.date == day)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _apply_entries(record: AttendanceRecord, payload: AttendanceSave) -> None:
    """Replace the roll in place: update kept students, drop missing ones, add new ones."""
    incoming = {e.student_id: e for e in payload.entries}
    for entry in list(record.entries):
        if entry.student_id not in incoming:
            record.entries.remove(entry)
    existing = {e.student_id: e for e in record.entries}
    for student_id, item in incoming.items():
        entry = existing.get(student_id)
        if entry is None:
            record.entries.append(
                AttendanceEntry(student_id=student_id, status=item.status.value, remarks=item.remarks)
            )
        else:
            entry.status = item.status.value
            entry.remarks = item.remarks


async def _upsert(db: AsyncSession, current_user: CurrentUser, payload: AttendanceSave) -> AttendanceRecord:
    record = await _find_record(db, payload.group_id, payload.date)
    if record is None:
        record = AttendanceRecord(group_id=payload.group_id, date=payload.date, entries=[])
        db.add(record)
    record.recorded_by = current_user.id
    _apply_entries(record, payload)
    await db.commit()
    return record


async def save_attendance(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: AttendanceSave,
) -> AttendanceRecordResponse:
    """Upsert by (group, date). Every student must be ACTIVE-enrolled in the group."""
    await group_service.get_group_or_404(db, payload.group_id)
    await authorize(db, current_user, ResourceType.ATTENDANCE, group_id=payload.group_id)

    student_ids = [e.student_id for e in payload.entries]
    if len(set(student_ids)) != len(student_ids):
        raise ValidationError("Each student may appear only once per attendance record")
    enrolled = await enrollment_service.active_student_ids(db, payload.group_id)
    not_enrolled = [str(s) for s in student_ids if s not in enrolled]
    if not_enrolled:
        raise ValidationError(
            enrollment_service.NOT_ENROLLED_MESSAGE,
            details={"student_ids": not_enrolled, "group_id": str(payload.group_id)},
        )

    try:
        record = await _upsert(db, current_user, payload)
    except IntegrityError:
        # A concurrent save created the same (group, date); take the update path once
        await db.rollback()
        try:
            record = await _upsert(db, current_user, payload)
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError("Attendance for this group and date was modified concurrently") from e

    audit.record(
        "ATTENDANCE_SAVE",
        ResourceType.ATTENDANCE.value,
        record.id,
        performed_by=current_user.id,
        metadata={"group_id": payload.group_id, "date": payload.date, "entries": len(payload.entries)},
    )
    saved = await _find_record(db, payload.group_id, payload.date)
    return AttendanceRecordResponse.model_validate(saved)


async def list_attendance(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    group_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[AttendanceRecordResponse]:
    scope = await authorize(db, current_user, ResourceType.ATTENDANCE, group_id=group_id)
    if scope.is_empty:
        return []
    if date_from and date_to and date_from > date_to:
        raise ValidationError("'from' must not be after 'to'")

    stmt = _with_entries(select(AttendanceRecord))
    stmt = scope.filter_groups(stmt, AttendanceRecord.group_id)
    if date_from is not None:
        stmt = stmt.where(AttendanceRecord.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(AttendanceRecord.date <= date_to)
    result = await db.execute(stmt.order_by(AttendanceRecord.date.desc()))
    return [AttendanceRecordResponse.model_validate(r) for r in result.scalars().all()]


async def get_student_attendance(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
) -> List[StudentAttendanceItem]:
    """A student's history. TEACHER sees only days recorded for tutored groups."""
    await student_service.get_student_or_404(db, student_id)
    scope = await authorize(db, current_user, ResourceType.ATTENDANCE)
    if scope.is_empty:
        return []

    stmt = (
        select(AttendanceEntry, AttendanceRecord)
        .join(AttendanceRecord, AttendanceEntry.attendance_record_id == AttendanceRecord.id)
        .where(AttendanceEntry.student_id == student_id)
    )
    stmt = scope.filter_groups(stmt, AttendanceRecord.group_id)
    result = await db.execute(stmt.order_by(AttendanceRecord.date.desc()))
    return [
        StudentAttendanceItem(
            attendance_id=record.id,
            group_id=record.group_id,
            date=record.date,
            status=entry.status,
            remarks=entry.remarks,
        )
        for entry, record in result.all()
    ]

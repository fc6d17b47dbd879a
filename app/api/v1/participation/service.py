from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.audit_service import AuditRecorder
from app.core.enums import ResourceType
from app.core.exceptions import NotFoundError
from app.core.models import ParticipationRecord
from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.groups import service as group_service
from app.api.v1.students import service as student_service
from app.api.v1.subjects import service as subject_service

from .schemas import ParticipationCreate, ParticipationResponse


def _with_refs(stmt):
    return stmt.options(selectinload(ParticipationRecord.student), selectinload(ParticipationRecord.subject))


async def get_participation_or_404(db: AsyncSession, record_id: UUID) -> ParticipationRecord:
    result = await db.execute(
        _with_refs(select(ParticipationRecord))
        .where(ParticipationRecord.id == record_id)
        .execution_options(populate_existing=True)
    )
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError("Participation record not found")
    return record


async def create_participation(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: ParticipationCreate,
) -> ParticipationResponse:
    await group_service.get_group_or_404(db, payload.group_id)
    await authorize(db, current_user, ResourceType.PARTICIPATION, group_id=payload.group_id)
    await student_service.get_student_or_404(db, payload.student_id)
    await subject_service.get_subject_or_404(db, payload.subject_id)
    await enrollment_service.require_active_enrollment(db, payload.student_id, payload.group_id)

    record = ParticipationRecord(
        student_id=payload.student_id,
        subject_id=payload.subject_id,
        group_id=payload.group_id,
        date=payload.date or date.today(),
        score=payload.score,
        notes=payload.notes,
        recorded_by=current_user.id,
    )
    db.add(record)
    await db.commit()

    audit.record(
        "PARTICIPATION_CREATE",
        ResourceType.PARTICIPATION.value,
        record.id,
        performed_by=current_user.id,
        metadata={"student_id": record.student_id, "subject_id": record.subject_id, "score": record.score},
    )
    return ParticipationResponse.model_validate(await get_participation_or_404(db, record.id))


async def list_participation(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    student_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    group_id: Optional[UUID] = None,
) -> List[ParticipationResponse]:
    scope = await authorize(db, current_user, ResourceType.PARTICIPATION, group_id=group_id, student_id=student_id)
    if scope.is_empty:
        return []

    stmt = _with_refs(select(ParticipationRecord))
    stmt = scope.filter_groups(stmt, ParticipationRecord.group_id)
    stmt = scope.filter_students(stmt, ParticipationRecord.student_id)
    if subject_id is not None:
        stmt = stmt.where(ParticipationRecord.subject_id == subject_id)
    result = await db.execute(stmt.order_by(ParticipationRecord.date.desc()))
    return [ParticipationResponse.model_validate(r) for r in result.scalars().all()]

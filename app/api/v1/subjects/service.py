from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.models import Subject
from app.api.v1.users import service as user_service

from .schemas import SubjectCreate, SubjectResponse, SubjectUpdate


async def _fetch(db: AsyncSession, subject_id: UUID) -> Optional[Subject]:
    result = await db.execute(
        select(Subject)
        .options(selectinload(Subject.teacher))
        .where(Subject.id == subject_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_subject_or_404(db: AsyncSession, subject_id: UUID) -> Subject:
    subject = await _fetch(db, subject_id)
    if not subject:
        raise NotFoundError("Subject not found")
    return subject


async def require_active_subject(db: AsyncSession, subject_id: UUID) -> Subject:
    subject = await get_subject_or_404(db, subject_id)
    if not subject.is_active:
        raise ValidationError("Subject is inactive")
    return subject


async def _code_taken(db: AsyncSession, code: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(Subject.id).where(Subject.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Subject.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def list_subjects(
    db: AsyncSession,
    *,
    grade_level: Optional[int] = None,
    active: Optional[bool] = None,
) -> List[SubjectResponse]:
    stmt = select(Subject).options(selectinload(Subject.teacher))
    if grade_level is not None:
        stmt = stmt.where(Subject.grade_level == grade_level)
    if active is not None:
        stmt = stmt.where(Subject.is_active.is_(active))
    result = await db.execute(stmt.order_by(Subject.name))
    return [SubjectResponse.model_validate(s) for s in result.scalars().all()]


async def create_subject(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: SubjectCreate,
) -> SubjectResponse:
    code = payload.code.strip().upper()
    if await _code_taken(db, code):
        raise ConflictError(f"Subject code '{code}' already exists")
    if payload.teacher_id is not None:
        await user_service.require_active_teacher(db, payload.teacher_id, field="teacher_id")

    subject = Subject(
        name=payload.name.strip(),
        code=code,
        description=payload.description,
        grade_level=payload.grade_level,
        teacher_id=payload.teacher_id,
        is_active=True,
    )
    db.add(subject)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"Subject code '{code}' already exists") from e

    audit.record("SUBJECT_CREATE", "Subject", subject.id, performed_by=current_user.id, metadata={"code": code})
    return SubjectResponse.model_validate(await get_subject_or_404(db, subject.id))


async def update_subject(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    subject_id: UUID,
    payload: SubjectUpdate,
) -> SubjectResponse:
    subject = await get_subject_or_404(db, subject_id)
    data = payload.model_dump(exclude_unset=True)
    for field in ("name", "code", "is_active"):
        if field in data and data[field] is None:
            data.pop(field)

    if "code" in data:
        data["code"] = data["code"].strip().upper()
        if await _code_taken(db, data["code"], exclude_id=subject.id):
            raise ConflictError(f"Subject code '{data['code']}' already exists")
    if data.get("teacher_id") is not None:
        await user_service.require_active_teacher(db, data["teacher_id"], field="teacher_id")

    for field, value in data.items():
        setattr(subject, field, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Subject code already exists") from e

    audit.record("SUBJECT_UPDATE", "Subject", subject.id, performed_by=current_user.id, metadata={"fields": sorted(data)})
    return SubjectResponse.model_validate(await get_subject_or_404(db, subject.id))


async def deactivate_subject(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    subject_id: UUID,
) -> SubjectResponse:
    subject = await get_subject_or_404(db, subject_id)
    subject.is_active = False
    await db.commit()
    audit.record("SUBJECT_DEACTIVATE", "Subject", subject.id, performed_by=current_user.id)
    return SubjectResponse.model_validate(await get_subject_or_404(db, subject.id))

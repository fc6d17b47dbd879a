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
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.models import Grade
from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.groups import service as group_service
from app.api.v1.students import service as student_service
from app.api.v1.subjects import service as subject_service

from .schemas import GradeCreate, GradeResponse, GradeUpdate

DUPLICATE_MESSAGE = "A grade for this student, subject and term already exists"


def _check_score(score: float, max_score: float) -> None:
    if score < 0 or score > max_score:
        raise ValidationError(
            f"Score must be between 0 and {max_score:g}",
            details={"score": score, "max_score": max_score},
        )


def _with_refs(stmt):
    return stmt.options(selectinload(Grade.student), selectinload(Grade.subject))


async def _fetch(db: AsyncSession, grade_id: UUID) -> Optional[Grade]:
    result = await db.execute(
        _with_refs(select(Grade)).where(Grade.id == grade_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_grade_or_404(db: AsyncSession, grade_id: UUID) -> Grade:
    grade = await _fetch(db, grade_id)
    if not grade:
        raise NotFoundError("Grade not found")
    return grade


async def create_grade(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: GradeCreate,
) -> GradeResponse:
    _check_score(payload.score, payload.max_score)
    await group_service.get_group_or_404(db, payload.group_id)
    await authorize(db, current_user, ResourceType.GRADE, group_id=payload.group_id)
    await student_service.get_student_or_404(db, payload.student_id)
    await subject_service.get_subject_or_404(db, payload.subject_id)
    await enrollment_service.require_active_enrollment(db, payload.student_id, payload.group_id)

    term = payload.term.strip()
    existing = await db.execute(
        select(Grade.id).where(
            Grade.student_id == payload.student_id,
            Grade.subject_id == payload.subject_id,
            Grade.term == term,
        )
    )
    if existing.first() is not None:
        raise ConflictError(DUPLICATE_MESSAGE)

    grade = Grade(
        student_id=payload.student_id,
        group_id=payload.group_id,
        subject_id=payload.subject_id,
        term=term,
        score=payload.score,
        max_score=payload.max_score,
        comments=payload.comments,
        recorded_by=current_user.id,
    )
    db.add(grade)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE) from e

    audit.record(
        "GRADE_CREATE",
        ResourceType.GRADE.value,
        grade.id,
        performed_by=current_user.id,
        metadata={"student_id": grade.student_id, "subject_id": grade.subject_id, "term": term, "score": grade.score},
    )
    return GradeResponse.model_validate(await get_grade_or_404(db, grade.id))


async def list_grades(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    student_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    group_id: Optional[UUID] = None,
    term: Optional[str] = None,
) -> List[GradeResponse]:
    scope = await authorize(db, current_user, ResourceType.GRADE, group_id=group_id, student_id=student_id)
    if scope.is_empty:
        return []

    stmt = _with_refs(select(Grade))
    stmt = scope.filter_groups(stmt, Grade.group_id)
    stmt = scope.filter_students(stmt, Grade.student_id)
    if subject_id is not None:
        stmt = stmt.where(Grade.subject_id == subject_id)
    if term:
        stmt = stmt.where(Grade.term == term.strip())
    result = await db.execute(stmt.order_by(Grade.created_at.desc()))
    return [GradeResponse.model_validate(g) for g in result.scalars().all()]


async def update_grade(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    grade_id: UUID,
    payload: GradeUpdate,
) -> GradeResponse:
    grade = await get_grade_or_404(db, grade_id)
    await authorize(db, current_user, ResourceType.GRADE, group_id=grade.group_id)

    data = payload.model_dump(exclude_unset=True)
    score = data.get("score") if data.get("score") is not None else grade.score
    max_score = data.get("max_score") if data.get("max_score") is not None else grade.max_score
    _check_score(score, max_score)

    previous = grade.score
    grade.score = score
    grade.max_score = max_score
    if "comments" in data:
        grade.comments = data["comments"]
    await db.commit()

    audit.record(
        "GRADE_UPDATE",
        ResourceType.GRADE.value,
        grade.id,
        performed_by=current_user.id,
        metadata={"previous_score": previous, "score": score, "max_score": max_score},
    )
    return GradeResponse.model_validate(await get_grade_or_404(db, grade.id))

"""
Enrollments, plus the membership checks every group-anchored write relies on:
a record naming a (student, group) pair needs an ACTIVE enrollment for that
exact pair at write time.
"""

from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.audit_service import AuditRecorder
from app.core.enums import EnrollmentStatus, ResourceType
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.models import Enrollment
from app.api.v1.groups import service as group_service
from app.api.v1.students import service as student_service

from .schemas import EnrollmentCreate, EnrollmentResponse, EnrollmentUpdate

NOT_ENROLLED_MESSAGE = "Student is not actively enrolled in this group"


async def get_active_enrollment(db: AsyncSession, student_id: UUID, group_id: UUID) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.group_id == group_id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    )
    return result.scalar_one_or_none()


async def require_active_enrollment(db: AsyncSession, student_id: UUID, group_id: UUID) -> Enrollment:
    enrollment = await get_active_enrollment(db, student_id, group_id)
    if not enrollment:
        raise ValidationError(
            NOT_ENROLLED_MESSAGE,
            details={"student_id": str(student_id), "group_id": str(group_id)},
        )
    return enrollment


async def active_student_ids(db: AsyncSession, group_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(Enrollment.student_id).where(
            Enrollment.group_id == group_id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    )
    return set(result.scalars().all())


async def _fetch(db: AsyncSession, enrollment_id: UUID) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .options(selectinload(Enrollment.student), selectinload(Enrollment.group))
        .where(Enrollment.id == enrollment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_enrollment_or_404(db: AsyncSession, enrollment_id: UUID) -> Enrollment:
    enrollment = await _fetch(db, enrollment_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    return enrollment


async def list_enrollments(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    group_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
    status: Optional[EnrollmentStatus] = None,
) -> List[EnrollmentResponse]:
    scope = await authorize(
        db, current_user, ResourceType.ENROLLMENT, group_id=group_id, student_id=student_id
    )
    if scope.is_empty:
        return []

    stmt = select(Enrollment).options(selectinload(Enrollment.student), selectinload(Enrollment.group))
    stmt = scope.filter_groups(stmt, Enrollment.group_id)
    stmt = scope.filter_students(stmt, Enrollment.student_id)
    if status is not None:
        stmt = stmt.where(Enrollment.status == status.value)
    result = await db.execute(stmt.order_by(Enrollment.enrolled_at.desc()))
    return [EnrollmentResponse.model_validate(e) for e in result.scalars().all()]


async def create_enrollment(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: EnrollmentCreate,
) -> EnrollmentResponse:
    await student_service.require_active_student(db, payload.student_id)
    await group_service.require_active_group(db, payload.group_id)
    await authorize(
        db, current_user, ResourceType.ENROLLMENT, group_id=payload.group_id
    )

    existing = await db.execute(
        select(Enrollment.id).where(
            Enrollment.student_id == payload.student_id,
            Enrollment.group_id == payload.group_id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("Student is already enrolled in this group")

    enrollment = Enrollment(
        student_id=payload.student_id,
        group_id=payload.group_id,
        status=payload.status.value,
        observations=payload.observations,
        enrolled_by=current_user.id,
    )
    db.add(enrollment)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Student is already enrolled in this group") from e

    audit.record(
        "ENROLLMENT_CREATE",
        ResourceType.ENROLLMENT.value,
        enrollment.id,
        performed_by=current_user.id,
        metadata={"student_id": payload.student_id, "group_id": payload.group_id},
    )
    return EnrollmentResponse.model_validate(await get_enrollment_or_404(db, enrollment.id))


async def update_enrollment(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    enrollment_id: UUID,
    payload: EnrollmentUpdate,
) -> EnrollmentResponse:
    enrollment = await get_enrollment_or_404(db, enrollment_id)
    await authorize(db, current_user, ResourceType.ENROLLMENT, group_id=enrollment.group_id)

    data = payload.model_dump(exclude_unset=True)
    if data.get("status") is not None:
        enrollment.status = data["status"].value
    if "observations" in data:
        enrollment.observations = data["observations"]
    await db.commit()

    audit.record(
        "ENROLLMENT_UPDATE",
        ResourceType.ENROLLMENT.value,
        enrollment.id,
        performed_by=current_user.id,
        metadata={"fields": sorted(data)},
    )
    return EnrollmentResponse.model_validate(await get_enrollment_or_404(db, enrollment.id))


async def delete_enrollment(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    enrollment_id: UUID,
) -> None:
    """Hard delete: an enrollment is a membership edge, not a historical record."""
    enrollment = await get_enrollment_or_404(db, enrollment_id)
    await authorize(db, current_user, ResourceType.ENROLLMENT, group_id=enrollment.group_id)
    metadata = {"student_id": enrollment.student_id, "group_id": enrollment.group_id}
    await db.delete(enrollment)
    await db.commit()
    audit.record(
        "ENROLLMENT_DELETE",
        ResourceType.ENROLLMENT.value,
        enrollment_id,
        performed_by=current_user.id,
        metadata=metadata,
    )

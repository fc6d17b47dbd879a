import secrets
import time
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize, ensure_student_in_scope
from app.core.audit_service import AuditRecorder
from app.core.enums import EnrollmentStatus, ResourceType, StudentStatus
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.core.models import Enrollment, Student

from .schemas import StudentCreate, StudentResponse, StudentUpdate

CODE_PREFIX = "STU-"
_CODE_ATTEMPTS = 5


def generate_student_code() -> str:
    """STU- + last 4 digits of the epoch-millis clock + 3 random digits."""
    stamp = str(int(time.time() * 1000))[-4:]
    return f"{CODE_PREFIX}{stamp}{secrets.randbelow(1000):03d}"


async def _code_taken(db: AsyncSession, code: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(Student.id).where(Student.student_code == code)
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def _unique_code(db: AsyncSession) -> str:
    for _ in range(_CODE_ATTEMPTS):
        code = generate_student_code()
        if not await _code_taken(db, code):
            return code
    raise InternalError("Could not generate a unique student code")


async def get_student_or_404(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    return student


async def require_active_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await get_student_or_404(db, student_id)
    if student.status != StudentStatus.ACTIVE.value:
        raise ValidationError("Student is not active")
    return student


async def list_students(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    status: Optional[StudentStatus] = None,
    search: Optional[str] = None,
    group_id: Optional[UUID] = None,
) -> List[StudentResponse]:
    scope = await authorize(db, current_user, ResourceType.STUDENT, group_id=group_id)
    if scope.is_empty:
        return []

    stmt = select(Student)
    if group_id is not None:
        stmt = stmt.join(Enrollment, Enrollment.student_id == Student.id).where(
            Enrollment.group_id == group_id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    stmt = scope.filter_students(stmt, Student.id)
    if status is not None:
        stmt = stmt.where(Student.status == status.value)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Student.first_name.ilike(pattern),
                Student.last_name.ilike(pattern),
                Student.student_code.ilike(pattern),
            )
        )
    result = await db.execute(stmt.order_by(Student.last_name, Student.first_name))
    return [StudentResponse.model_validate(s) for s in result.scalars().unique().all()]


async def get_student(db: AsyncSession, current_user: CurrentUser, student_id: UUID) -> StudentResponse:
    student = await get_student_or_404(db, student_id)
    await ensure_student_in_scope(db, current_user, student.id)
    return StudentResponse.model_validate(student)


async def create_student(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: StudentCreate,
) -> StudentResponse:
    code = (payload.student_code or "").strip().upper()
    if code:
        if await _code_taken(db, code):
            raise ConflictError("Student code already exists")
    else:
        code = await _unique_code(db)

    data = payload.model_dump(exclude={"student_code"})
    student = Student(
        **{k: (v.value if hasattr(v, "value") else v) for k, v in data.items()},
        student_code=code,
    )
    student.first_name = student.first_name.strip()
    student.last_name = student.last_name.strip()
    db.add(student)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Student code already exists") from e
    await db.refresh(student)

    audit.record(
        "STUDENT_CREATE",
        ResourceType.STUDENT.value,
        student.id,
        performed_by=current_user.id,
        metadata={"student_code": student.student_code},
    )
    return StudentResponse.model_validate(student)


async def update_student(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    student = await get_student_or_404(db, student_id)
    data = payload.model_dump(exclude_unset=True)
    for field in ("first_name", "last_name", "student_code", "status"):
        if field in data and data[field] is None:
            data.pop(field)

    if "student_code" in data:
        data["student_code"] = data["student_code"].strip().upper()
        if await _code_taken(db, data["student_code"], exclude_id=student.id):
            raise ConflictError("Student code already exists")

    for field, value in data.items():
        setattr(student, field, value.value if hasattr(value, "value") else value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Student code already exists") from e
    await db.refresh(student)

    audit.record(
        "STUDENT_UPDATE",
        ResourceType.STUDENT.value,
        student.id,
        performed_by=current_user.id,
        metadata={"fields": sorted(data)},
    )
    return StudentResponse.model_validate(student)


async def deactivate_student(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    student_id: UUID,
) -> StudentResponse:
    student = await get_student_or_404(db, student_id)
    student.status = StudentStatus.INACTIVE.value
    await db.commit()
    await db.refresh(student)
    audit.record("STUDENT_DEACTIVATE", ResourceType.STUDENT.value, student.id, performed_by=current_user.id)
    return StudentResponse.model_validate(student)

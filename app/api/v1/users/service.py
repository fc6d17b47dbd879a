from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import CurrentUser, UserResponse, UserUpdate
from app.auth.security import hash_password
from app.core.audit_service import AuditRecorder
from app.core.enums import UserRole
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Group, Subject


async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def require_active_teacher(db: AsyncSession, user_id: UUID, field: str = "tutor_id") -> User:
    """Referenced tutor/teacher must be an active TEACHER account."""
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.role != UserRole.TEACHER.value or not user.is_active:
        raise ValidationError(f"{field} must reference an active TEACHER", details={"field": field})
    return user


async def _teaching_assignments(db: AsyncSession, user_id: UUID) -> bool:
    """True while the user is the tutor of a group or the teacher of a subject."""
    group = await db.execute(select(Group.id).where(Group.tutor_id == user_id).limit(1))
    if group.first() is not None:
        return True
    subject = await db.execute(select(Subject.id).where(Subject.teacher_id == user_id).limit(1))
    return subject.first() is not None


async def list_users(
    db: AsyncSession,
    *,
    role: Optional[UserRole] = None,
    active: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[UserResponse]:
    stmt = select(User)
    if role is not None:
        stmt = stmt.where(User.role == role.value)
    if active is not None:
        stmt = stmt.where(User.is_active.is_(active))
    if search:
        stmt = stmt.where(User.full_name.ilike(f"%{search.strip()}%"))
    result = await db.execute(stmt.order_by(User.full_name))
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


async def update_user(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    user_id: UUID,
    payload: UserUpdate,
) -> UserResponse:
    user = await get_user_or_404(db, user_id)
    data = payload.model_dump(exclude_unset=True)
    changed = sorted(data)

    if data.get("is_active") is False and user.id == current_user.id:
        raise ValidationError("You cannot deactivate your own account")
    new_role = data.get("role")
    if (
        user.role == UserRole.TEACHER.value
        and new_role is not None
        and new_role != UserRole.TEACHER
        and await _teaching_assignments(db, user.id)
    ):
        raise ValidationError(
            "User still tutors a group or teaches a subject; reassign them before changing the role",
            details={"field": "role"},
        )

    password = data.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    if "full_name" in data and data["full_name"] is not None:
        user.full_name = data["full_name"].strip()
    if data.get("role") is not None:
        user.role = data["role"].value
    if data.get("is_active") is not None:
        user.is_active = data["is_active"]

    await db.commit()
    await db.refresh(user)
    # Field names only; the hash never reaches the audit trail
    audit.record("USER_UPDATE", "User", user.id, performed_by=current_user.id, metadata={"fields": changed})
    return UserResponse.model_validate(user)


async def deactivate_user(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    user_id: UUID,
) -> UserResponse:
    user = await get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise ValidationError("You cannot deactivate your own account")
    user.is_active = False
    await db.commit()
    await db.refresh(user)
    audit.record("USER_DEACTIVATE", "User", user.id, performed_by=current_user.id)
    return UserResponse.model_validate(user)

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize, ensure_group_in_scope
from app.core.audit_service import AuditRecorder
from app.core.enums import ResourceType
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.models import Group
from app.api.v1.users import service as user_service

from .schemas import GroupCreate, GroupResponse, GroupUpdate


def _default_name(grade_level: int, section: Optional[str]) -> str:
    return f"{grade_level}{section or ''}"


async def _fetch(db: AsyncSession, group_id: UUID) -> Optional[Group]:
    result = await db.execute(
        select(Group)
        .options(selectinload(Group.tutor))
        .where(Group.id == group_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_group_or_404(db: AsyncSession, group_id: UUID) -> Group:
    group = await _fetch(db, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group


async def require_active_group(db: AsyncSession, group_id: UUID) -> Group:
    group = await get_group_or_404(db, group_id)
    if not group.is_active:
        raise ValidationError("Group is inactive")
    return group


async def _find_duplicate(
    db: AsyncSession,
    grade_level: int,
    section: Optional[str],
    school_year: str,
    exclude_id: Optional[UUID] = None,
) -> Optional[Group]:
    stmt = select(Group).where(
        Group.grade_level == grade_level,
        Group.school_year == school_year,
        Group.section.is_(None) if section is None else Group.section == section,
    )
    if exclude_id is not None:
        stmt = stmt.where(Group.id != exclude_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_groups(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    grade_level: Optional[int] = None,
    school_year: Optional[str] = None,
    active: Optional[bool] = None,
) -> List[GroupResponse]:
    scope = await authorize(db, current_user, ResourceType.GROUP)
    if scope.is_empty:
        return []

    stmt = select(Group).options(selectinload(Group.tutor))
    stmt = scope.filter_groups(stmt, Group.id)
    if grade_level is not None:
        stmt = stmt.where(Group.grade_level == grade_level)
    if school_year:
        stmt = stmt.where(Group.school_year == school_year)
    if active is not None:
        stmt = stmt.where(Group.is_active.is_(active))
    result = await db.execute(stmt.order_by(Group.grade_level, Group.section))
    return [GroupResponse.model_validate(g) for g in result.scalars().all()]


async def get_group(db: AsyncSession, current_user: CurrentUser, group_id: UUID) -> GroupResponse:
    group = await get_group_or_404(db, group_id)
    await ensure_group_in_scope(db, current_user, ResourceType.GROUP, group.id)
    return GroupResponse.model_validate(group)


async def create_group(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: GroupCreate,
) -> GroupResponse:
    section = payload.section.strip().upper() if payload.section and payload.section.strip() else None
    school_year = payload.school_year.strip()
    if payload.tutor_id is not None:
        await user_service.require_active_teacher(db, payload.tutor_id)
    if await _find_duplicate(db, payload.grade_level, section, school_year):
        raise ConflictError("A group with this grade level, section and school year already exists")

    group = Group(
        name=(payload.name or "").strip() or _default_name(payload.grade_level, section),
        grade_level=payload.grade_level,
        section=section,
        school_year=school_year,
        tutor_id=payload.tutor_id,
        description=payload.description,
        is_active=True,
    )
    db.add(group)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("A group with this grade level, section and school year already exists") from e

    audit.record(
        "GROUP_CREATE",
        ResourceType.GROUP.value,
        group.id,
        performed_by=current_user.id,
        metadata={"name": group.name, "tutor_id": group.tutor_id},
    )
    return GroupResponse.model_validate(await get_group_or_404(db, group.id))


async def update_group(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    group_id: UUID,
    payload: GroupUpdate,
) -> GroupResponse:
    group = await get_group_or_404(db, group_id)
    data = payload.model_dump(exclude_unset=True)

    if data.get("tutor_id") is not None:
        await user_service.require_active_teacher(db, data["tutor_id"])
    if "section" in data:
        section = data["section"]
        data["section"] = section.strip().upper() if section and section.strip() else None
    if data.get("school_year"):
        data["school_year"] = data["school_year"].strip()
    for field in ("grade_level", "school_year", "is_active", "name"):
        if field in data and data[field] is None:
            data.pop(field)

    grade_level = data.get("grade_level", group.grade_level)
    section = data.get("section", group.section)
    school_year = data.get("school_year", group.school_year)
    if await _find_duplicate(db, grade_level, section, school_year, exclude_id=group.id):
        raise ConflictError("A group with this grade level, section and school year already exists")

    for field, value in data.items():
        setattr(group, field, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("A group with this grade level, section and school year already exists") from e

    audit.record(
        "GROUP_UPDATE",
        ResourceType.GROUP.value,
        group.id,
        performed_by=current_user.id,
        metadata={"fields": sorted(data)},
    )
    return GroupResponse.model_validate(await get_group_or_404(db, group.id))


async def deactivate_group(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    group_id: UUID,
) -> GroupResponse:
    group = await get_group_or_404(db, group_id)
    group.is_active = False
    await db.commit()
    audit.record("GROUP_DEACTIVATE", ResourceType.GROUP.value, group.id, performed_by=current_user.id)
    return GroupResponse.model_validate(await get_group_or_404(db, group.id))

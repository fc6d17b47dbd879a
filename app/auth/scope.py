"""
Scope resolution: which groups and students a principal may read or write.

ADMIN and DIRECTION are unrestricted. A TEACHER is confined to the groups they
tutor (G) and to the students holding an ACTIVE enrollment in one of those
groups (S). An explicit target outside that scope is rejected with
ScopeViolation; an implicit listing is narrowed instead.

`resolve_scope` is pure and works on a `ScopeContext` loaded once per request
by `load_scope_context`.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.enums import EnrollmentStatus, MANAGEMENT_ROLES, ResourceType, UserRole
from app.core.exceptions import AuthenticationError, AuthorizationError, ScopeViolation
from app.core.models import Enrollment, Group


# Resources anchored directly on a group (TaskSubmission via its task's group)
GROUP_ANCHORED = frozenset(
    {
        ResourceType.GROUP,
        ResourceType.TASK,
        ResourceType.TASK_SUBMISSION,
        ResourceType.ATTENDANCE,
        ResourceType.GRADE,
        ResourceType.PARTICIPATION,
    }
)


@dataclass(frozen=True)
class ScopeFilter:
    """The caller's requested target. None means not requested."""

    group_id: Optional[UUID] = None
    student_id: Optional[UUID] = None


@dataclass(frozen=True)
class ScopeContext:
    unrestricted: bool
    group_ids: FrozenSet[UUID] = frozenset()
    student_ids: FrozenSet[UUID] = frozenset()


@dataclass(frozen=True)
class EffectiveScope:
    """Narrowed filter. A None set means no restriction on that axis."""

    requested: ScopeFilter
    group_ids: Optional[FrozenSet[UUID]] = None
    student_ids: Optional[FrozenSet[UUID]] = None

    @property
    def is_empty(self) -> bool:
        return self.group_ids == frozenset() or self.student_ids == frozenset()

    def filter_groups(self, stmt, column):
        if self.group_ids is None:
            return stmt
        return stmt.where(column.in_(self.group_ids))

    def filter_students(self, stmt, column):
        if self.student_ids is None:
            return stmt
        return stmt.where(column.in_(self.student_ids))


UNRESTRICTED = ScopeContext(unrestricted=True)


async def load_scope_context(db: AsyncSession, principal: CurrentUser) -> ScopeContext:
    """Load G and S for a TEACHER. Management roles need no storage access."""
    if principal.role in MANAGEMENT_ROLES:
        return UNRESTRICTED
    if principal.role != UserRole.TEACHER:
        return ScopeContext(unrestricted=False)

    result = await db.execute(select(Group.id).where(Group.tutor_id == principal.id))
    group_ids = frozenset(result.scalars().all())
    if not group_ids:
        return ScopeContext(unrestricted=False)

    result = await db.execute(
        select(Enrollment.student_id)
        .where(
            Enrollment.group_id.in_(group_ids),
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .distinct()
    )
    student_ids = frozenset(result.scalars().all())
    return ScopeContext(unrestricted=False, group_ids=group_ids, student_ids=student_ids)


def _single(value: Optional[UUID]) -> Optional[FrozenSet[UUID]]:
    return frozenset({value}) if value is not None else None


def resolve_scope(
    principal: CurrentUser,
    resource_type: ResourceType,
    requested: Optional[ScopeFilter],
    context: ScopeContext,
) -> EffectiveScope:
    """Return the effective filter, or raise ScopeViolation for an out-of-scope target."""
    requested = requested or ScopeFilter()
    if not principal.is_active:
        raise AuthenticationError()

    if principal.role in MANAGEMENT_ROLES or context.unrestricted:
        return EffectiveScope(
            requested=requested,
            group_ids=_single(requested.group_id),
            student_ids=_single(requested.student_id),
        )
    if principal.role != UserRole.TEACHER:
        raise AuthorizationError()

    tutored = context.group_ids
    reachable = context.student_ids

    if requested.group_id is not None and requested.group_id not in tutored:
        raise ScopeViolation("Group is outside your scope")

    if resource_type in GROUP_ANCHORED:
        return EffectiveScope(
            requested=requested,
            group_ids=_single(requested.group_id) or tutored,
            student_ids=_single(requested.student_id),
        )

    if requested.student_id is not None and requested.student_id not in reachable:
        raise ScopeViolation("Student is outside your scope")

    if resource_type == ResourceType.STUDENT:
        return EffectiveScope(
            requested=requested,
            group_ids=_single(requested.group_id),
            student_ids=_single(requested.student_id) or reachable,
        )
    if resource_type == ResourceType.ENROLLMENT:
        return EffectiveScope(
            requested=requested,
            group_ids=_single(requested.group_id) or tutored,
            student_ids=_single(requested.student_id),
        )
    raise AuthorizationError()


async def authorize(
    db: AsyncSession,
    principal: CurrentUser,
    resource_type: ResourceType,
    *,
    group_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
) -> EffectiveScope:
    """Load the principal's context and resolve in one step."""
    context = await load_scope_context(db, principal)
    return resolve_scope(principal, resource_type, ScopeFilter(group_id, student_id), context)


async def ensure_group_in_scope(
    db: AsyncSession,
    principal: CurrentUser,
    resource_type: ResourceType,
    group_id: UUID,
) -> None:
    await authorize(db, principal, resource_type, group_id=group_id)


async def ensure_student_in_scope(db: AsyncSession, principal: CurrentUser, student_id: UUID) -> None:
    await authorize(db, principal, ResourceType.STUDENT, student_id=student_id)

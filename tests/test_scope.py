from uuid import uuid4

import pytest

from app.auth.schemas import CurrentUser
from app.auth.scope import ScopeContext, ScopeFilter, UNRESTRICTED, load_scope_context, resolve_scope
from app.core.enums import ResourceType, UserRole
from app.core.exceptions import AuthenticationError, ScopeViolation
from app.core.models import Enrollment, Group, Student


def _principal(role: UserRole, active: bool = True) -> CurrentUser:
    return CurrentUser(id=uuid4(), role=role, email="p@school.edu", full_name="P", is_active=active)


G1, G2, OTHER_GROUP = uuid4(), uuid4(), uuid4()
S1, OUTSIDER = uuid4(), uuid4()
TEACHER_CONTEXT = ScopeContext(unrestricted=False, group_ids=frozenset({G1, G2}), student_ids=frozenset({S1}))
EMPTY_CONTEXT = ScopeContext(unrestricted=False)


@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.DIRECTION])
def test_management_roles_pass_requested_filter_through(role: UserRole) -> None:
    requested = ScopeFilter(group_id=OTHER_GROUP, student_id=OUTSIDER)
    scope = resolve_scope(_principal(role), ResourceType.GRADE, requested, UNRESTRICTED)
    assert scope.requested == requested
    assert scope.group_ids == frozenset({OTHER_GROUP})
    assert scope.student_ids == frozenset({OUTSIDER})


def test_management_listing_is_unrestricted() -> None:
    scope = resolve_scope(_principal(UserRole.ADMIN), ResourceType.GROUP, None, UNRESTRICTED)
    assert scope.group_ids is None
    assert scope.student_ids is None
    assert not scope.is_empty


@pytest.mark.parametrize(
    "resource_type",
    [
        ResourceType.GROUP,
        ResourceType.TASK,
        ResourceType.TASK_SUBMISSION,
        ResourceType.ATTENDANCE,
        ResourceType.GRADE,
        ResourceType.PARTICIPATION,
        ResourceType.STUDENT,
        ResourceType.ENROLLMENT,
    ],
)
def test_teacher_explicit_group_outside_scope_is_rejected(resource_type: ResourceType) -> None:
    with pytest.raises(ScopeViolation):
        resolve_scope(_principal(UserRole.TEACHER), resource_type, ScopeFilter(group_id=OTHER_GROUP), TEACHER_CONTEXT)


def test_teacher_implicit_listing_is_narrowed_to_tutored_groups() -> None:
    scope = resolve_scope(_principal(UserRole.TEACHER), ResourceType.TASK, ScopeFilter(), TEACHER_CONTEXT)
    assert scope.group_ids == frozenset({G1, G2})


def test_teacher_explicit_group_in_scope_narrows_to_it() -> None:
    scope = resolve_scope(_principal(UserRole.TEACHER), ResourceType.ATTENDANCE, ScopeFilter(group_id=G2), TEACHER_CONTEXT)
    assert scope.group_ids == frozenset({G2})


def test_teacher_students_limited_to_active_enrollments() -> None:
    teacher = _principal(UserRole.TEACHER)
    scope = resolve_scope(teacher, ResourceType.STUDENT, ScopeFilter(), TEACHER_CONTEXT)
    assert scope.student_ids == frozenset({S1})

    assert resolve_scope(teacher, ResourceType.STUDENT, ScopeFilter(student_id=S1), TEACHER_CONTEXT).student_ids == frozenset({S1})
    with pytest.raises(ScopeViolation):
        resolve_scope(teacher, ResourceType.STUDENT, ScopeFilter(student_id=OUTSIDER), TEACHER_CONTEXT)


def test_teacher_enrollments_reject_outside_student() -> None:
    teacher = _principal(UserRole.TEACHER)
    scope = resolve_scope(teacher, ResourceType.ENROLLMENT, ScopeFilter(), TEACHER_CONTEXT)
    assert scope.group_ids == frozenset({G1, G2})
    with pytest.raises(ScopeViolation):
        resolve_scope(teacher, ResourceType.ENROLLMENT, ScopeFilter(student_id=OUTSIDER), TEACHER_CONTEXT)


def test_teacher_without_groups_gets_empty_listings_and_rejected_targets() -> None:
    teacher = _principal(UserRole.TEACHER)
    for resource_type in (ResourceType.GROUP, ResourceType.STUDENT, ResourceType.GRADE):
        assert resolve_scope(teacher, resource_type, ScopeFilter(), EMPTY_CONTEXT).is_empty
    with pytest.raises(ScopeViolation):
        resolve_scope(teacher, ResourceType.GROUP, ScopeFilter(group_id=G1), EMPTY_CONTEXT)
    with pytest.raises(ScopeViolation):
        resolve_scope(teacher, ResourceType.STUDENT, ScopeFilter(student_id=S1), EMPTY_CONTEXT)


def test_inactive_principal_is_unusable() -> None:
    with pytest.raises(AuthenticationError):
        resolve_scope(_principal(UserRole.ADMIN, active=False), ResourceType.GROUP, None, UNRESTRICTED)


@pytest.mark.asyncio
async def test_load_scope_context_follows_tutorship_and_active_enrollments(db_session, make_user) -> None:
    teacher = await make_user(UserRole.TEACHER)
    tutored = Group(name="1A", grade_level=1, section="A", school_year="2024-2025", tutor_id=teacher.id)
    foreign = Group(name="1B", grade_level=1, section="B", school_year="2024-2025")
    active = Student(first_name="Ana", last_name="Diaz", student_code="STU-0000001")
    withdrawn = Student(first_name="Beto", last_name="Diaz", student_code="STU-0000002")
    elsewhere = Student(first_name="Cris", last_name="Diaz", student_code="STU-0000003")
    db_session.add_all([tutored, foreign, active, withdrawn, elsewhere])
    await db_session.flush()
    db_session.add_all(
        [
            Enrollment(student_id=active.id, group_id=tutored.id, status="ACTIVE"),
            Enrollment(student_id=withdrawn.id, group_id=tutored.id, status="WITHDRAWN"),
            Enrollment(student_id=elsewhere.id, group_id=foreign.id, status="ACTIVE"),
        ]
    )
    await db_session.commit()

    principal = CurrentUser(id=teacher.id, role=UserRole.TEACHER, email=teacher.email, full_name=teacher.full_name)
    context = await load_scope_context(db_session, principal)
    assert context.unrestricted is False
    assert context.group_ids == frozenset({tutored.id})
    assert context.student_ids == frozenset({active.id})

    admin = _principal(UserRole.ADMIN)
    assert (await load_scope_context(db_session, admin)).unrestricted is True

from typing import Dict, FrozenSet, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.audit_service import AuditRecorder
from app.core.enums import ResourceType, SubmissionStatus, TaskStatus
from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.core.models import Student, Task, TaskSubmission
from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.tasks import service as task_service

from .schemas import SubmissionCreate, SubmissionResponse, SubmissionUpdate

# Allowed status targets per current status. Re-grading stays in GRADED.
TRANSITIONS: Dict[SubmissionStatus, FrozenSet[SubmissionStatus]] = {
    SubmissionStatus.SUBMITTED: frozenset({SubmissionStatus.GRADED, SubmissionStatus.MISSING}),
    SubmissionStatus.GRADED: frozenset({SubmissionStatus.GRADED, SubmissionStatus.MISSING}),
    SubmissionStatus.MISSING: frozenset({SubmissionStatus.MISSING}),
}


def next_status(
    current: SubmissionStatus,
    requested: Optional[SubmissionStatus],
    score_given: bool,
) -> SubmissionStatus:
    """Resolve the status after an update, or raise ValidationError."""
    if current == SubmissionStatus.MISSING and (score_given or requested not in (None, SubmissionStatus.MISSING)):
        raise ValidationError("Submission is marked MISSING and can no longer be graded")
    if score_given and requested == SubmissionStatus.MISSING:
        raise ValidationError("A submission marked MISSING cannot carry a score")
    if requested is None:
        return SubmissionStatus.GRADED if score_given else current
    if requested not in TRANSITIONS[current]:
        raise ValidationError(f"Cannot change submission status from {current.value} to {requested.value}")
    return requested


def _with_refs(stmt):
    return stmt.options(selectinload(TaskSubmission.task), selectinload(TaskSubmission.student))


async def _fetch(db: AsyncSession, submission_id: UUID) -> Optional[TaskSubmission]:
    result = await db.execute(
        _with_refs(select(TaskSubmission))
        .where(TaskSubmission.id == submission_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_submission_or_404(db: AsyncSession, submission_id: UUID) -> TaskSubmission:
    submission = await _fetch(db, submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


async def submit(
    db: AsyncSession,
    audit: AuditRecorder,
    payload: SubmissionCreate,
) -> SubmissionResponse:
    """Public endpoint: no principal, the student code is the credential."""
    student = await db.get(Student, payload.student_id)
    if not student or student.student_code != payload.student_code.strip().upper():
        raise AuthenticationError("Invalid student credentials")

    task = await db.get(Task, payload.task_id)
    if not task:
        raise NotFoundError("Task not found")
    if task.status != TaskStatus.ASSIGNED.value:
        raise ValidationError("Task is closed for submissions")
    if not await enrollment_service.get_active_enrollment(db, student.id, task.group_id):
        raise AuthorizationError(enrollment_service.NOT_ENROLLED_MESSAGE)

    existing = await db.execute(
        select(TaskSubmission.id).where(
            TaskSubmission.task_id == task.id,
            TaskSubmission.student_id == student.id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("This task was already submitted by the student")

    submission = TaskSubmission(
        task_id=task.id,
        student_id=student.id,
        content=payload.content,
        attachments=list(payload.attachments),
        status=SubmissionStatus.SUBMITTED.value,
    )
    db.add(submission)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("This task was already submitted by the student") from e

    audit.record(
        "TASK_SUBMISSION_CREATE",
        ResourceType.TASK_SUBMISSION.value,
        submission.id,
        metadata={"student_id": student.id, "task_id": task.id},
    )
    return SubmissionResponse.model_validate(await get_submission_or_404(db, submission.id))


async def list_submissions(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    task_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
) -> List[SubmissionResponse]:
    """Scoped through the task's group."""
    group_id = None
    if task_id is not None:
        group_id = (await task_service.get_task_or_404(db, task_id)).group_id
    scope = await authorize(db, current_user, ResourceType.TASK_SUBMISSION, group_id=group_id)
    if scope.is_empty:
        return []

    stmt = _with_refs(select(TaskSubmission)).join(Task, TaskSubmission.task_id == Task.id)
    stmt = scope.filter_groups(stmt, Task.group_id)
    if task_id is not None:
        stmt = stmt.where(TaskSubmission.task_id == task_id)
    if student_id is not None:
        stmt = stmt.where(TaskSubmission.student_id == student_id)
    result = await db.execute(stmt.order_by(TaskSubmission.submitted_at.desc()))
    return [SubmissionResponse.model_validate(s) for s in result.scalars().all()]


async def update_submission(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    submission_id: UUID,
    payload: SubmissionUpdate,
) -> SubmissionResponse:
    submission = await get_submission_or_404(db, submission_id)
    task = submission.task
    await authorize(db, current_user, ResourceType.TASK_SUBMISSION, group_id=task.group_id)

    data = payload.model_dump(exclude_unset=True)
    score = data.get("score")
    if score is not None and score > task.max_score:
        raise ValidationError(
            f"Score must be between 0 and {task.max_score:g}",
            details={"score": score, "max_score": task.max_score},
        )
    new_status = next_status(
        SubmissionStatus(submission.status),
        data.get("status"),
        score_given=score is not None,
    )

    if score is not None:
        submission.score = score
    if "feedback" in data:
        submission.feedback = data["feedback"]
    if new_status == SubmissionStatus.GRADED:
        submission.graded_by = current_user.id
    elif new_status == SubmissionStatus.MISSING:
        submission.score = None
    submission.status = new_status.value
    await db.commit()

    audit.record(
        "TASK_SUBMISSION_UPDATE",
        ResourceType.TASK_SUBMISSION.value,
        submission.id,
        performed_by=current_user.id,
        metadata={"status": new_status, "score": submission.score},
    )
    return SubmissionResponse.model_validate(await get_submission_or_404(db, submission.id))

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.schemas import CurrentUser
from app.auth.scope import authorize
from app.core.audit_service import AuditRecorder
from app.core.enums import ResourceType, TaskStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Task, TaskSubmission
from app.api.v1.groups import service as group_service
from app.api.v1.subjects import service as subject_service

from .schemas import TaskCreate, TaskResponse, TaskUpdate


def _with_refs(stmt):
    return stmt.options(selectinload(Task.group), selectinload(Task.subject))


async def _fetch(db: AsyncSession, task_id: UUID) -> Optional[Task]:
    result = await db.execute(
        _with_refs(select(Task)).where(Task.id == task_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_task_or_404(db: AsyncSession, task_id: UUID) -> Task:
    task = await _fetch(db, task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


async def list_tasks(
    db: AsyncSession,
    current_user: CurrentUser,
    *,
    group_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    status: Optional[TaskStatus] = None,
) -> List[TaskResponse]:
    scope = await authorize(db, current_user, ResourceType.TASK, group_id=group_id)
    if scope.is_empty:
        return []

    stmt = scope.filter_groups(_with_refs(select(Task)), Task.group_id)
    if subject_id is not None:
        stmt = stmt.where(Task.subject_id == subject_id)
    if status is not None:
        stmt = stmt.where(Task.status == status.value)
    result = await db.execute(stmt.order_by(Task.due_date.desc()))
    return [TaskResponse.model_validate(t) for t in result.scalars().all()]


async def get_task(db: AsyncSession, current_user: CurrentUser, task_id: UUID) -> TaskResponse:
    task = await get_task_or_404(db, task_id)
    await authorize(db, current_user, ResourceType.TASK, group_id=task.group_id)
    return TaskResponse.model_validate(task)


async def create_task(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    payload: TaskCreate,
) -> TaskResponse:
    await group_service.require_active_group(db, payload.group_id)
    await subject_service.require_active_subject(db, payload.subject_id)
    await authorize(db, current_user, ResourceType.TASK, group_id=payload.group_id)

    task = Task(
        title=payload.title.strip(),
        description=payload.description,
        group_id=payload.group_id,
        subject_id=payload.subject_id,
        due_date=payload.due_date,
        max_score=payload.max_score,
        status=TaskStatus.ASSIGNED.value,
        attachments=list(payload.attachments),
        created_by=current_user.id,
    )
    db.add(task)
    await db.commit()

    audit.record(
        "TASK_CREATE",
        ResourceType.TASK.value,
        task.id,
        performed_by=current_user.id,
        metadata={"group_id": task.group_id, "subject_id": task.subject_id},
    )
    return TaskResponse.model_validate(await get_task_or_404(db, task.id))


async def update_task(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    task_id: UUID,
    payload: TaskUpdate,
) -> TaskResponse:
    task = await get_task_or_404(db, task_id)
    await authorize(db, current_user, ResourceType.TASK, group_id=task.group_id)

    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
    if "title" in data:
        data["title"] = data["title"].strip()
    if "max_score" in data:
        highest = await db.scalar(
            select(func.max(TaskSubmission.score)).where(TaskSubmission.task_id == task.id)
        )
        if highest is not None and data["max_score"] < highest:
            raise ValidationError(
                "max_score cannot be lower than a score already given",
                details={"max_score": data["max_score"], "highest_score": highest},
            )
    if "status" in data:
        data["status"] = data["status"].value
    for field, value in data.items():
        setattr(task, field, value)
    await db.commit()

    audit.record(
        "TASK_UPDATE",
        ResourceType.TASK.value,
        task.id,
        performed_by=current_user.id,
        metadata={"fields": sorted(data)},
    )
    return TaskResponse.model_validate(await get_task_or_404(db, task.id))


async def close_task(
    db: AsyncSession,
    audit: AuditRecorder,
    current_user: CurrentUser,
    task_id: UUID,
) -> TaskResponse:
    """Tasks are closed, never removed; submissions keep pointing at them."""
    task = await get_task_or_404(db, task_id)
    await authorize(db, current_user, ResourceType.TASK, group_id=task.group_id)
    task.status = TaskStatus.CLOSED.value
    await db.commit()
    audit.record("TASK_CLOSE", ResourceType.TASK.value, task.id, performed_by=current_user.id)
    return TaskResponse.model_validate(await get_task_or_404(db, task.id))

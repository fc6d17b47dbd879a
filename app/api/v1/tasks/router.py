from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import STAFF_ROLES, TaskStatus
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import TaskCreate, TaskResponse, TaskUpdate
from . import service

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post(
    "",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.create_task(db, audit, current_user, payload), "Task created")


@router.get("", response_model=ApiResponse[List[TaskResponse]])
async def list_tasks(
    group_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    tasks = await service.list_tasks(
        db, current_user, group_id=group_id, subject_id=subject_id, status=status_filter
    )
    return ok(tasks)


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.get_task(db, current_user, task_id))


@router.put("/{task_id}", response_model=ApiResponse[TaskResponse])
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.update_task(db, audit, current_user, task_id, payload), "Task updated")


@router.delete("/{task_id}", response_model=ApiResponse[TaskResponse])
async def close_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.close_task(db, audit, current_user, task_id), "Task closed")

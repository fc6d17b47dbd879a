from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import STAFF_ROLES
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from .schemas import SubmissionCreate, SubmissionResponse, SubmissionUpdate
from . import service

router = APIRouter(prefix="/api/v1/task-submissions", tags=["task-submissions"])


@router.post(
    "",
    response_model=ApiResponse[SubmissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def submit_task(
    payload: SubmissionCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Public (no bearer token). The student's code authenticates the submission."""
    return ok(await service.submit(db, audit, payload), "Task submitted")


@router.get("", response_model=ApiResponse[List[SubmissionResponse]])
async def list_submissions(
    task_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    return ok(await service.list_submissions(db, current_user, task_id=task_id, student_id=student_id))


@router.put("/{submission_id}", response_model=ApiResponse[SubmissionResponse])
async def update_submission(
    submission_id: UUID,
    payload: SubmissionUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(*STAFF_ROLES)),
):
    submission = await service.update_submission(db, audit, current_user, submission_id, payload)
    return ok(submission, "Submission updated")

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.students.schemas import StudentRef
from app.api.v1.tasks.schemas import TaskRef
from app.core.enums import SubmissionStatus


class SubmissionCreate(BaseModel):
    """Student-facing submission. student_code proves the submitter is the student."""

    task_id: UUID
    student_id: UUID
    student_code: str = Field(..., min_length=1, max_length=30)
    content: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)


class SubmissionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    score: Optional[float] = Field(None, ge=0)
    feedback: Optional[str] = None
    status: Optional[SubmissionStatus] = None


class SubmissionResponse(BaseModel):
    id: UUID
    task_id: UUID
    task: Optional[TaskRef] = None
    student_id: UUID
    student: Optional[StudentRef] = None
    submitted_at: datetime
    content: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    status: str
    score: Optional[float] = None
    feedback: Optional[str] = None
    graded_by: Optional[UUID] = None

    class Config:
        from_attributes = True

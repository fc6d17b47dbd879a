from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.groups.schemas import GroupRef
from app.api.v1.subjects.schemas import SubjectRef
from app.core.enums import TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    group_id: UUID
    subject_id: UUID
    due_date: datetime
    max_score: float = Field(100, gt=0)
    attachments: List[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """group_id, subject_id and created_by are fixed once the task exists."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    max_score: Optional[float] = Field(None, gt=0)
    status: Optional[TaskStatus] = None
    attachments: Optional[List[str]] = None


class TaskRef(BaseModel):
    id: UUID
    title: str
    group_id: UUID
    max_score: float
    status: str

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    group_id: UUID
    group: Optional[GroupRef] = None
    subject_id: UUID
    subject: Optional[SubjectRef] = None
    due_date: datetime
    max_score: float
    status: str
    attachments: List[str] = Field(default_factory=list)
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.students.schemas import StudentRef
from app.api.v1.subjects.schemas import SubjectRef


class GradeCreate(BaseModel):
    student_id: UUID
    group_id: UUID
    subject_id: UUID
    term: str = Field(..., min_length=1, max_length=50)
    score: float = Field(..., ge=0)
    max_score: float = Field(100, gt=0)
    comments: Optional[str] = None


class GradeUpdate(BaseModel):
    """student_id, subject_id, group_id and term identify the grade and cannot change."""

    model_config = ConfigDict(extra="forbid")

    score: Optional[float] = Field(None, ge=0)
    max_score: Optional[float] = Field(None, gt=0)
    comments: Optional[str] = None


class GradeResponse(BaseModel):
    id: UUID
    student_id: UUID
    student: Optional[StudentRef] = None
    group_id: UUID
    subject_id: UUID
    subject: Optional[SubjectRef] = None
    term: str
    score: float
    max_score: float
    comments: Optional[str] = None
    recorded_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

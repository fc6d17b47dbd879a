import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.students.schemas import StudentRef
from app.api.v1.subjects.schemas import SubjectRef


class ParticipationCreate(BaseModel):
    student_id: UUID
    subject_id: UUID
    group_id: UUID
    date: Optional[dt.date] = Field(None, description="Defaults to today")
    score: float = Field(100, ge=0, le=100)
    notes: Optional[str] = None


class ParticipationResponse(BaseModel):
    id: UUID
    student_id: UUID
    student: Optional[StudentRef] = None
    subject_id: UUID
    subject: Optional[SubjectRef] = None
    group_id: UUID
    date: dt.date
    score: float
    notes: Optional[str] = None
    recorded_by: Optional[UUID] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True

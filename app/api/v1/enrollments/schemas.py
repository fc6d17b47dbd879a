from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.groups.schemas import GroupRef
from app.api.v1.students.schemas import StudentRef
from app.core.enums import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    student_id: UUID
    group_id: UUID
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    observations: Optional[str] = None


class EnrollmentUpdate(BaseModel):
    """Only status and observations change; the (student, group) pair is fixed."""

    model_config = ConfigDict(extra="forbid")

    status: Optional[EnrollmentStatus] = None
    observations: Optional[str] = Field(None, max_length=2000)


class EnrollmentResponse(BaseModel):
    id: UUID
    student_id: UUID
    group_id: UUID
    student: Optional[StudentRef] = None
    group: Optional[GroupRef] = None
    status: str
    enrolled_at: datetime
    observations: Optional[str] = None
    enrolled_by: Optional[UUID] = None

    class Config:
        from_attributes = True

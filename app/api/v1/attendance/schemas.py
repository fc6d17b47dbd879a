from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.groups.schemas import GroupRef
from app.api.v1.students.schemas import StudentRef
from app.core.enums import AttendanceStatus


class AttendanceEntryIn(BaseModel):
    student_id: UUID
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: Optional[str] = Field(None, max_length=500)


class AttendanceSave(BaseModel):
    """Full roll for one group on one day. Saving again for the same day replaces it."""

    group_id: UUID
    date: date
    entries: List[AttendanceEntryIn] = Field(..., min_length=1)


class AttendanceEntryResponse(BaseModel):
    student_id: UUID
    student: Optional[StudentRef] = None
    status: str
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class AttendanceRecordResponse(BaseModel):
    id: UUID
    group_id: UUID
    group: Optional[GroupRef] = None
    date: date
    recorded_by: Optional[UUID] = None
    entries: List[AttendanceEntryResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudentAttendanceItem(BaseModel):
    """One day of one student's attendance history."""

    attendance_id: UUID
    group_id: UUID
    date: date
    status: str
    remarks: Optional[str] = None

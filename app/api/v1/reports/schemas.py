from uuid import UUID

from pydantic import BaseModel


class ReportStudent(BaseModel):
    id: UUID
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


class AttendanceSummaryItem(BaseModel):
    student: ReportStudent
    PRESENT: int = 0
    ABSENT: int = 0
    LATE: int = 0
    EXCUSED: int = 0
    total: int = 0


class AverageSummaryItem(BaseModel):
    """Per-student average (grade percentage or participation score)."""

    student: ReportStudent
    average: float
    records: int

from app.core.models.group import Group
from app.core.models.student import Student
from app.core.models.subject import Subject
from app.core.models.enrollment import Enrollment
from app.core.models.attendance_record import AttendanceEntry, AttendanceRecord
from app.core.models.task import Task, TaskSubmission
from app.core.models.grade import Grade, ParticipationRecord
from app.core.models.audit_log import AuditLog

__all__ = [
    "AttendanceEntry",
    "AttendanceRecord",
    "AuditLog",
    "Enrollment",
    "Grade",
    "Group",
    "ParticipationRecord",
    "Student",
    "Subject",
    "Task",
    "TaskSubmission",
]

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    DIRECTION = "DIRECTION"
    TEACHER = "TEACHER"


STAFF_ROLES = (UserRole.ADMIN, UserRole.DIRECTION, UserRole.TEACHER)
MANAGEMENT_ROLES = (UserRole.ADMIN, UserRole.DIRECTION)


class StudentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    WITHDRAWN = "WITHDRAWN"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class TaskStatus(str, Enum):
    ASSIGNED = "ASSIGNED"
    CLOSED = "CLOSED"


class SubmissionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"
    MISSING = "MISSING"


class ResourceType(str, Enum):
    """Resource kinds the scope resolver knows how to narrow."""

    GROUP = "Group"
    STUDENT = "Student"
    ENROLLMENT = "Enrollment"
    ATTENDANCE = "Attendance"
    TASK = "Task"
    TASK_SUBMISSION = "TaskSubmission"
    GRADE = "Grade"
    PARTICIPATION = "Participation"

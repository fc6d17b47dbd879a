"""Tasks assigned to a group for a subject, and the students' submissions."""

import uuid

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow


class Task(Base):
    """Closed (status CLOSED) rather than deleted."""

    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_group_subject_due", "group_id", "subject_id", "due_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    status = Column(String(20), nullable=False, default="ASSIGNED")  # ASSIGNED | CLOSED
    attachments = Column(JSON, nullable=False, default=list)  # list of URLs
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    group = relationship("Group", foreign_keys=[group_id])
    subject = relationship("Subject", foreign_keys=[subject_id])
    creator = relationship("User", foreign_keys=[created_by])


class TaskSubmission(Base):
    """One submission per (task, student). SUBMITTED -> GRADED; MISSING is terminal."""

    __tablename__ = "task_submissions"
    __table_args__ = (
        UniqueConstraint("task_id", "student_id", name="uq_task_submission_task_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    content = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="SUBMITTED")  # SUBMITTED | GRADED | MISSING
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    task = relationship("Task", foreign_keys=[task_id])
    student = relationship("Student", foreign_keys=[student_id])

"""Enrollment: the membership edge between a student and a group.

The only membership record the scope resolver traverses. Hard-deleted, unlike
historical records.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "group_id", name="uq_enrollment_student_group"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE | SUSPENDED | WITHDRAWN
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    observations = Column(Text, nullable=True)
    enrolled_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
    group = relationship("Group", foreign_keys=[group_id])

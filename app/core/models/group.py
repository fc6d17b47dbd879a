"""School groups (grade-section per school year). Soft delete via is_active."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow


class Group(Base):
    __tablename__ = "groups"
    __table_args__ = (
        UniqueConstraint("grade_level", "section", "school_year", name="uq_group_grade_section_year"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    grade_level = Column(Integer, nullable=False)  # 1..6
    section = Column(String(20), nullable=True)
    school_year = Column(String(20), nullable=False)  # e.g. "2024-2025"
    # Tutor drives TEACHER scope: a teacher sees only groups they tutor
    tutor_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    tutor = relationship("User", foreign_keys=[tutor_id])

"""Daily attendance per group. One record per (group, date); entries per student."""

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("group_id", "date", name="uq_attendance_group_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    recorded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    group = relationship("Group", foreign_keys=[group_id])
    entries = relationship(
        "AttendanceEntry",
        back_populates="attendance_record",
        cascade="all, delete-orphan",
    )


class AttendanceEntry(Base):
    """One row per student per attendance record."""

    __tablename__ = "attendance_entries"
    __table_args__ = (
        UniqueConstraint("attendance_record_id", "student_id", name="uq_attendance_entry_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attendance_record_id = Column(
        Uuid,
        ForeignKey("attendance_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="PRESENT")  # PRESENT, ABSENT, LATE, EXCUSED
    remarks = Column(Text, nullable=True)

    attendance_record = relationship("AttendanceRecord", back_populates="entries")
    student = relationship("Student", foreign_keys=[student_id])

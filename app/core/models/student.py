"""Students. student_code is unique and auto-assigned when blank."""

import uuid

from sqlalchemy import Column, Date, DateTime, Index, String, Text, Uuid

from app.db.session import Base, utcnow


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (Index("ix_students_name", "first_name", "last_name"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    student_code = Column(String(30), nullable=False, unique=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(10), nullable=True)  # MALE | FEMALE | OTHER
    address = Column(Text, nullable=True)
    guardian_name = Column(String(255), nullable=True)
    guardian_phone = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE | INACTIVE | GRADUATED
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

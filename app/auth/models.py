import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from app.db.session import Base, utcnow


class User(Base):
    """Staff account (ADMIN, DIRECTION, TEACHER). Soft delete via is_active."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    # Stored lower-cased; unique across the school
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False, default="TEACHER")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

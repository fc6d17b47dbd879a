"""
Append-only audit trail. Rows are never updated or deleted.
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Uuid

from app.db.session import Base, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_entity_action", "entity_type", "entity_id", "action"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String(100), nullable=False)  # e.g. GRADE_CREATE
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False)  # "N/A" when unknown
    performed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

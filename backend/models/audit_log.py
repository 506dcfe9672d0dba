"""Audit log model: append-only."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, func
from backend.db.base import Base
from backend.models.user import enum_values


class AuditStatus(str, enum.Enum):
    success = "success"
    failure = "failure"


class AuditLog(Base):
    """Immutable audit trail for state-changing requests and named events.

    Actor fields are copied by value so later role or email changes do not
    rewrite history. Rows are never updated; the only delete is the
    superAdmin retention cleanup.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)  # by value, no FK; survives a user purge
    user_email = Column(String(255), nullable=True)
    user_role = Column(String(20), nullable=True)
    action = Column(String(255), nullable=False, index=True)  # "PUT /api/..." or "CHANGE_USER_ROLE"
    resource = Column(String(50), nullable=True, index=True)
    resource_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)  # JSON
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    status = Column(
        Enum(AuditStatus, values_callable=enum_values, native_enum=False, length=10),
        default=AuditStatus.success,
        nullable=False,
    )
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

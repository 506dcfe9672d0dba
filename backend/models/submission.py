"""Innovator submissions: projects, funding applications, IP records."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, Numeric, func
from backend.db.base import Base
from backend.models.user import enum_values


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


def _approval_column():
    return Column(
        Enum(ApprovalStatus, values_callable=enum_values, native_enum=False, length=20),
        default=ApprovalStatus.pending,
        nullable=False,
        index=True,
    )


class Project(Base):
    """Innovation project submitted for review."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    institution = Column(String(255), nullable=True)
    funding_needed = Column(Numeric(14, 2), nullable=True)
    approval_status = _approval_column()
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class FundingApplication(Base):
    """Funding application, optionally tied to a project."""
    __tablename__ = "funding"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    amount_approved = Column(Numeric(14, 2), nullable=True)
    currency = Column(String(10), default="TZS", nullable=False)
    grant_type = Column(String(100), nullable=True)
    approval_status = _approval_column()
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class IPRecord(Base):
    """Intellectual property application (patent, copyright, trademark...)."""
    __tablename__ = "ip_management"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    ip_type = Column(String(50), nullable=False, default="patent")
    approval_status = _approval_column()
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

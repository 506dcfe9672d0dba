"""Role permission model: the persisted (role, resource, action) allow-list."""

from sqlalchemy import Column, Integer, String, DateTime, Enum, UniqueConstraint, func
from backend.db.base import Base
from backend.core.roles import Role
from backend.models.user import enum_values


class RolePermission(Base):
    """One allowed (role, resource, action) triple.

    The unique constraint is what rejects duplicates; inserts of an existing
    triple fail rather than silently duplicating.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role", "resource", "action", name="uq_role_resource_action"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(
        Enum(Role, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    resource = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

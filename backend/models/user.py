"""User model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, func
from backend.db.base import Base
from backend.core.roles import Role


def enum_values(enum_cls):
    """Persist enum values (``superAdmin``) rather than member names."""
    return [member.value for member in enum_cls]


class User(Base):
    """Platform user. ``role`` is re-read on every authenticated request."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, values_callable=enum_values, native_enum=False, length=20),
        nullable=True,
        index=True,
    )
    phone = Column(String(50), nullable=True)
    university = Column(String(255), nullable=True)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    deleted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

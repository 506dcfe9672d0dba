"""Seed the super-admin user from env vars."""

from sqlalchemy.orm import Session
from backend.models.user import User
from backend.core.roles import Role, role_value
from backend.core.security import hash_password
from backend.core.config import settings


def seed_super_admin(db: Session) -> None:
    """Create the super-admin user if not already present."""
    existing = db.query(User).filter(User.email == settings.SUPER_ADMIN_EMAIL).first()
    if existing:
        if existing.role != Role.SUPER_ADMIN:
            print(f"⚠️  '{settings.SUPER_ADMIN_EMAIL}' exists with role {role_value(existing.role)}, not changing it.")
        else:
            print(f"ℹ️  Super admin '{settings.SUPER_ADMIN_EMAIL}' already exists, skipping.")
        return

    admin = User(
        email=settings.SUPER_ADMIN_EMAIL,
        hashed_password=hash_password(settings.SUPER_ADMIN_PASSWORD),
        name=settings.SUPER_ADMIN_NAME,
        role=Role.SUPER_ADMIN,
        university="CITT",
    )
    db.add(admin)
    db.commit()
    print(f"✅ Created super admin: {settings.SUPER_ADMIN_EMAIL}")

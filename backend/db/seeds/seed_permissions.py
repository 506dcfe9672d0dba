"""Seed the default role_permissions allow-list."""

from sqlalchemy.orm import Session
from backend.services.permission_service import permission_service


def seed_permissions(db: Session) -> int:
    """Insert missing default permissions. Existing rows are left untouched."""
    added = permission_service.seed_defaults(db)
    if added:
        print(f"✅ Added {added} default permissions")
    else:
        print("ℹ️  Default permissions already present, skipping.")
    return added

"""Seed one demo account per role for local testing."""

from sqlalchemy.orm import Session
from backend.models.user import User
from backend.core.roles import Role, role_value
from backend.core.security import hash_password

DEMO_ACCOUNTS = [
    {
        "name": "John Admin",
        "email": "admin@citt.ac.tz",
        "password": "Admin@2025",
        "phone": "+255700000002",
        "role": Role.ADMIN,
        "university": "CITT",
    },
    {
        "name": "Mary IP Manager",
        "email": "ipmanager@citt.ac.tz",
        "password": "IPManager@2025",
        "phone": "+255700000003",
        "role": Role.IP_MANAGER,
        "university": "CITT",
    },
    {
        "name": "Alice Innovator",
        "email": "innovator@citt.ac.tz",
        "password": "Innovator@2025",
        "phone": "+255700000004",
        "role": Role.INNOVATOR,
        "university": "University of Dar es Salaam",
    },
]


def seed_demo_accounts(db: Session) -> None:
    """Create the demo accounts that don't exist yet. Never use in production."""
    for account in DEMO_ACCOUNTS:
        existing = db.query(User).filter(User.email == account["email"]).first()
        if existing:
            print(f"ℹ️  Account already exists: {account['email']} ({role_value(existing.role)})")
            continue

        data = dict(account)
        db.add(User(hashed_password=hash_password(data.pop("password")), **data))
        print(f"✅ Created {account['role'].value}: {account['email']}")
    db.commit()

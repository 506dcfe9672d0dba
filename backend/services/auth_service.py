"""Auth service: login, self-registration and profile management."""

import logging
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from backend.models.user import User
from backend.core.roles import Role, role_value
from backend.core.security import hash_password, verify_password, create_access_token
from backend.core.exceptions import AuthenticationError, ResourceConflictError, ResourceNotFoundError

logger = logging.getLogger("citt")


def user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": role_value(user.role),
    }


class AuthService:
    """Handles authentication and the caller's own account."""

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Authenticate a user and return a JWT access token.

        Soft-deleted accounts are rejected exactly like a wrong password.

        Raises:
            AuthenticationError: ``INVALID_CREDENTIALS`` if the check fails.
        """
        user = db.query(User).filter(User.email == email).first()
        if not user or user.is_deleted or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")

        # No role claim: the verifier re-reads it per request
        access_token = create_access_token({"sub": str(user.id), "email": user.email})

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": user_summary(user),
        }

    @staticmethod
    def register(
        db: Session,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        university: Optional[str] = None,
    ) -> User:
        """Self-registration. New accounts are always innovators."""
        return AuthService.create_user(
            db, email, password, name, Role.INNOVATOR, phone=phone, university=university,
        )

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        name: str,
        role: Role,
        phone: Optional[str] = None,
        university: Optional[str] = None,
    ) -> User:
        """Create a new user."""
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            raise ResourceConflictError(f"User with email {email} already exists", code="EMAIL_EXISTS")

        user = User(
            email=email,
            hashed_password=hash_password(password),
            name=name,
            role=role,
            phone=phone,
            university=university,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("User created: %s (%s)", user.email, role_value(user.role))
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        """Get an active user by id."""
        user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if not user:
            raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    @staticmethod
    def update_profile(
        db: Session,
        user_id: int,
        name: str,
        email: str,
        phone: Optional[str] = None,
    ) -> User:
        user = AuthService.get_user(db, user_id)
        taken = db.query(User.id).filter(User.email == email, User.id != user_id).first()
        if taken:
            raise ResourceConflictError("Email already in use by another account", code="EMAIL_EXISTS")

        user.name = name
        user.email = email
        user.phone = phone
        db.commit()
        db.refresh(user)
        return user


auth_service = AuthService()

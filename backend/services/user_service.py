"""User administration: listing, role changes, soft delete and restore."""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from backend.core.exceptions import (
    AuthorizationError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from backend.core.roles import ROLE_HIERARCHY, Role, parse_role, role_value
from backend.core.security import hash_password
from backend.models.audit_log import AuditLog
from backend.models.role_permission import RolePermission
from backend.models.submission import FundingApplication, IPRecord, Project
from backend.models.user import User
from backend.schemas.schemas import Principal

logger = logging.getLogger("citt")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _authority_order():
    """SQL ordering: highest authority first, roleless users last."""
    return case(
        *[(User.role == role, -level) for role, level in ROLE_HIERARCHY.items()],
        else_=0,
    )


class UserService:
    """User administration for admin and superAdmin routes."""

    @staticmethod
    def list_users(
        db: Session,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ):
        """List active users, highest authority first."""
        query = db.query(User).filter(User.deleted_at.is_(None))
        if role:
            query = query.filter(User.role == parse_role(role))
        if search:
            pattern = f"%{search}%"
            query = query.filter((User.name.ilike(pattern)) | (User.email.ilike(pattern)))

        total = query.count()
        users = (
            query.order_by(_authority_order(), User.created_at.desc(), User.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"users": users, "total": total, "page": page, "page_size": page_size}

    @staticmethod
    def get_active(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if not user:
            raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    @staticmethod
    def get_deleted(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id, User.deleted_at.isnot(None)).first()
        if not user:
            raise ResourceNotFoundError(
                "Deleted user not found. Users must be soft-deleted first.",
                code="USER_NOT_FOUND",
            )
        return user

    @staticmethod
    def get_with_stats(db: Session, user_id: int) -> Dict[str, Any]:
        """An active user plus counts of their submissions."""
        user = UserService.get_active(db, user_id)
        stats = {
            key: db.query(func.count(model.id)).filter(model.user_id == user_id).scalar()
            for key, model in (("projects", Project), ("funding", FundingApplication), ("ipRecords", IPRecord))
        }
        return {"user": user, "stats": stats}

    @staticmethod
    def update_user(
        db: Session,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        university: Optional[str] = None,
    ) -> User:
        """Apply the non-null fields to an active user."""
        user = UserService.get_active(db, user_id)
        if email and email != user.email:
            taken = db.query(User.id).filter(User.email == email, User.id != user_id).first()
            if taken:
                raise ResourceConflictError("Email already in use by another account", code="EMAIL_EXISTS")
            user.email = email
        if name:
            user.name = name
        if phone is not None:
            user.phone = phone
        if university is not None:
            user.university = university
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def set_password(db: Session, user_id: int, new_password: str) -> User:
        user = UserService.get_active(db, user_id)
        user.hashed_password = hash_password(new_password)
        db.commit()
        logger.info("Password reset for user %s", user.email)
        return user

    @staticmethod
    def change_role(db: Session, user: User, new_role) -> Dict[str, Any]:
        """Assign ``new_role`` to an already guarded target user."""
        role = parse_role(new_role)
        old_role = role_value(user.role)
        user.role = role
        db.commit()
        db.refresh(user)
        logger.info("Role changed for %s: %s -> %s", user.email, old_role, role.value)
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "oldRole": old_role,
            "newRole": role.value,
        }

    @staticmethod
    def bulk_update_roles(db: Session, actor_id: int, user_ids: List[int], new_role) -> List[User]:
        """Set one role on many active users. The caller's own id is rejected."""
        role = parse_role(new_role)
        if actor_id in user_ids:
            raise ValidationError("Cannot include your own ID in bulk update", code="CANNOT_SELF_MODIFY")

        users = (
            db.query(User)
            .filter(User.id.in_(user_ids), User.deleted_at.is_(None))
            .order_by(User.id)
            .all()
        )
        for user in users:
            user.role = role
        db.commit()
        logger.info("Bulk role update: %s users -> %s", len(users), role.value)
        return users

    @staticmethod
    def soft_delete(db: Session, actor: Principal, user: User) -> User:
        """Mark ``user`` deleted. Admins may not remove a superAdmin or themselves."""
        if actor.role == Role.ADMIN and user.role == Role.SUPER_ADMIN:
            raise AuthorizationError("Admins cannot delete superAdmins", code="FORBIDDEN")
        if user.id == actor.id:
            raise ValidationError("You cannot delete your own account", code="CANNOT_SELF_MODIFY")
        user.deleted_at = _utcnow()
        user.deleted_by = actor.id
        db.commit()
        db.refresh(user)
        logger.info("User soft-deleted: %s by %s", user.email, actor.email)
        return user

    @staticmethod
    def list_deleted(db: Session) -> List[User]:
        return (
            db.query(User)
            .filter(User.deleted_at.isnot(None))
            .order_by(User.deleted_at.desc())
            .all()
        )

    @staticmethod
    def restore(db: Session, user_id: int) -> User:
        user = UserService.get_deleted(db, user_id)
        user.deleted_at = None
        user.deleted_by = None
        db.commit()
        db.refresh(user)
        logger.info("User restored: %s", user.email)
        return user

    @staticmethod
    def permanent_delete(db: Session, actor_id: int, user_id: int) -> Dict[str, Any]:
        """Hard delete. Only soft-deleted users qualify."""
        if user_id == actor_id:
            raise ValidationError("You cannot permanently delete your own account", code="CANNOT_SELF_MODIFY")
        user = UserService.get_deleted(db, user_id)
        removed = {"email": user.email, "name": user.name}
        db.delete(user)
        db.commit()
        logger.info("User permanently deleted: %s", removed["email"])
        return removed

    @staticmethod
    def system_stats(db: Session) -> Dict[str, Any]:
        funding_count, funding_total = db.query(
            func.count(FundingApplication.id),
            func.coalesce(func.sum(FundingApplication.amount), 0),
        ).one()
        return {
            "totalUsers": db.query(func.count(User.id)).scalar(),
            "totalProjects": db.query(func.count(Project.id)).scalar(),
            "totalFundingApplications": funding_count,
            "totalFundingAmount": float(funding_total or 0),
            "totalIPRecords": db.query(func.count(IPRecord.id)).scalar(),
            "totalAuditLogs": db.query(func.count(AuditLog.id)).scalar(),
            "totalPermissions": db.query(func.count(RolePermission.id)).scalar(),
            "usersByRole": {
                role_value(role) or "none": count
                for role, count in db.query(User.role, func.count(User.id))
                .filter(User.deleted_at.is_(None))
                .group_by(User.role)
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


user_service = UserService()

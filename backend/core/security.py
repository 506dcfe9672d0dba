"""JWT authentication and RBAC authorization gates.

Every gate is a FastAPI dependency declared on the route at registration
time. The caller's role is re-read from the database on every request and
never taken from the token, so a role change made by a superAdmin applies
to the user's very next request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.config import settings
from backend.core.exceptions import (
    AuthenticationError, AuthorizationError, InfrastructureError,
    ResourceNotFoundError, ValidationError,
)
from backend.core.permissions import Action, Resource
from backend.core.roles import ELEVATED_ROLES, TOP_AUTHORITY_ROLE, Role, role_value
from backend.db.session import get_db
from backend.models.user import User
from backend.schemas.schemas import Principal
from backend.services.permission_service import permission_service

logger = logging.getLogger("citt")

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT access token.

    Raises:
        AuthenticationError: ``TOKEN_EXPIRED`` (401) when the token is past
            its expiry, so the client knows to refresh rather than re-login.
        AuthorizationError: ``INVALID_TOKEN`` (403) for any other signature,
            format or payload problem.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthorizationError("Invalid token", code="INVALID_TOKEN")

    if payload.get("type") != "access":
        raise AuthorizationError("Invalid token", code="INVALID_TOKEN")
    return payload


def _subject_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthorizationError("Invalid token", code="INVALID_TOKEN")


def _load_principal(db: Session, user_id: int) -> Optional[Principal]:
    user = (
        db.query(User.id, User.email, User.role, User.name)
        .filter(User.id == user_id, User.deleted_at.is_(None))
        .first()
    )
    if user is None:
        return None
    return Principal(id=user.id, email=user.email, role=user.role, name=user.name)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Verify the bearer token and attach the current principal to the request."""
    if credentials is None:
        raise AuthenticationError("Access token required", code="NO_TOKEN")

    payload = decode_token(credentials.credentials)
    user_id = _subject_id(payload)

    try:
        principal = _load_principal(db, user_id)
    except SQLAlchemyError:
        logger.exception("Authentication lookup failed for user %s", user_id)
        raise InfrastructureError("Authentication failed", code="AUTH_ERROR")

    if principal is None:
        raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")

    request.state.user = principal
    return principal


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> Optional[Principal]:
    """Like ``get_current_user`` but anonymous on any failure."""
    principal = None
    if credentials is not None:
        try:
            user_id = _subject_id(decode_token(credentials.credentials))
            principal = _load_principal(db, user_id)
        except (AuthenticationError, AuthorizationError, SQLAlchemyError):
            principal = None
    request.state.user = principal
    return principal


class RequireRole:
    """Dependency that admits only principals whose role is in an allow-list."""

    def __init__(self, *allowed_roles: Role):
        self.allowed_roles = list(allowed_roles)

    async def __call__(self, principal: Optional[Principal] = Depends(get_current_user)) -> Principal:
        if principal is None:
            raise AuthenticationError("Authentication required", code="AUTH_REQUIRED")

        if principal.role is None:
            raise AuthorizationError(
                "No role assigned to user",
                code="NO_ROLE",
                message="Your account does not have a role assigned. Please contact an administrator.",
            )

        required = [r.value for r in self.allowed_roles]
        if principal.role not in self.allowed_roles:
            logger.warning(
                "Access denied: %s (%s) requires %s",
                principal.email, principal.role.value, " or ".join(required),
            )
            raise AuthorizationError(
                "Insufficient permissions",
                code="FORBIDDEN",
                message=f"This action requires one of the following roles: {', '.join(required)}",
                userRole=principal.role.value,
                requiredRoles=required,
            )

        logger.debug("Access granted: %s (%s)", principal.email, principal.role.value)
        return principal


class RequirePermission:
    """Dependency that checks the role_permissions table for (resource, action)."""

    def __init__(self, resource: Resource, action: Action):
        self.resource = Resource(resource)
        self.action = Action(action)

    async def __call__(
        self,
        principal: Optional[Principal] = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Principal:
        if principal is None:
            raise AuthenticationError("Authentication required", code="AUTH_REQUIRED")

        resource, action = self.resource.value, self.action.value
        user_role = role_value(principal.role)
        if principal.role == TOP_AUTHORITY_ROLE:
            logger.debug("SuperAdmin access granted: %s -> %s:%s", principal.email, resource, action)
            return principal

        try:
            allowed = principal.role is not None and permission_service.has_permission(
                db, principal.role, resource, action,
            )
        except SQLAlchemyError:
            logger.exception("Permission check failed for %s -> %s:%s", principal.email, resource, action)
            raise InfrastructureError("Permission check failed", code="PERMISSION_ERROR")

        if not allowed:
            logger.warning("Permission denied: %s (%s) -> %s:%s", principal.email, user_role, resource, action)
            raise AuthorizationError(
                "Permission denied",
                code="PERMISSION_DENIED",
                message=f"Your role ({user_role}) does not have permission to {action} {resource}",
                required={"resource": resource, "action": action},
                userRole=user_role,
            )

        logger.debug("Permission granted: %s (%s) -> %s:%s", principal.email, user_role, resource, action)
        return principal


class RequireOwnership:
    """Dependency that checks the caller owns the record named by a route param.

    Admin and superAdmin bypass the check without touching the database.
    Otherwise exactly one extra query reads the owner column.
    """

    def __init__(self, model, owner_column: str = "user_id", param: str = "id"):
        self.model = model
        self.owner_column = getattr(model, owner_column)
        self.param = param

    async def __call__(
        self,
        request: Request,
        principal: Principal = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Principal:
        if principal.role in ELEVATED_ROLES:
            return principal

        raw_id = request.path_params.get(self.param)
        try:
            resource_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError("Resource ID required", code="NO_RESOURCE_ID")

        try:
            row = db.query(self.owner_column).filter(self.model.id == resource_id).first()
        except SQLAlchemyError:
            logger.exception("Ownership check failed on %s %s", self.model.__tablename__, resource_id)
            raise InfrastructureError("Ownership check failed", code="OWNERSHIP_ERROR")

        if row is None:
            raise ResourceNotFoundError("Resource not found", code="NOT_FOUND")

        owner_id = row[0]
        if owner_id != principal.id:
            logger.warning(
                "Ownership denied: user %s attempted to access %s %s owned by user %s",
                principal.id, self.model.__tablename__, resource_id, owner_id,
            )
            raise AuthorizationError("You can only access your own resources", code="NOT_OWNER")

        return principal


class RoleModificationGuard:
    """Gate for changing another user's role.

    Rules, checked in order: the caller is superAdmin, the target is not the
    caller, and the target exists and is not soft-deleted. Returns the target.
    ``self_message`` names the refused action when the caller targets themselves.
    """

    def __init__(self, param: str = "id", self_message: str = "You cannot change your own role"):
        self.param = param
        self.self_message = self_message

    async def __call__(
        self,
        request: Request,
        principal: Principal = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if principal.role != TOP_AUTHORITY_ROLE:
            raise AuthorizationError(
                "Only superAdmin can modify user roles",
                code="FORBIDDEN",
                requiredRole=TOP_AUTHORITY_ROLE.value,
                userRole=role_value(principal.role),
            )

        try:
            target_id = int(request.path_params.get(self.param))
        except (TypeError, ValueError):
            raise ValidationError("Resource ID required", code="NO_RESOURCE_ID")

        if target_id == principal.id:
            raise ValidationError(self.self_message, code="CANNOT_SELF_MODIFY")

        target = (
            db.query(User)
            .filter(User.id == target_id, User.deleted_at.is_(None))
            .first()
        )
        if target is None:
            raise ResourceNotFoundError("User not found or deleted", code="USER_NOT_FOUND")
        return target


# Convenience dependency instances
require_super_admin = RequireRole(Role.SUPER_ADMIN)
require_admin = RequireRole(Role.ADMIN, Role.SUPER_ADMIN)
require_reviewer = RequireRole(Role.IP_MANAGER, Role.ADMIN, Role.SUPER_ADMIN)
require_role_modifier = RoleModificationGuard()
require_user_remover = RoleModificationGuard(self_message="You cannot delete your own account")

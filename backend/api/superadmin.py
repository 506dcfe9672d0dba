"""SuperAdmin API router: user roles, permissions, audit retention, system stats."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.models.audit_log import AuditStatus
from backend.models.user import User
from backend.schemas.schemas import (
    AuditLogOut, MessageResponse, PermissionCreate, PermissionOut, Principal, UserOut,
    UserCreateRequest, UserUpdateRequest, PasswordChangeRequest,
    RoleChangeRequest, BulkRoleChangeRequest,
)
from backend.services.audit_service import audit_service
from backend.services.auth_service import auth_service
from backend.services.permission_service import permission_service
from backend.services.user_service import user_service
from backend.core.audit import AuditedRoute, audit_log
from backend.core.config import settings
from backend.core.roles import (
    ROLE_DESCRIPTIONS, ROLE_HIERARCHY, ROLE_NAMES, Role,
    get_manageable_roles, get_roles_by_hierarchy, parse_role,
)
from backend.core.security import (
    get_current_user, require_role_modifier, require_super_admin, require_user_remover,
)

router = APIRouter(
    prefix="/superadmin",
    tags=["superadmin"],
    route_class=AuditedRoute,
    dependencies=[Depends(require_super_admin)],
)


# ---- Roles ----

@router.get("/roles")
async def list_roles():
    """Role registry metadata, highest authority first."""
    return {
        "roles": [
            {
                "value": role.value,
                "name": ROLE_NAMES[role],
                "description": ROLE_DESCRIPTIONS[role],
                "level": ROLE_HIERARCHY[role],
                "manages": [r.value for r in get_manageable_roles(role)],
            }
            for role in get_roles_by_hierarchy()
        ]
    }


# ---- Users ----

@router.get("/users")
async def list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    result = user_service.list_users(db, role, search, page, page_size)
    return {
        "users": [UserOut.model_validate(u) for u in result["users"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.post("/users", response_model=UserOut, status_code=201, dependencies=[audit_log("users")])
async def create_user(body: UserCreateRequest, db: Session = Depends(get_db)):
    """Create an account with any role."""
    return auth_service.create_user(
        db, body.email, body.password, body.name, parse_role(body.role),
        phone=body.phone, university=body.university,
    )


@router.get("/users/deleted")
async def list_deleted_users(db: Session = Depends(get_db)):
    users = user_service.list_deleted(db)
    return {"users": [UserOut.model_validate(u) for u in users], "total": len(users)}


@router.post("/users/bulk-update-role", dependencies=[audit_log("users")])
async def bulk_update_role(
    body: BulkRoleChangeRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Set one role on several users. The caller's own id may not be included."""
    users = user_service.bulk_update_roles(db, principal.id, body.userIds, body.newRole)
    return {
        "message": f"Updated {len(users)} users to role: {parse_role(body.newRole).value}",
        "updatedUsers": [UserOut.model_validate(u) for u in users],
    }


@router.put("/users/{id}", response_model=UserOut, dependencies=[audit_log("users")])
async def update_user(id: int, body: UserUpdateRequest, db: Session = Depends(get_db)):
    return user_service.update_user(db, id, body.name, body.email, body.phone, body.university)


@router.put("/users/{id}/password", response_model=MessageResponse, dependencies=[audit_log("users")])
async def set_user_password(id: int, body: PasswordChangeRequest, db: Session = Depends(get_db)):
    user = user_service.set_password(db, id, body.newPassword)
    return MessageResponse(message=f"Password updated for {user.email}")


@router.put("/users/{id}/role")
async def change_user_role(
    id: int,
    body: RoleChangeRequest,
    request: Request,
    db: Session = Depends(get_db),
    target: User = Depends(require_role_modifier),
):
    """Change another user's role.

    Recorded once as ``CHANGE_USER_ROLE`` with the old and new role.
    """
    changed = user_service.change_role(db, target, body.newRole)
    audit_service.log_action(
        request,
        "CHANGE_USER_ROLE",
        resource="users",
        resource_id=changed["id"],
        details={"oldRole": changed["oldRole"], "newRole": changed["newRole"]},
    )
    return {
        "message": f"User role changed from {changed['oldRole']} to {changed['newRole']}",
        "user": changed,
    }


@router.post("/users/{id}/promote-to-admin", dependencies=[audit_log("users")])
async def promote_to_admin(
    id: int,
    db: Session = Depends(get_db),
    target: User = Depends(require_role_modifier),
):
    changed = user_service.change_role(db, target, Role.ADMIN)
    return {"message": f"{changed['name']} has been promoted to Admin", "user": changed}


@router.post("/users/{id}/demote-to-innovator", dependencies=[audit_log("users")])
async def demote_to_innovator(
    id: int,
    db: Session = Depends(get_db),
    target: User = Depends(require_role_modifier),
):
    changed = user_service.change_role(db, target, Role.INNOVATOR)
    return {"message": f"{changed['name']} has been demoted to Innovator", "user": changed}


@router.delete("/users/{id}", dependencies=[audit_log("users")])
async def soft_delete_user(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
    target: User = Depends(require_user_remover),
):
    """Soft delete. The account can be restored from the deleted-users list."""
    user = user_service.soft_delete(db, principal, target)
    return {
        "message": "User deleted successfully (can be restored from Past Users)",
        "deletedUser": {"email": user.email, "name": user.name},
    }


@router.post("/users/{id}/restore", response_model=UserOut, dependencies=[audit_log("users")])
async def restore_user(id: int, db: Session = Depends(get_db)):
    return user_service.restore(db, id)


@router.delete("/users/{id}/permanent", dependencies=[audit_log("users")])
async def permanently_delete_user(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Hard delete a user who has already been soft-deleted."""
    removed = user_service.permanent_delete(db, principal.id, id)
    return {"message": f"User {removed['name']} has been permanently deleted", "deletedUser": removed}


# ---- Permissions ----

@router.get("/permissions")
async def list_permissions(db: Session = Depends(get_db)):
    """All permission rows grouped by role."""
    return {"permissions": permission_service.list_grouped_by_role(db)}


@router.post("/permissions", response_model=PermissionOut, status_code=201, dependencies=[audit_log("system")])
async def add_permission(body: PermissionCreate, db: Session = Depends(get_db)):
    return permission_service.add_permission(db, body.role, body.resource, body.action, body.description)


@router.delete("/permissions/{id}", dependencies=[audit_log("system")])
async def delete_permission(id: int, db: Session = Depends(get_db)):
    removed = permission_service.delete_permission(db, id)
    return {"message": "Permission deleted successfully", "permission": removed}


# ---- Audit ----

@router.get("/audit-logs/all")
async def all_audit_logs(
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    status: Optional[AuditStatus] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    result = audit_service.query_logs(db, user_id, resource, action, status, start, end, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.delete("/audit-logs/cleanup", dependencies=[audit_log("audit")])
async def cleanup_audit_logs(
    days: int = Query(settings.AUDIT_RETENTION_DAYS, ge=1),
    db: Session = Depends(get_db),
):
    """Delete audit entries older than ``days``."""
    deleted = audit_service.cleanup(db, days)
    return {"message": f"Deleted {deleted} audit log entries older than {days} days", "deleted": deleted}


# ---- System ----

@router.get("/system/stats")
async def system_stats(db: Session = Depends(get_db)):
    return user_service.system_stats(db)

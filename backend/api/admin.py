"""Admin API router: users overview, review queues and audit logs."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.models.audit_log import AuditStatus
from backend.models.submission import ApprovalStatus, FundingApplication, Project
from backend.schemas.schemas import (
    AuditLogOut, FundingOut, MessageResponse, Principal, ProjectOut, UserOut,
    ApproveRequest, RejectRequest, UserUpdateRequest,
)
from backend.services.audit_service import audit_service
from backend.services.review_service import review_service
from backend.services.submission_service import submission_service
from backend.services.user_service import user_service
from backend.core.audit import AuditedRoute, audit_log
from backend.core.permissions import Action, Resource
from backend.core.security import RequirePermission, get_current_user, require_admin, require_reviewer

router = APIRouter(prefix="/admin", tags=["admin"], route_class=AuditedRoute)


@router.get("/users", dependencies=[Depends(require_admin), Depends(RequirePermission(Resource.USERS, Action.READ))])
async def admin_list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List active users, highest authority first."""
    result = user_service.list_users(db, role, search, page, page_size)
    return {
        "users": [UserOut.model_validate(u) for u in result["users"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/users/{id}", dependencies=[Depends(require_admin), Depends(RequirePermission(Resource.USERS, Action.READ))])
async def admin_get_user(id: int, db: Session = Depends(get_db)):
    """Single active user with counts of their submissions."""
    result = user_service.get_with_stats(db, id)
    return {**UserOut.model_validate(result["user"]).model_dump(), "stats": result["stats"]}


@router.put(
    "/users/{id}",
    response_model=UserOut,
    dependencies=[
        Depends(require_admin),
        Depends(RequirePermission(Resource.USERS, Action.UPDATE)),
        audit_log("users"),
    ],
)
async def admin_update_user(id: int, body: UserUpdateRequest, db: Session = Depends(get_db)):
    return user_service.update_user(db, id, body.name, body.email, body.phone, body.university)


@router.delete(
    "/users/{id}",
    dependencies=[
        Depends(require_admin),
        Depends(RequirePermission(Resource.USERS, Action.DELETE)),
        audit_log("users"),
    ],
)
async def admin_delete_user(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Soft delete. Admins cannot remove a superAdmin."""
    user = user_service.soft_delete(db, principal, user_service.get_active(db, id))
    return {
        "message": "User deleted successfully (can be restored from Past Users)",
        "deletedUser": {"email": user.email, "name": user.name},
    }


@router.get("/audit-logs", dependencies=[Depends(require_admin), Depends(RequirePermission(Resource.AUDIT, Action.VIEW))])
async def get_audit_logs(
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    status: Optional[AuditStatus] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Query audit logs with filters and a time range."""
    result = audit_service.query_logs(db, user_id, resource, action, status, start, end, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }


# ---- Projects ----

@router.get("/projects", dependencies=[Depends(require_admin), Depends(RequirePermission(Resource.PROJECTS, Action.READ))])
async def list_projects(
    status: Optional[ApprovalStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    result = review_service.list_for_review(db, Project, status, page, page_size)
    return {
        "projects": [ProjectOut.model_validate(p) for p in result["items"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.put(
    "/projects/{id}/approve",
    response_model=ProjectOut,
    dependencies=[
        Depends(require_admin),
        Depends(RequirePermission(Resource.PROJECTS, Action.APPROVE)),
        audit_log("projects"),
    ],
)
async def approve_project(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return review_service.approve(db, Project, id, principal)


@router.put(
    "/projects/{id}/reject",
    response_model=ProjectOut,
    dependencies=[
        Depends(require_admin),
        Depends(RequirePermission(Resource.PROJECTS, Action.REJECT)),
        audit_log("projects"),
    ],
)
async def reject_project(
    id: int,
    body: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Reject a project. A reason is required and is shown to the owner."""
    return review_service.reject(db, Project, id, principal, body.reason)


@router.delete(
    "/projects/{id}",
    response_model=MessageResponse,
    dependencies=[
        Depends(require_admin),
        Depends(RequirePermission(Resource.PROJECTS, Action.DELETE)),
        audit_log("projects"),
    ],
)
async def delete_project(id: int, db: Session = Depends(get_db)):
    removed = submission_service.delete(db, Project, id)
    return MessageResponse(message="Project deleted successfully", detail=removed)


# ---- Funding ----

@router.get("/funding", dependencies=[Depends(require_reviewer), Depends(RequirePermission(Resource.FUNDING, Action.READ))])
async def list_funding(
    status: Optional[ApprovalStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    result = review_service.list_for_review(db, FundingApplication, status, page, page_size)
    return {
        "funding": [FundingOut.model_validate(f) for f in result["items"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.put(
    "/funding/{id}/approve",
    response_model=FundingOut,
    dependencies=[
        Depends(require_reviewer),
        Depends(RequirePermission(Resource.FUNDING, Action.APPROVE)),
        audit_log("funding"),
    ],
)
async def approve_funding(
    id: int,
    body: ApproveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Approve a funding application, optionally for a different amount."""
    return review_service.approve(db, FundingApplication, id, principal, body.amount_approved)


@router.put(
    "/funding/{id}/reject",
    response_model=FundingOut,
    dependencies=[
        Depends(require_reviewer),
        Depends(RequirePermission(Resource.FUNDING, Action.REJECT)),
        audit_log("funding"),
    ],
)
async def reject_funding(
    id: int,
    body: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return review_service.reject(db, FundingApplication, id, principal, body.reason)

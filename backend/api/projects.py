"""Submission API router: an innovator's own projects, funding and IP records."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.models.submission import FundingApplication, IPRecord, Project
from backend.schemas.schemas import (
    Principal, MessageResponse,
    ProjectCreate, ProjectUpdate, ProjectOut,
    FundingCreate, FundingUpdate, FundingOut,
    IPRecordCreate, IPRecordOut,
)
from backend.services.submission_service import submission_service
from backend.core.audit import AuditedRoute, audit_log
from backend.core.security import RequireOwnership, get_current_user, get_optional_user

router = APIRouter(tags=["submissions"], route_class=AuditedRoute)

owns_project = RequireOwnership(Project)
owns_funding = RequireOwnership(FundingApplication)
owns_ip_record = RequireOwnership(IPRecord)


# ---- Projects ----

@router.post("/projects", response_model=ProjectOut, status_code=201, dependencies=[audit_log("projects")])
async def create_project(
    body: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Submit a project for review."""
    return submission_service.create(db, Project, principal, body.model_dump())


@router.get("/projects/mine", response_model=List[ProjectOut])
async def my_projects(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return submission_service.list_own(db, Project, principal.id)


@router.get("/projects/public")
async def public_projects(
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(get_optional_user),
):
    """Approved projects, visible without signing in."""
    return {"projects": submission_service.list_public_projects(db, principal)}


@router.get("/projects/{id}", response_model=ProjectOut)
async def get_project(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_project),
):
    return submission_service.get(db, Project, id)


@router.put("/projects/{id}", response_model=ProjectOut, dependencies=[audit_log("projects")])
async def update_project(
    id: int,
    body: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_project),
):
    """Edit a project. Owners may edit only while it is pending or rejected."""
    return submission_service.update(db, Project, id, principal, body.model_dump(exclude_unset=True))


@router.delete("/projects/{id}", response_model=MessageResponse, dependencies=[audit_log("projects")])
async def delete_project(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_project),
):
    removed = submission_service.delete(db, Project, id)
    return MessageResponse(message="Project deleted successfully", detail=removed)


@router.put("/projects/{id}/resubmit", response_model=ProjectOut, dependencies=[audit_log("projects")])
async def resubmit_project(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_project),
):
    """Send a rejected project back for review."""
    return submission_service.resubmit(db, Project, id)


# ---- Funding ----

@router.post("/funding", response_model=FundingOut, status_code=201, dependencies=[audit_log("funding")])
async def apply_for_funding(
    body: FundingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return submission_service.create(db, FundingApplication, principal, body.model_dump())


@router.get("/funding/mine", response_model=List[FundingOut])
async def my_funding(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return submission_service.list_own(db, FundingApplication, principal.id)


@router.get("/funding/{id}", response_model=FundingOut)
async def get_funding(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_funding),
):
    return submission_service.get(db, FundingApplication, id)


@router.put("/funding/{id}", response_model=FundingOut, dependencies=[audit_log("funding")])
async def update_funding(
    id: int,
    body: FundingUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_funding),
):
    return submission_service.update(
        db, FundingApplication, id, principal, body.model_dump(exclude_unset=True),
    )


# ---- IP records ----

@router.post("/ip-records", response_model=IPRecordOut, status_code=201, dependencies=[audit_log("ip_management")])
async def submit_ip_record(
    body: IPRecordCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return submission_service.create(db, IPRecord, principal, body.model_dump())


@router.get("/ip-records/mine", response_model=List[IPRecordOut])
async def my_ip_records(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return submission_service.list_own(db, IPRecord, principal.id)


@router.get("/ip-records/{id}", response_model=IPRecordOut)
async def get_ip_record(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(owns_ip_record),
):
    return submission_service.get(db, IPRecord, id)

"""IP manager API router: the IP record review queue."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.models.submission import ApprovalStatus, IPRecord
from backend.schemas.schemas import IPRecordOut, IPRecordUpdate, MessageResponse, Principal, RejectRequest
from backend.services.review_service import review_service
from backend.services.submission_service import submission_service
from backend.core.audit import AuditedRoute, audit_log
from backend.core.permissions import Action, Resource
from backend.core.security import RequirePermission, get_current_user, require_reviewer

router = APIRouter(
    prefix="/ipmanager",
    tags=["ipmanager"],
    route_class=AuditedRoute,
    dependencies=[Depends(require_reviewer)],
)


@router.get("/ip-records", dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.READ))])
async def list_ip_records(
    status: Optional[ApprovalStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    result = review_service.list_for_review(db, IPRecord, status, page, page_size)
    return {
        "records": [IPRecordOut.model_validate(r) for r in result["items"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/ip-records/{id}", response_model=IPRecordOut, dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.READ))])
async def get_ip_record(id: int, db: Session = Depends(get_db)):
    return submission_service.get(db, IPRecord, id)


@router.put(
    "/ip-records/{id}",
    response_model=IPRecordOut,
    dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.UPDATE)), audit_log("ip_management")],
)
async def update_ip_record(
    id: int,
    body: IPRecordUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Correct an IP record's details in any approval status."""
    return review_service.edit(db, IPRecord, id, principal, body.model_dump(exclude_unset=True))


@router.delete(
    "/ip-records/{id}",
    response_model=MessageResponse,
    dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.DELETE)), audit_log("ip_management")],
)
async def delete_ip_record(id: int, db: Session = Depends(get_db)):
    removed = submission_service.delete(db, IPRecord, id)
    return MessageResponse(message="IP record deleted successfully", detail=removed)


@router.put(
    "/ip-records/{id}/approve",
    response_model=IPRecordOut,
    dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.APPROVE)), audit_log("ip_management")],
)
async def approve_ip_record(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return review_service.approve(db, IPRecord, id, principal)


@router.put(
    "/ip-records/{id}/reject",
    response_model=IPRecordOut,
    dependencies=[Depends(RequirePermission(Resource.IP_MANAGEMENT, Action.REJECT)), audit_log("ip_management")],
)
async def reject_ip_record(
    id: int,
    body: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return review_service.reject(db, IPRecord, id, principal, body.reason)

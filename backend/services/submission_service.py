"""Submission service: innovator-side projects, funding and IP records."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from backend.core.roles import is_admin
from backend.models.submission import ApprovalStatus, FundingApplication, IPRecord, Project
from backend.schemas.schemas import Principal
from backend.services.notification_service import notification_service

logger = logging.getLogger("citt")

# Owners may edit while a submission is still open for review or was sent back
EDITABLE_STATUSES = (ApprovalStatus.pending, ApprovalStatus.rejected)

LABELS = {
    Project: "Project",
    FundingApplication: "Funding application",
    IPRecord: "IP record",
}


class SubmissionService:
    """CRUD over a caller's own submissions.

    Ownership is enforced by route gates; this layer only applies the
    status rules that decide whether an owner may still edit.
    """

    @staticmethod
    def create(db: Session, model, owner: Principal, data: Dict[str, Any]):
        record = model(user_id=owner.id, approval_status=ApprovalStatus.pending, **data)
        db.add(record)
        db.commit()
        db.refresh(record)

        label = LABELS[model]
        logger.info("%s %s submitted by %s", label, record.id, owner.email)
        notification_service.notify_admins(
            f"New {label.lower()} submitted",
            f'{owner.name or owner.email} submitted "{record.title}" for review.',
            "info",
        )
        return record

    @staticmethod
    def get(db: Session, model, record_id: int):
        record = db.query(model).filter(model.id == record_id).first()
        if not record:
            raise ResourceNotFoundError(f"{LABELS[model]} not found")
        return record

    @staticmethod
    def list_own(db: Session, model, owner_id: int) -> List[Any]:
        return (
            db.query(model)
            .filter(model.user_id == owner_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .all()
        )

    @staticmethod
    def update(db: Session, model, record_id: int, caller: Principal, data: Dict[str, Any]):
        """Apply non-null fields. Owners are limited to editable statuses."""
        record = SubmissionService.get(db, model, record_id)
        if not is_admin(caller.role) and record.approval_status not in EDITABLE_STATUSES:
            raise AuthorizationError(
                "You can only edit submissions that are pending review or rejected",
                code="NOT_EDITABLE",
                approvalStatus=record.approval_status.value,
            )

        for field, value in data.items():
            if value is not None:
                setattr(record, field, value)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, model, record_id: int) -> Dict[str, Any]:
        record = SubmissionService.get(db, model, record_id)
        removed = {"id": record.id, "title": record.title}
        db.delete(record)
        db.commit()
        logger.info("%s %s deleted", LABELS[model], removed["id"])
        return removed

    @staticmethod
    def resubmit(db: Session, model, record_id: int):
        """Send a rejected submission back to the review queue."""
        record = SubmissionService.get(db, model, record_id)
        if record.approval_status != ApprovalStatus.rejected:
            raise ValidationError("Only rejected submissions can be resubmitted", code="NOT_REJECTED")

        record.approval_status = ApprovalStatus.pending
        record.rejection_reason = None
        record.approved_by = None
        record.approved_at = None
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def list_public_projects(db: Session, viewer: Optional[Principal] = None) -> List[Dict[str, Any]]:
        projects = (
            db.query(Project)
            .filter(Project.approval_status == ApprovalStatus.approved)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )
        return [
            {
                "id": p.id,
                "title": p.title,
                "description": p.description,
                "category": p.category,
                "institution": p.institution,
                "created_at": p.created_at,
                "is_owner": viewer is not None and p.user_id == viewer.id,
            }
            for p in projects
        ]


submission_service = SubmissionService()

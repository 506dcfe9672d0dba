"""Review service: approve and reject submitted work."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from backend.core.exceptions import ValidationError
from backend.models.submission import ApprovalStatus, FundingApplication, IPRecord, Project
from backend.schemas.schemas import Principal
from backend.services.notification_service import notification_service
from backend.services.submission_service import LABELS, submission_service

logger = logging.getLogger("citt")

OWNER_LINKS = {
    Project: "/my-projects",
    FundingApplication: "/funding",
    IPRecord: "/ip-management",
}


class ReviewService:
    """Review decisions for admins and IP managers. Each decision notifies the owner."""

    @staticmethod
    def list_for_review(
        db: Session,
        model,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ):
        query = db.query(model)
        if status:
            query = query.filter(model.approval_status == ApprovalStatus(status))

        total = query.count()
        items = (
            query.order_by(model.created_at.desc(), model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"items": items, "total": total, "page": page, "page_size": page_size}

    @staticmethod
    def edit(db: Session, model, record_id: int, reviewer: Principal, data: Dict[str, Any]):
        """Reviewer correction of a record's details, whatever its approval status."""
        record = submission_service.get(db, model, record_id)
        for field, value in data.items():
            if value is not None:
                setattr(record, field, value)
        db.commit()
        db.refresh(record)
        logger.info("%s %s edited by %s", LABELS[model], record.id, reviewer.email)
        return record

    @staticmethod
    def approve(
        db: Session,
        model,
        record_id: int,
        reviewer: Principal,
        amount_approved: Optional[Decimal] = None,
    ):
        """Mark a submission approved.

        For funding applications the approved amount defaults to the
        requested amount.
        """
        record = submission_service.get(db, model, record_id)
        record.approval_status = ApprovalStatus.approved
        record.rejection_reason = None
        record.approved_by = reviewer.id
        record.approved_at = datetime.now(timezone.utc).replace(tzinfo=None)
        if model is FundingApplication:
            record.amount_approved = amount_approved if amount_approved is not None else record.amount
        db.commit()
        db.refresh(record)

        label = LABELS[model]
        logger.info("%s %s approved by %s", label, record.id, reviewer.email)
        notification_service.create(
            record.user_id,
            f"{label} Approved",
            f'Your {label.lower()} "{record.title}" has been approved.',
            "success",
            OWNER_LINKS[model],
        )
        return record

    @staticmethod
    def reject(db: Session, model, record_id: int, reviewer: Principal, reason: Optional[str]):
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required", code="REASON_REQUIRED")

        record = submission_service.get(db, model, record_id)
        record.approval_status = ApprovalStatus.rejected
        record.rejection_reason = reason
        record.approved_by = reviewer.id
        record.approved_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.commit()
        db.refresh(record)

        label = LABELS[model]
        logger.info("%s %s rejected by %s", label, record.id, reviewer.email)
        notification_service.create(
            record.user_id,
            f"{label} Rejected",
            f'Your {label.lower()} "{record.title}" has been rejected. Reason: {reason}',
            "warning",
            OWNER_LINKS[model],
        )
        return record


review_service = ReviewService()

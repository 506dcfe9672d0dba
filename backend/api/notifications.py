"""Notifications API router."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.schemas.schemas import NotificationOut, Principal
from backend.services.notification_service import notification_service
from backend.core.audit import AuditedRoute
from backend.core.security import get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"], route_class=AuditedRoute)


@router.get("", response_model=List[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return notification_service.list_for_user(db, principal.id, unread_only)


@router.put("/{id}/read", response_model=NotificationOut)
async def mark_notification_read(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    return notification_service.mark_read(db, principal.id, id)

"""Notification service: in-app notifications for users and role groups."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from backend.core.exceptions import ResourceNotFoundError
from backend.core.roles import Role
from backend.db.session import SessionLocal
from backend.models.notification import Notification
from backend.models.user import User

logger = logging.getLogger("citt")


class NotificationService:
    """Creates notifications in their own session.

    Delivery is best-effort: a failed insert is logged and never reaches the
    request that triggered it.
    """

    @staticmethod
    def create(
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
    ) -> bool:
        try:
            with SessionLocal() as db:
                db.add(Notification(user_id=user_id, title=title, message=message, type=type, link=link))
                db.commit()
        except Exception:
            logger.exception("Failed to notify user %s: %s", user_id, title)
            return False
        return True

    @staticmethod
    def notify_by_role(
        roles: Iterable[Role],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
    ) -> int:
        """Notify every active user holding one of ``roles``. Returns the count sent."""
        try:
            with SessionLocal() as db:
                recipients = [
                    row[0]
                    for row in db.query(User.id).filter(
                        User.role.in_(list(roles)), User.deleted_at.is_(None)
                    )
                ]
                db.add_all([
                    Notification(user_id=uid, title=title, message=message, type=type, link=link)
                    for uid in recipients
                ])
                db.commit()
        except Exception:
            logger.exception("Failed to notify roles %s: %s", [r.value for r in roles], title)
            return 0
        return len(recipients)

    @staticmethod
    def notify_admins(title: str, message: str, type: str = "info", link: Optional[str] = None) -> int:
        return NotificationService.notify_by_role(
            [Role.ADMIN, Role.SUPER_ADMIN], title, message, type, link,
        )

    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(100).all()

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise ResourceNotFoundError("Notification not found")
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification


notification_service = NotificationService()

"""Audit service: append-only audit trail for state-changing requests."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict

from fastapi import Request, Response
from sqlalchemy.orm import Session

from backend.core.exceptions import ValidationError
from backend.core.roles import role_value
from backend.db.session import SessionLocal
from backend.models.audit_log import AuditLog, AuditStatus

logger = logging.getLogger("citt")

REDACTED = "***REDACTED***"
SENSITIVE_MARKERS = ("password", "token", "secret", "apikey", "api_key")


def _is_sensitive(key: str) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def sanitize_body(body: Any) -> Any:
    """Copy of a request body with credential-like fields redacted, recursively."""
    if isinstance(body, dict):
        return {
            key: REDACTED if _is_sensitive(key) else sanitize_body(value)
            for key, value in body.items()
        }
    if isinstance(body, list):
        return [sanitize_body(item) for item in body]
    return body


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def _resource_id(request: Request) -> Optional[int]:
    raw = request.path_params.get("id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _request_details(request: Request) -> Dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "params": dict(request.path_params),
        "query": dict(request.query_params),
    }


async def _json_body(request: Request) -> Any:
    try:
        raw = await request.body()
    except RuntimeError:
        # Stream consumed without caching; nothing to record
        return None
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


class AuditService:
    """Records immutable audit log entries.

    Writes use their own session and never raise: an audit failure is logged
    and the primary action's response is left untouched.
    """

    @staticmethod
    def log_activity(
        action: str,
        user_id: Optional[int] = None,
        user_email: Optional[str] = None,
        user_role: Optional[str] = None,
        resource: Optional[str] = None,
        resource_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        status: AuditStatus = AuditStatus.success,
    ) -> Optional[int]:
        """Insert one audit row. Returns its id, or None if the write failed."""
        try:
            with SessionLocal() as db:
                entry = AuditLog(
                    user_id=user_id,
                    user_email=user_email,
                    user_role=user_role,
                    action=action,
                    resource=resource,
                    resource_id=resource_id,
                    details=json.dumps(details, default=str) if details is not None else None,
                    ip_address=ip_address,
                    user_agent=user_agent[:500] if user_agent else None,
                    status=status,
                )
                db.add(entry)
                db.commit()
                entry_id = entry.id
        except Exception:
            logger.exception("Audit log error: %s -> %s", user_email or "Anonymous", action)
            return None

        logger.info("Audit log: %s -> %s", user_email or "Anonymous", action)
        return entry_id

    @staticmethod
    def _actor(request: Request) -> Dict[str, Any]:
        principal = getattr(request.state, "user", None)
        if principal is None:
            return {"user_id": None, "user_email": None, "user_role": None}
        return {
            "user_id": principal.id,
            "user_email": principal.email,
            "user_role": role_value(principal.role),
        }

    @staticmethod
    async def record_response(request: Request, response: Response, resource: str) -> Optional[int]:
        """Record a successful audited request, at most once per request."""
        if getattr(request.state, "audit_recorded", False):
            return None
        if getattr(request.state, "user", None) is None or response.status_code >= 400:
            return None
        request.state.audit_recorded = True

        details = _request_details(request)
        details["body"] = sanitize_body(await _json_body(request))
        details["statusCode"] = response.status_code

        return AuditService.log_activity(
            action=f"{request.method} {request.url.path}",
            resource=resource,
            resource_id=_resource_id(request),
            details=details,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            status=AuditStatus.success,
            **AuditService._actor(request),
        )

    @staticmethod
    def log_action(
        request: Request,
        action: str,
        resource: Optional[str] = None,
        resource_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[int]:
        """Record a named success event outside the response path.

        Does nothing when no principal is attached to the request.
        """
        if getattr(request.state, "user", None) is None:
            return None
        payload = _request_details(request)
        if details:
            payload.update(details)
        return AuditService.log_activity(
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=payload,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            status=AuditStatus.success,
            **AuditService._actor(request),
        )

    @staticmethod
    def log_failure(
        request: Request,
        action: str,
        resource: Optional[str] = None,
        resource_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> Optional[int]:
        """Record a failed attempt. Actor fields are null for anonymous callers."""
        payload = _request_details(request)
        payload["reason"] = reason
        return AuditService.log_activity(
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=payload,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            status=AuditStatus.failure,
            **AuditService._actor(request),
        )

    @staticmethod
    def query_logs(
        db: Session,
        user_id: Optional[int] = None,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ):
        """Query audit logs with filters, time range and pagination."""
        query = db.query(AuditLog)

        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if resource:
            query = query.filter(AuditLog.resource == resource)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if status:
            query = query.filter(AuditLog.status == status)
        if start:
            query = query.filter(AuditLog.created_at >= start)
        if end:
            query = query.filter(AuditLog.created_at <= end)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return {
            "logs": logs,
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    @staticmethod
    def cleanup(db: Session, days: int) -> int:
        """Delete audit rows older than ``days``. Returns the number removed."""
        if days < 1:
            raise ValidationError("Retention must be at least one day")
        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
        deleted = (
            db.query(AuditLog)
            .filter(AuditLog.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
        logger.info("Audit cleanup removed %s entries older than %s days", deleted, days)
        return deleted


audit_service = AuditService()

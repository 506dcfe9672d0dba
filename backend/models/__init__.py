"""Models package: import all models so metadata.create_all can discover them."""

from backend.models.user import User
from backend.models.role_permission import RolePermission
from backend.models.audit_log import AuditLog, AuditStatus
from backend.models.submission import Project, FundingApplication, IPRecord, ApprovalStatus
from backend.models.notification import Notification

__all__ = [
    "User", "RolePermission", "AuditLog", "AuditStatus",
    "Project", "FundingApplication", "IPRecord", "ApprovalStatus",
    "Notification",
]

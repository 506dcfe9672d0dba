"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal

from backend.core.roles import Role
from backend.core.permissions import Resource, Action
from backend.models.audit_log import AuditStatus
from backend.models.submission import ApprovalStatus


# ---- Auth ----
class Principal(BaseModel):
    """Authenticated caller attached to ``request.state.user``."""
    id: int
    email: str
    role: Optional[Role] = None
    name: Optional[str] = None

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=4)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[Dict[str, Any]] = None

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    university: Optional[str] = None


# ---- User ----
class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: Optional[Role] = None
    phone: Optional[str] = None
    university: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None

    class Config:
        from_attributes = True

class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=4)
    phone: Optional[str] = None

class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    university: Optional[str] = None

class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    role: str
    phone: Optional[str] = None
    university: Optional[str] = None

class PasswordChangeRequest(BaseModel):
    newPassword: str = Field(..., min_length=6)

class RoleChangeRequest(BaseModel):
    newRole: str

class BulkRoleChangeRequest(BaseModel):
    userIds: List[int] = Field(..., min_length=1)
    newRole: str


# ---- Permissions ----
class PermissionCreate(BaseModel):
    role: str
    resource: Resource
    action: Action
    description: Optional[str] = None

class PermissionOut(BaseModel):
    id: int
    role: Role
    resource: str
    action: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


# ---- Submissions ----
class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    institution: Optional[str] = None
    funding_needed: Optional[Decimal] = None

class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    institution: Optional[str] = None
    funding_needed: Optional[Decimal] = None

class ProjectOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    category: Optional[str] = None
    institution: Optional[str] = None
    funding_needed: Optional[Decimal] = None
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FundingCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    currency: str = "TZS"
    grant_type: Optional[str] = None
    project_id: Optional[int] = None

class FundingUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    grant_type: Optional[str] = None

class FundingOut(BaseModel):
    id: int
    user_id: int
    project_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    amount: Decimal
    amount_approved: Optional[Decimal] = None
    currency: str
    grant_type: Optional[str] = None
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class IPRecordCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    ip_type: str = "patent"

class IPRecordUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    ip_type: Optional[str] = None

class IPRecordOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    ip_type: str
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Review ----
class ApproveRequest(BaseModel):
    amount_approved: Optional[Decimal] = Field(None, gt=0)

class RejectRequest(BaseModel):
    reason: Optional[str] = None


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    action: str
    resource: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    status: AuditStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Notifications ----
class NotificationOut(BaseModel):
    id: int
    title: str
    message: str
    type: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None

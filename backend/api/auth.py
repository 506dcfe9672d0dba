"""Auth API router: login, register, me."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from backend.db.session import get_db
from backend.schemas.schemas import (
    LoginRequest, RegisterRequest, ProfileUpdateRequest,
    Principal, TokenResponse, UserOut,
)
from backend.services.auth_service import auth_service
from backend.services.audit_service import audit_service
from backend.core.audit import AuditedRoute, audit_log
from backend.core.security import get_current_user
from backend.core.exceptions import AuthenticationError

router = APIRouter(prefix="/auth", tags=["auth"], route_class=AuditedRoute)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Authenticate and return a JWT access token."""
    try:
        result = auth_service.authenticate(db, body.email, body.password)
    except AuthenticationError as e:
        audit_service.log_failure(request, "USER_LOGIN", resource="users", reason=f"{e.message}: {body.email}")
        raise

    user = result["user"]
    request.state.user = Principal(id=user["id"], email=user["email"], role=user["role"], name=user["name"])
    audit_service.log_action(request, "USER_LOGIN", resource="users", resource_id=user["id"])
    return result


@router.post("/register", response_model=UserOut, status_code=201)
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new innovator account."""
    return auth_service.register(
        db, body.email, body.password, body.name, phone=body.phone, university=body.university,
    )


@router.get("/me", response_model=UserOut)
async def get_me(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Get current user profile."""
    return auth_service.get_user(db, principal.id)


@router.put("/me", response_model=UserOut, dependencies=[audit_log("users")])
async def update_me(
    body: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    """Update the caller's own name, email and phone."""
    return auth_service.update_profile(db, principal.id, body.name, body.email, body.phone)

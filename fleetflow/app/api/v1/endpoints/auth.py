"""
Authentication API endpoints.

Provides register, login, logout and user info endpoints, plus the
admin-only user listing, activation toggle and audit trail.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from fleetflow.app.db.session import get_db
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.user import User
from fleetflow.app.models.enums import UserRole
from fleetflow.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from fleetflow.app.schemas.admin import (
    UserListResponse, ToggleUserRequest, AdminActionResponse,
    AuditLogResponse, AuditTrailResponse
)
from fleetflow.app.core.security import get_password_hash, verify_password
from fleetflow.app.core.jwt import create_access_token, token_claims
from fleetflow.app.core.dependencies import get_current_user, security
from fleetflow.app.core.guards import require_permission
from fleetflow.app.core.permissions import Operation
from fleetflow.app.core.token_revocation import (
    revoke_token, revoke_all_user_tokens, clear_user_token_revocation
)
from fleetflow.app.services.audit import (
    log_event, log_auth_event, log_user_action, get_audit_trail, AuditAction
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(user: User) -> TokenResponse:
    access_token = create_access_token(data=token_claims(user))

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        driver_id=user.driver_id
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user.

    Rules:
    - ADMIN role cannot be created via API.
    - Only a DRIVER-role user may be linked to a Driver record.
    """
    # 1. Block ADMIN registration
    if user_data.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin users cannot be registered via API"
        )

    # 2. Check if email already exists
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    # 3. Driver link validation
    if user_data.driver_id is not None:
        if user_data.role != UserRole.DRIVER:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{user_data.role.value} cannot be linked to a driver record"
            )

        driver_result = await db.execute(select(Driver).where(Driver.id == user_data.driver_id))
        if not driver_result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Driver not found"
            )

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        driver_id=user_data.driver_id,
        is_active=True
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_event(
        db=db,
        action=AuditAction.USER_CREATED,
        actor_id=new_user.id,
        actor_username=new_user.email,
        metadata={"role": new_user.role.value}
    )

    return _issue_token(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Logs successful and failed login attempts for security monitoring.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            username=credentials.email,
            ip_address=ip_address,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.email,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    token = _issue_token(user)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        username=user.email,
        ip_address=ip_address
    )

    return token


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user)
):
    """Revoke the bearer token used for this request."""
    await revoke_token(credentials.credentials, current_user["user_id"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Raises:
        404: If user not found in database
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    admin: dict = Depends(require_permission(Operation.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db)
):
    """List all users (admin-only)."""
    total = (await db.execute(select(func.count(User.id)))).scalar()
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    users = result.scalars().all()

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total
    )


@router.patch("/users/{user_id}/toggle", response_model=AdminActionResponse)
async def toggle_user(
    user_id: int,
    request: ToggleUserRequest = ToggleUserRequest(),
    admin: dict = Depends(require_permission(Operation.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Activate or deactivate a user (admin-only).

    Deactivation revokes all of the user's tokens immediately; activation
    clears that revocation so the user can log in again.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    target_user = result.scalar_one_or_none()

    if not target_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if target_user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate yourself"
        )

    target_user.is_active = not target_user.is_active
    await db.commit()

    if target_user.is_active:
        await clear_user_token_revocation(user_id)
        action = AuditAction.USER_ACTIVATED
    else:
        await revoke_all_user_tokens(user_id)
        action = AuditAction.USER_DEACTIVATED

    audit_log = await log_user_action(
        db=db,
        current_user=admin,
        action=action,
        metadata={
            "target_user_id": target_user.id,
            "target_email": target_user.email,
            "reason": request.reason
        }
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.email}' is now {'active' if target_user.is_active else 'inactive'}",
        user_id=user_id,
        is_active=target_user.is_active,
        action=action,
        audit_log_id=audit_log.id
    )


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    actor_id: int = Query(None, description="Filter by acting user ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_permission(Operation.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db)
):
    """Get audit trail with optional filtering (admin-only)."""
    logs = await get_audit_trail(db=db, actor_id=actor_id, action=action, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )

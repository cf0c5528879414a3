"""
Admin Pydantic schemas.

Defines schemas for user administration and the audit trail.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleetflow.app.schemas.auth import UserResponse


class UserListResponse(BaseModel):
    """Schema for the user list."""
    users: List[UserResponse]
    total: int


class ToggleUserRequest(BaseModel):
    """Request for activating or deactivating a user."""
    reason: Optional[str] = Field(None, description="Reason (for audit log)")


class AdminActionResponse(BaseModel):
    """Response for admin user actions."""
    success: bool
    message: str
    user_id: int
    is_active: bool
    action: str
    audit_log_id: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail response."""
    logs: List[AuditLogResponse]
    total: int

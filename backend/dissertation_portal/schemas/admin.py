# dissertation_portal/schemas/admin.py
"""
Pydantic schemas for admin endpoints.
Defines audit log output, onboarding statistics and user management models.
"""
import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel

from .auth import UserOut


class AuditLogOut(BaseModel):
    """
    One audit trail entry as returned to admins.
    """
    id: int
    action_type: str
    user_id: Optional[str] = None
    admin_id: Optional[str] = None
    target_email: Optional[str] = None
    details: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[dt.datetime] = None
    metadata: Optional[dict[str, Any]] = None


def audit_log_to_out(entry) -> AuditLogOut:
    return AuditLogOut(
        id=entry.id,
        action_type=entry.action_type,
        user_id=entry.user_id,
        admin_id=entry.admin_id,
        target_email=entry.target_email,
        details=entry.details,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        timestamp=entry.timestamp,
        metadata=entry.metadata,
    )


class AuditLogListOut(BaseModel):
    items: List[AuditLogOut]
    total: int


class OnboardingStatsOut(BaseModel):
    """
    Summary of the registration queue plus the latest audit activity.
    """
    total_requests: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int
    info_requested: int
    recent_activity: List[AuditLogOut]


class AdminUserListOut(BaseModel):
    """
    Response model for paginated user list endpoint.
    """
    items: List[UserOut]
    offset: int
    limit: int
    total: int


class AdminUserDetailOut(BaseModel):
    user: UserOut


class AdminUserUpdateIn(BaseModel):
    """
    Request model for updating an account.
    Only provided fields are applied.
    """
    role: Optional[str] = None  # New role; requires the user to log in again
    is_active: Optional[bool] = None  # False disables the account

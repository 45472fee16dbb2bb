# dissertation_portal/api/v1/routers/admin.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dissertation_portal.api.v1.deps import (
    get_audit_trail,
    get_credential_store,
    get_registration_workflow,
    get_request_context,
    get_user_administration,
    require_audit_viewer,
    require_onboarding_admin,
    require_user_admin,
)
from dissertation_portal.core.exceptions import UserNotFound, UserUpdateForbidden
from dissertation_portal.models.audit_log import AuditAction
from dissertation_portal.schemas.admin import (
    AdminUserDetailOut,
    AdminUserListOut,
    AdminUserUpdateIn,
    AuditLogListOut,
    OnboardingStatsOut,
    audit_log_to_out,
)
from dissertation_portal.schemas.auth import SessionData, public_user
from dissertation_portal.services.audit import AuditTrail, RequestContext
from dissertation_portal.services.credential_store import CredentialStore
from dissertation_portal.services.registration import RegistrationWorkflow
from dissertation_portal.services.user_admin import UserAdministration

router = APIRouter(prefix="/admin", tags=["admin"])


# ==============================================================================
# I. Audit trail & onboarding statistics
# ==============================================================================
@router.get("/audit-logs", response_model=AuditLogListOut)
async def list_audit_logs(
    action_type: Optional[AuditAction] = Query(default=None),
    q: str | None = Query(default=None, description="Search in details/target email"),
    limit: int = Query(100, ge=1, le=1000),
    _: SessionData = Depends(require_audit_viewer),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """
    Get audit entries, most recent first (admin only).

    Args:
        action_type: Optional filter on one action type
        q: Optional case-insensitive search in details and target email
        limit: Maximum number of entries to return (1-1000)

    Returns:
        items: the returned page; total: every entry matching the filters
    """
    total, rows = await audit.search(action=action_type, q=q, limit=limit)
    return {"items": [audit_log_to_out(r) for r in rows], "total": total}


@router.get("/onboarding/stats", response_model=OnboardingStatsOut)
async def onboarding_stats(
    _: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
):
    """
    Registration counts per status plus the 10 latest audit entries (admin only).
    """
    stats = await workflow.stats()
    stats["recent_activity"] = [audit_log_to_out(r) for r in stats["recent_activity"]]
    return stats


# ==============================================================================
# II. User Management
#     Accounts are never deleted: deactivation is the only removal path
# ==============================================================================
@router.get("/users", response_model=AdminUserListOut)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by email/full name"),
    role: str | None = Query(default=None),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    _: SessionData = Depends(require_user_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Get paginated list of accounts, newest first (admin only).
    """
    total, rows = await store.list_users(q=q, role=role, offset=offset, limit=limit)
    return {"items": [public_user(u) for u in rows], "offset": offset, "limit": limit, "total": total}


@router.get("/users/{user_id}", response_model=AdminUserDetailOut)
async def get_user_detail(
    user_id: str,
    _: SessionData = Depends(require_user_admin),
    admin: UserAdministration = Depends(get_user_administration),
):
    try:
        u = await admin.get(user_id)
    except UserNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="USER_NOT_FOUND")
    return {"user": public_user(u)}


@router.patch("/users/{user_id}", response_model=AdminUserDetailOut)
async def update_user(
    user_id: str,
    body: AdminUserUpdateIn,
    session: SessionData = Depends(require_user_admin),
    admin: UserAdministration = Depends(get_user_administration),
    context: RequestContext = Depends(get_request_context),
):
    """
    Change an account's role and/or active flag (admin only).

    Either change revokes the user's live sessions.

    Raises:
        HTTPException (404): If user not found
        HTTPException (400): INVALID_ROLE, CANNOT_DEMOTE_SELF, CANNOT_DISABLE_SELF,
            LAST_ADMIN_FORBIDDEN
    """
    try:
        u = await admin.update(
            user_id,
            session.user.id,
            role=body.role,
            is_active=body.is_active,
            context=context,
        )
    except UserNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="USER_NOT_FOUND")
    except UserUpdateForbidden as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_detail())
    return {"user": public_user(u)}

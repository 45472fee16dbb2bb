from fastapi import Depends, Header, HTTPException, Request, Response, status

from dissertation_portal.config import settings
from dissertation_portal.core.permissions import Permission, has_permission
from dissertation_portal.schemas.auth import SessionData
from dissertation_portal.services.audit import AuditTrail, RequestContext
from dissertation_portal.services.authenticator import Authenticator
from dissertation_portal.services.credential_store import CredentialStore
from dissertation_portal.services.registration import RegistrationWorkflow
from dissertation_portal.services.session_manager import SessionManager
from dissertation_portal.services.user_admin import UserAdministration


# ------------------------------------------------------------------------------
# Service providers (override in tests via app.dependency_overrides)
# ------------------------------------------------------------------------------
def get_credential_store() -> CredentialStore:
    return CredentialStore()


def get_audit_trail() -> AuditTrail:
    return AuditTrail()


def get_session_manager() -> SessionManager:
    return SessionManager()


def get_authenticator(
    store: CredentialStore = Depends(get_credential_store),
    audit: AuditTrail = Depends(get_audit_trail),
) -> Authenticator:
    return Authenticator(store, audit)


def get_registration_workflow(
    store: CredentialStore = Depends(get_credential_store),
    audit: AuditTrail = Depends(get_audit_trail),
) -> RegistrationWorkflow:
    return RegistrationWorkflow(store, audit)


def get_user_administration(
    store: CredentialStore = Depends(get_credential_store),
    audit: AuditTrail = Depends(get_audit_trail),
    sessions: SessionManager = Depends(get_session_manager),
) -> UserAdministration:
    return UserAdministration(store, audit, sessions)


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


# ------------------------------------------------------------------------------
# Session resolution
# ------------------------------------------------------------------------------
def extract_token(request: Request, authorization: str | None) -> str | None:
    """
    Pull the session token from the request:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        token = request.cookies.get(settings.access_cookie_name)
    return token or None


def set_access_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.access_cookie_name,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.token_ttl_hours * 3600,
    )


async def get_current_session(
    request: Request,
    response: Response,
    authorization: str | None = Header(default=None),
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionData:
    """
    FastAPI dependency resolving the caller's session bundle.

    The bundle is validated on load. If it was close to expiry it comes back
    with a rotated token, which is written to the cookie and echoed in the
    ``X-Session-Token`` header.

    Raises:
        HTTPException (401): No token provided (AUTH_REQUIRED)
        HTTPException (401): Unknown or expired token (AUTH_INVALID_TOKEN)
    """
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    session = await sessions.current(token)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    if session.token.token != token:
        set_access_cookie(response, session.token.token)
        response.headers["X-Session-Token"] = session.token.token
    return session


def require_permission(permission: str):
    """
    Build a dependency that admits only sessions whose role grants ``permission``.

    The check uses the role snapshot stored with the token, so a role change
    only takes effect after a fresh login.

    Usage:
        @router.get("/admin/audit-logs")
        async def list_logs(session: SessionData = Depends(require_permission(Permission.VIEW_AUDIT_LOGS))):
            ...
    """

    async def _check(session: SessionData = Depends(get_current_session)) -> SessionData:
        if not has_permission(session.token.role, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN")
        return session

    return _check


require_onboarding_admin = require_permission(Permission.MANAGE_ONBOARDING)
require_user_admin = require_permission(Permission.MANAGE_USERS)
require_audit_viewer = require_permission(Permission.VIEW_AUDIT_LOGS)

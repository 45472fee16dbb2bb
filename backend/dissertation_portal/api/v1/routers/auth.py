# dissertation_portal/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from dissertation_portal.api.v1.deps import (
    extract_token,
    get_authenticator,
    get_current_session,
    get_request_context,
    get_session_manager,
    set_access_cookie,
)
from dissertation_portal.config import settings
from dissertation_portal.schemas.auth import AuthError, AuthErrorType, LoginRequest, LoginResponse, SessionData
from dissertation_portal.services.audit import RequestContext
from dissertation_portal.services.authenticator import Authenticator
from dissertation_portal.services.session_manager import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_ERROR_STATUS = {
    AuthErrorType.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorType.ROLE_MISMATCH: status.HTTP_403_FORBIDDEN,
    AuthErrorType.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    AuthErrorType.ACCOUNT_LOCKED: status.HTTP_423_LOCKED,
    AuthErrorType.NETWORK_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
    sessions: SessionManager = Depends(get_session_manager),
    context: RequestContext = Depends(get_request_context),
):
    """
    Authenticate with email, password and the role the user is logging in as.

    On success the session bundle is persisted, the token is set as an
    HttpOnly cookie and also returned in the body.

    Returns:
        dict: success flag and data with user, token, permissions, accessToken

    Raises:
        HTTPException (401): INVALID_CREDENTIALS (same message for unknown email
            and wrong password)
        HTTPException (403): ROLE_MISMATCH or ACCOUNT_DISABLED
        HTTPException (423): ACCOUNT_LOCKED
        HTTPException (503): NETWORK_ERROR
    """
    result = await authenticator.authenticate(payload, context)
    if isinstance(result, AuthError):
        raise HTTPException(
            status_code=AUTH_ERROR_STATUS[result.type],
            detail={"code": result.type.value, "message": result.message},
        )

    await sessions.start(result)
    set_access_cookie(response, result.token.token)
    data = LoginResponse(
        user=result.user,
        token=result.token,
        permissions=result.permissions,
        accessToken=result.token.token,
    )
    return {"success": True, "data": data}


@router.get("/me")
async def me(session: SessionData = Depends(get_current_session)):
    """
    Get the public profile of the currently authenticated user.
    """
    return {"success": True, "data": session.user}


@router.get("/session")
async def current_session(session: SessionData = Depends(get_current_session)):
    """
    Get the full session bundle (token, user, permissions, login time).

    If the token was within the refresh threshold of expiry it has already
    been rotated; the returned token is the one to use from now on.
    """
    return {"success": True, "data": session}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    authorization: str | None = Header(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Rotate the current session token: new secret, new session id, new expiry.

    Raises:
        HTTPException (401): No token (AUTH_REQUIRED) or invalid token (AUTH_INVALID_TOKEN)
    """
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")
    session = await sessions.refresh(token)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")
    set_access_cookie(response, session.token.token)
    return {"success": True, "data": session}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    authorization: str | None = Header(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Log out: delete the whole session bundle server-side and clear the cookie.

    Always succeeds, even when no session was present.
    """
    await sessions.clear(extract_token(request, authorization))
    response.delete_cookie(settings.access_cookie_name)
    return {"success": True}

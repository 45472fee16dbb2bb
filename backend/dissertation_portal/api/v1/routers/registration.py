# dissertation_portal/api/v1/routers/registration.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dissertation_portal.api.v1.deps import (
    get_registration_workflow,
    get_request_context,
    require_onboarding_admin,
)
from dissertation_portal.core.exceptions import (
    InvalidRegistrationState,
    OnboardingError,
    RegistrationConflict,
    RegistrationNotFound,
    RegistrationValidationError,
)
from dissertation_portal.models.registration import RegistrationStatus
from dissertation_portal.schemas.auth import SessionData, public_user
from dissertation_portal.schemas.registration import (
    ApproveIn,
    RegistrationIn,
    RegistrationListOut,
    RejectIn,
    RequestInfoIn,
    registration_to_out,
)
from dissertation_portal.services.audit import RequestContext
from dissertation_portal.services.registration import RegistrationWorkflow

router = APIRouter(prefix="/registration-requests", tags=["registration"])

ERROR_STATUS = {
    RegistrationValidationError: status.HTTP_400_BAD_REQUEST,
    RegistrationNotFound: status.HTTP_404_NOT_FOUND,
    RegistrationConflict: status.HTTP_409_CONFLICT,
    InvalidRegistrationState: status.HTTP_409_CONFLICT,
}


def _http_error(exc: OnboardingError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=exc.to_detail(),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_registration(
    body: RegistrationIn,
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
    context: RequestContext = Depends(get_request_context),
):
    """
    Submit an onboarding application (public).

    Returns:
        dict: success flag and the stored request (status "pending")

    Raises:
        HTTPException (400): VALIDATION_ERROR with every violation in ``errors``
        HTTPException (409): CONFLICT when the email already has a request or account
    """
    try:
        request = await workflow.submit(body, context)
    except OnboardingError as exc:
        raise _http_error(exc)
    return {"success": True, "data": registration_to_out(request)}


@router.get("", response_model=RegistrationListOut)
async def list_registrations(
    status_filter: Optional[RegistrationStatus] = Query(default=None, alias="status"),
    _: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
):
    """
    List registration requests, newest first (admin only).
    """
    rows = await workflow.list_requests(status_filter.value if status_filter else None)
    return {"items": [registration_to_out(r) for r in rows], "total": len(rows)}


@router.get("/{request_id}")
async def get_registration(
    request_id: str,
    _: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
):
    try:
        request = await workflow.get_request(request_id)
    except OnboardingError as exc:
        raise _http_error(exc)
    return {"success": True, "data": registration_to_out(request)}


@router.post("/{request_id}/approve")
async def approve_registration(
    request_id: str,
    body: ApproveIn,
    session: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
    context: RequestContext = Depends(get_request_context),
):
    """
    Approve a request and provision the account (admin only).

    The acting admin is the session's user. The temporary password is not in
    the response; it is recorded in the ``account_created`` audit entry.

    Returns:
        dict: success flag and the new user's public profile
    """
    try:
        user = await workflow.approve(request_id, session.user.id, body.comments, context)
    except OnboardingError as exc:
        raise _http_error(exc)
    return {"success": True, "data": public_user(user)}


@router.post("/{request_id}/reject")
async def reject_registration(
    request_id: str,
    body: RejectIn,
    session: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
    context: RequestContext = Depends(get_request_context),
):
    """
    Reject a request (admin only). Comments are required.
    """
    try:
        request = await workflow.reject(request_id, session.user.id, body.comments, context)
    except OnboardingError as exc:
        raise _http_error(exc)
    return {"success": True, "data": registration_to_out(request)}


@router.post("/{request_id}/request-info")
async def request_additional_info(
    request_id: str,
    body: RequestInfoIn,
    session: SessionData = Depends(require_onboarding_admin),
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
    context: RequestContext = Depends(get_request_context),
):
    """
    Ask the applicant for more information (admin only).
    """
    try:
        request = await workflow.request_info(request_id, session.user.id, body.info, context)
    except OnboardingError as exc:
        raise _http_error(exc)
    return {"success": True, "data": registration_to_out(request)}

# dissertation_portal/services/registration.py
"""
Registration (onboarding) workflow.

A request starts ``pending``. An admin then approves it (which provisions a
credential record with a one-time password), rejects it, or asks for more
information. All three outcomes are terminal: a request left in
``info_requested`` is not reopened.
"""
import datetime as dt
import logging
import re
import uuid
from typing import Any, Callable

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from dissertation_portal.core.exceptions import (
    InvalidRegistrationState,
    RegistrationConflict,
    RegistrationNotFound,
    RegistrationValidationError,
)
from dissertation_portal.core.permissions import REGISTRABLE_ROLES, Role
from dissertation_portal.core.security import generate_temporary_password, hash_password, utc_now
from dissertation_portal.models.audit_log import AuditAction
from dissertation_portal.models.registration import RegistrationRequest, RegistrationStatus
from dissertation_portal.models.user import User
from dissertation_portal.schemas.registration import RegistrationIn
from dissertation_portal.services.audit import AuditTrail, RequestContext
from dissertation_portal.services.credential_store import CredentialStore, normalize_email

logger = logging.getLogger("uvicorn.error")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Only a pending request can still be decided (approve / reject / request info)
DECIDABLE = {RegistrationStatus.PENDING.value}

RECENT_ACTIVITY_LIMIT = 10


def validate_registration(data: RegistrationIn) -> list[str]:
    """
    Check a registration form and return every violation found.
    An empty list means the form is valid.
    """
    errors: list[str] = []

    if not data.email or not EMAIL_RE.match(data.email.strip()):
        errors.append("Valid email address is required")

    if not data.full_name or len(data.full_name.strip()) < 2:
        errors.append("Full name must be at least 2 characters")

    role = (data.requested_role or "").strip()
    if not role:
        errors.append("Role selection is required")
    elif role not in REGISTRABLE_ROLES:
        errors.append("Requested role is not available for registration")

    if not data.reason_for_request or len(data.reason_for_request.strip()) < 10:
        errors.append("Reason for request must be at least 10 characters")

    if role == Role.STUDENT.value and not data.student_id:
        errors.append("Student ID is required for student role")

    if role in (Role.GUIDE.value, Role.COORDINATOR.value) and not data.employee_id:
        errors.append("Employee ID is required for faculty roles")

    if role == Role.GUIDE.value and (not data.max_students or data.max_students < 1):
        errors.append("Maximum students capacity is required for guide role")

    return errors


class RegistrationWorkflow:
    def __init__(
        self,
        store: CredentialStore,
        audit: AuditTrail,
        *,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.store = store
        self.audit = audit
        self.clock = clock

    # ------------------------------------------------------------------
    # Applicant side
    # ------------------------------------------------------------------
    async def submit(self, data: RegistrationIn, context: RequestContext | None = None) -> RegistrationRequest:
        """
        Validate and store a new request in ``pending`` state.

        Raises:
            RegistrationValidationError: the form has violations
            RegistrationConflict: the email already has a request or an account
        """
        errors = validate_registration(data)
        if errors:
            raise RegistrationValidationError(errors)

        email = normalize_email(data.email)
        if await RegistrationRequest.filter(email=email).exists():
            raise RegistrationConflict("A registration request with this email already exists")
        if await self.store.email_taken(email):
            raise RegistrationConflict("A user with this email already exists")

        try:
            request = await RegistrationRequest.create(
                email=email,
                full_name=data.full_name.strip(),
                requested_role=data.requested_role.strip(),
                department=data.department,
                specialization=data.specialization,
                phone=data.phone,
                student_id=data.student_id,
                employee_id=data.employee_id,
                max_students=data.max_students,
                reason_for_request=data.reason_for_request.strip(),
                status=RegistrationStatus.PENDING.value,
            )
        except IntegrityError:
            # Lost a race against a concurrent submission for the same email
            raise RegistrationConflict("A registration request with this email already exists")

        await self.audit.record(
            AuditAction.REGISTRATION_SUBMITTED,
            f"Registration request submitted for {request.requested_role} role",
            target_email=request.email,
            metadata={
                "full_name": request.full_name,
                "department": request.department,
                "requested_role": request.requested_role,
            },
            context=context,
        )
        logger.info("[onboarding] request submitted id=%s role=%s", request.id, request.requested_role)
        return request

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------
    async def list_requests(self, status: str | None = None) -> list[RegistrationRequest]:
        qs = RegistrationRequest.all().order_by("-submitted_at")
        if status:
            qs = qs.filter(status=status)
        return await qs

    async def get_request(self, request_id: str) -> RegistrationRequest:
        request = await self._find(request_id)
        if request is None:
            raise RegistrationNotFound(request_id)
        return request

    async def approve(
        self,
        request_id: str,
        admin_id: str,
        comments: str | None = None,
        context: RequestContext | None = None,
    ) -> User:
        """
        Approve a request and provision its account.

        The one-time password is only ever exposed through the metadata of
        the ``account_created`` audit entry, for out-of-band delivery.
        """
        temp_password = generate_temporary_password()
        now = self.clock()
        async with in_transaction() as conn:
            request = await self._find(request_id, conn=conn, for_update=True)
            if request is None:
                raise RegistrationNotFound(request_id)
            self._ensure_decidable(request, "approve")
            if await self.store.email_taken(request.email, using_db=conn):
                raise RegistrationConflict("A user with this email already exists")

            try:
                user = await self.store.create(
                    email=request.email,
                    password_hash=hash_password(temp_password, request.email),
                    role=request.requested_role,
                    full_name=request.full_name,
                    department=request.department,
                    specialization=request.specialization,
                    phone=request.phone,
                    employee_id=request.employee_id,
                    student_id=request.student_id,
                    max_students=request.max_students,
                    current_students=0,
                    is_active=True,
                    created_by=admin_id,
                    using_db=conn,
                )
            except IntegrityError:
                raise RegistrationConflict("A user with this email already exists")

            request.status = RegistrationStatus.APPROVED.value
            request.reviewed_at = now
            request.reviewed_by = admin_id
            request.admin_comments = comments
            await request.save(using_db=conn)

        await self.audit.record(
            AuditAction.REGISTRATION_APPROVED,
            f"Registration approved and account created for {request.full_name}",
            admin_id=admin_id,
            target_email=request.email,
            metadata={"user_id": str(user.id), "role": user.role, "admin_comments": comments},
            context=context,
        )
        await self.audit.record(
            AuditAction.ACCOUNT_CREATED,
            f"User account created with {user.role} role",
            admin_id=admin_id,
            user_id=str(user.id),
            target_email=user.email,
            metadata={
                "full_name": user.full_name,
                "department": user.department,
                "temporary_password": temp_password,
            },
            context=context,
        )
        logger.info(
            "[onboarding] request approved id=%s user_id=%s by admin=%s (temporary password in audit log)",
            request.id,
            user.id,
            admin_id,
        )
        return user

    async def reject(
        self,
        request_id: str,
        admin_id: str,
        comments: str,
        context: RequestContext | None = None,
    ) -> RegistrationRequest:
        async with in_transaction() as conn:
            request = await self._find(request_id, conn=conn, for_update=True)
            if request is None:
                raise RegistrationNotFound(request_id)
            if not comments or not comments.strip():
                raise RegistrationValidationError(["Comments are required when rejecting a request"])
            self._ensure_decidable(request, "reject")

            request.status = RegistrationStatus.REJECTED.value
            request.reviewed_at = self.clock()
            request.reviewed_by = admin_id
            request.admin_comments = comments.strip()
            await request.save(using_db=conn)

        await self.audit.record(
            AuditAction.REGISTRATION_REJECTED,
            f"Registration rejected for {request.full_name}",
            admin_id=admin_id,
            target_email=request.email,
            metadata={"requested_role": request.requested_role, "admin_comments": request.admin_comments},
            context=context,
        )
        logger.info("[onboarding] request rejected id=%s by admin=%s", request.id, admin_id)
        return request

    async def request_info(
        self,
        request_id: str,
        admin_id: str,
        info: str,
        context: RequestContext | None = None,
    ) -> RegistrationRequest:
        async with in_transaction() as conn:
            request = await self._find(request_id, conn=conn, for_update=True)
            if request is None:
                raise RegistrationNotFound(request_id)
            if not info or not info.strip():
                raise RegistrationValidationError(["Please describe the information you need from the applicant"])
            self._ensure_decidable(request, "request information on")

            request.status = RegistrationStatus.INFO_REQUESTED.value
            request.reviewed_at = self.clock()
            request.reviewed_by = admin_id
            request.additional_info_requested = info.strip()
            await request.save(using_db=conn)

        await self.audit.record(
            AuditAction.INFO_REQUESTED,
            f"Additional information requested from {request.full_name}",
            admin_id=admin_id,
            target_email=request.email,
            metadata={"info_requested": request.additional_info_requested},
            context=context,
        )
        logger.info("[onboarding] info requested id=%s by admin=%s", request.id, admin_id)
        return request

    async def stats(self) -> dict[str, Any]:
        """Counts per status plus the latest audit activity."""
        counts = {status.value: 0 for status in RegistrationStatus}
        for status in await RegistrationRequest.all().values_list("status", flat=True):
            counts[status] = counts.get(status, 0) + 1
        return {
            "total_requests": sum(counts.values()),
            "pending_requests": counts[RegistrationStatus.PENDING.value],
            "approved_requests": counts[RegistrationStatus.APPROVED.value],
            "rejected_requests": counts[RegistrationStatus.REJECTED.value],
            "info_requested": counts[RegistrationStatus.INFO_REQUESTED.value],
            "recent_activity": await self.audit.recent(limit=RECENT_ACTIVITY_LIMIT),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    async def _find(request_id: str, conn=None, for_update: bool = False) -> RegistrationRequest | None:
        try:
            uuid.UUID(str(request_id))
        except ValueError:
            # Not a well-formed id, so it cannot name an existing request
            return None
        qs = RegistrationRequest.all()
        if conn is not None:
            qs = qs.using_db(conn)
        if for_update:
            qs = qs.select_for_update()
        return await qs.get_or_none(id=request_id)

    @staticmethod
    def _ensure_decidable(request: RegistrationRequest, action: str) -> None:
        if request.status not in DECIDABLE:
            raise InvalidRegistrationState(f"Cannot {action} a request that is already {request.status}")

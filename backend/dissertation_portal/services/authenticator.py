# dissertation_portal/services/authenticator.py
"""
Login state machine.

One attempt walks a fixed sequence of checks; each can end the attempt:

    presence -> email syntax -> lookup -> lockout -> active -> password
             -> role match -> success

Outcomes are returned as values (``AuthSuccess`` or ``AuthError``), never
raised. Unknown email and wrong password share one message so a caller
cannot tell which factor failed.
"""
import datetime as dt
import logging
import math
import re
from typing import Callable

from tortoise.exceptions import DBConnectionError, OperationalError

from dissertation_portal.config import settings
from dissertation_portal.core.permissions import permissions_for
from dissertation_portal.core.security import issue_token, utc_now, verify_password
from dissertation_portal.models.audit_log import AuditAction
from dissertation_portal.models.user import User
from dissertation_portal.schemas.auth import (
    AuthError,
    AuthErrorType,
    AuthSuccess,
    LoginRequest,
    public_user,
)
from dissertation_portal.services.audit import AuditTrail, RequestContext
from dissertation_portal.services.credential_store import CredentialStore, normalize_email

logger = logging.getLogger("uvicorn.error")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MSG_FIELDS_REQUIRED = "Email, password and role are all required."
MSG_INVALID_EMAIL = "Please enter a valid email address."
MSG_INVALID_CREDENTIALS = "Invalid email or password. Please check your credentials and try again."
MSG_ACCOUNT_DISABLED = "Your account has been disabled. Please contact the administrator."
MSG_NETWORK_ERROR = "Network error occurred. Please check your connection and try again."


def _role_label(role: str) -> str:
    return role.replace("_", " ")


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class Authenticator:
    def __init__(
        self,
        store: CredentialStore,
        audit: AuditTrail,
        *,
        max_failed_attempts: int | None = None,
        lockout_minutes: int | None = None,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.store = store
        self.audit = audit
        self.max_failed_attempts = (
            settings.max_failed_login_attempts if max_failed_attempts is None else max_failed_attempts
        )
        self.lockout = dt.timedelta(
            minutes=settings.account_lockout_minutes if lockout_minutes is None else lockout_minutes
        )
        self.clock = clock

    async def authenticate(
        self,
        credentials: LoginRequest,
        context: RequestContext | None = None,
    ) -> AuthSuccess | AuthError:
        """
        Run one login attempt to completion.

        Every attempt is recorded as ``login_attempt`` before any validation,
        so even malformed attempts show up in the audit trail.
        """
        try:
            return await self._authenticate(credentials, context)
        except (DBConnectionError, OperationalError):
            logger.exception("[auth] credential store unavailable during login")
            return AuthError(type=AuthErrorType.NETWORK_ERROR, message=MSG_NETWORK_ERROR)

    async def _authenticate(self, credentials: LoginRequest, context: RequestContext | None) -> AuthSuccess | AuthError:
        email = normalize_email(credentials.email)
        claimed_role = (credentials.role or "").strip()

        await self.audit.record(
            AuditAction.LOGIN_ATTEMPT,
            f"Login attempt for {_role_label(claimed_role) or 'unspecified'} role",
            target_email=email or None,
            metadata={"attempted_role": claimed_role or None},
            context=context,
        )

        # 1) All fields present
        if not email or not credentials.password or not claimed_role:
            return AuthError(type=AuthErrorType.INVALID_CREDENTIALS, message=MSG_FIELDS_REQUIRED)

        # 2) Email syntax
        if not EMAIL_RE.match(email):
            return AuthError(type=AuthErrorType.INVALID_CREDENTIALS, message=MSG_INVALID_EMAIL)

        # 3) Lookup; same wording as a wrong password
        user = await self.store.get_by_email(email)
        if user is None:
            logger.info("[auth] login for unknown email")
            return AuthError(type=AuthErrorType.INVALID_CREDENTIALS, message=MSG_INVALID_CREDENTIALS)

        # 4) Lockout
        now = self.clock()
        if user.account_locked_until is not None:
            locked_until = _as_utc(user.account_locked_until)
            if locked_until > now:
                logger.warning("[auth] attempt on locked account user_id=%s", user.id)
                return AuthError(type=AuthErrorType.ACCOUNT_LOCKED, message=self._locked_message(locked_until, now))
            user = await self.store.release_expired_lock(user)

        # 5) Active
        if not user.is_active:
            return AuthError(type=AuthErrorType.ACCOUNT_DISABLED, message=MSG_ACCOUNT_DISABLED)

        # 6) Password
        if not verify_password(credentials.password, user.email, user.password_hash):
            user = await self._record_failure(user, now)
            await self.audit.record(
                AuditAction.LOGIN_FAILED,
                "Login failed: invalid password",
                user_id=str(user.id),
                target_email=user.email,
                metadata={"reason": "invalid_password", "failed_attempts": user.failed_login_attempts},
                context=context,
            )
            return AuthError(type=AuthErrorType.INVALID_CREDENTIALS, message=MSG_INVALID_CREDENTIALS)

        # 7) Role match
        if user.role != claimed_role:
            user = await self._record_failure(user, now)
            logger.warning(
                "[auth] role spoofing user_id=%s assigned=%s attempted=%s", user.id, user.role, claimed_role
            )
            await self.audit.record(
                AuditAction.LOGIN_FAILED,
                f"Login failed: role mismatch (attempted {_role_label(claimed_role)})",
                user_id=str(user.id),
                target_email=user.email,
                metadata={
                    "reason": "role_spoofing",
                    "assigned_role": user.role,
                    "attempted_role": claimed_role,
                    "failed_attempts": user.failed_login_attempts,
                },
                context=context,
            )
            return AuthError(
                type=AuthErrorType.ROLE_MISMATCH,
                message=f"Access denied. Your account is not authorized for the {_role_label(claimed_role)} role.",
            )

        # 8) Success
        user = await self.store.register_success(user, now=now)
        await self.audit.record(
            AuditAction.LOGIN_SUCCESS,
            f"User logged in as {_role_label(user.role)}",
            user_id=str(user.id),
            target_email=user.email,
            metadata={"role": user.role},
            context=context,
        )
        token = issue_token(str(user.id), user.role)
        logger.info("[auth] login success user_id=%s role=%s session=%s", user.id, user.role, token.session_id)
        return AuthSuccess(
            user=public_user(user),
            token=token,
            permissions=sorted(permissions_for(user.role)),
        )

    async def _record_failure(self, user: User, now: dt.datetime) -> User:
        user = await self.store.register_failure(
            user,
            now=now,
            max_attempts=self.max_failed_attempts,
            lockout=self.lockout,
        )
        if user.failed_login_attempts >= self.max_failed_attempts:
            logger.warning(
                "[auth] account locked user_id=%s after %s failed attempts", user.id, user.failed_login_attempts
            )
        return user

    @staticmethod
    def _locked_message(locked_until: dt.datetime, now: dt.datetime) -> str:
        minutes = max(1, math.ceil((locked_until - now).total_seconds() / 60))
        return (
            "Your account is temporarily locked due to repeated failed login attempts. "
            f"Please try again in {minutes} minute{'s' if minutes != 1 else ''}."
        )

"""
Unit tests for the login state machine.
"""
import pytest
from tortoise.exceptions import DBConnectionError

from dissertation_portal.models.audit_log import AuditAction
from dissertation_portal.models.user import User
from dissertation_portal.schemas.auth import AuthError, AuthErrorType, AuthSuccess, LoginRequest
from dissertation_portal.services.audit import AuditTrail
from dissertation_portal.services.authenticator import (
    MSG_FIELDS_REQUIRED,
    MSG_INVALID_CREDENTIALS,
    MSG_INVALID_EMAIL,
    Authenticator,
)
from dissertation_portal.services.credential_store import CredentialStore


pytestmark = pytest.mark.asyncio


@pytest.fixture
def authenticator(clock):
    return Authenticator(CredentialStore(), AuditTrail(), clock=clock)


def _login(email="", password="", role=""):
    return LoginRequest(email=email, password=password, role=role)


async def test_successful_login(db, authenticator, create_user):
    user, password = await create_user(role="guide")

    result = await authenticator.authenticate(_login(user.email, password, "guide"))

    assert isinstance(result, AuthSuccess)
    assert result.user.id == str(user.id)
    assert result.user.role == "guide"
    assert result.token.user_id == str(user.id)
    assert result.token.role == "guide"
    assert "view_assigned_students" in result.permissions
    assert result.permissions == sorted(result.permissions)

    stored = await User.get(id=user.id)
    assert stored.last_login is not None
    assert stored.failed_login_attempts == 0


async def test_success_writes_attempt_then_success(db, authenticator, create_user):
    user, password = await create_user(role="student")
    await authenticator.authenticate(_login(user.email, password, "student"))

    rows = await AuditTrail().recent()
    assert [r.action_type for r in rows] == [AuditAction.LOGIN_SUCCESS.value, AuditAction.LOGIN_ATTEMPT.value]
    assert rows[0].user_id == str(user.id)


async def test_email_is_case_insensitive(db, authenticator, create_user):
    user, password = await create_user(role="student", email="mixed.case@university.edu")

    result = await authenticator.authenticate(_login("Mixed.Case@University.EDU", password, "student"))

    assert isinstance(result, AuthSuccess)


@pytest.mark.parametrize(
    "credentials",
    [
        {"email": "", "password": "x", "role": "student"},
        {"email": "a@u.edu", "password": "", "role": "student"},
        {"email": "a@u.edu", "password": "x", "role": ""},
    ],
)
async def test_missing_fields(db, authenticator, credentials):
    result = await authenticator.authenticate(_login(**credentials))

    assert isinstance(result, AuthError)
    assert result.type is AuthErrorType.INVALID_CREDENTIALS
    assert result.message == MSG_FIELDS_REQUIRED
    # The attempt is still audited
    rows = await AuditTrail().recent()
    assert [r.action_type for r in rows] == [AuditAction.LOGIN_ATTEMPT.value]


async def test_malformed_email(db, authenticator):
    result = await authenticator.authenticate(_login("not-an-email", "x", "student"))

    assert result.type is AuthErrorType.INVALID_CREDENTIALS
    assert result.message == MSG_INVALID_EMAIL


async def test_unknown_email_and_wrong_password_look_the_same(db, authenticator, create_user):
    user, _ = await create_user(role="student")

    unknown = await authenticator.authenticate(_login("nobody@university.edu", "whatever", "student"))
    wrong = await authenticator.authenticate(_login(user.email, "whatever", "student"))

    assert unknown.type is wrong.type is AuthErrorType.INVALID_CREDENTIALS
    assert unknown.message == wrong.message == MSG_INVALID_CREDENTIALS


async def test_wrong_password_counts_failure(db, authenticator, create_user):
    user, _ = await create_user(role="student")

    await authenticator.authenticate(_login(user.email, "bad", "student"))

    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 1
    assert stored.account_locked_until is None

    failed = await AuditTrail().recent(action=AuditAction.LOGIN_FAILED)
    assert len(failed) == 1
    assert failed[0].metadata["reason"] == "invalid_password"


async def test_role_spoofing(db, authenticator, create_user):
    user, password = await create_user(role="student")

    result = await authenticator.authenticate(_login(user.email, password, "admin"))

    assert result.type is AuthErrorType.ROLE_MISMATCH
    assert result.message == "Access denied. Your account is not authorized for the admin role."

    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 1

    failed = await AuditTrail().recent(action=AuditAction.LOGIN_FAILED)
    assert failed[0].metadata["reason"] == "role_spoofing"
    assert failed[0].metadata["assigned_role"] == "student"
    assert failed[0].metadata["attempted_role"] == "admin"


async def test_role_label_uses_spaces(db, authenticator, create_user):
    user, password = await create_user(role="student")

    result = await authenticator.authenticate(_login(user.email, password, "ethics_committee"))

    assert "ethics committee role" in result.message


async def test_lockout_after_five_mixed_failures(db, authenticator, create_user, clock):
    user, password = await create_user(role="student")

    for _ in range(3):
        await authenticator.authenticate(_login(user.email, "bad", "student"))
    for _ in range(2):
        await authenticator.authenticate(_login(user.email, password, "coordinator"))

    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 5
    assert stored.account_locked_until is not None

    # Even the correct password is refused while locked
    result = await authenticator.authenticate(_login(user.email, password, "student"))
    assert result.type is AuthErrorType.ACCOUNT_LOCKED
    assert "30 minutes" in result.message


async def test_lock_message_counts_remaining_minutes(db, authenticator, create_user, clock):
    user, _ = await create_user(role="student")
    for _ in range(5):
        await authenticator.authenticate(_login(user.email, "bad", "student"))

    clock.advance(minutes=29, seconds=30)
    result = await authenticator.authenticate(_login(user.email, "bad", "student"))

    assert result.type is AuthErrorType.ACCOUNT_LOCKED
    assert "1 minute." in result.message


async def test_expired_lock_allows_login(db, authenticator, create_user, clock):
    user, password = await create_user(role="student")
    for _ in range(5):
        await authenticator.authenticate(_login(user.email, "bad", "student"))

    clock.advance(minutes=31)
    result = await authenticator.authenticate(_login(user.email, password, "student"))

    assert isinstance(result, AuthSuccess)
    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 0
    assert stored.account_locked_until is None


async def test_expired_lock_starts_fresh_window(db, authenticator, create_user, clock):
    user, _ = await create_user(role="student")
    for _ in range(5):
        await authenticator.authenticate(_login(user.email, "bad", "student"))

    clock.advance(minutes=31)
    result = await authenticator.authenticate(_login(user.email, "bad", "student"))

    assert result.type is AuthErrorType.INVALID_CREDENTIALS
    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 1
    assert stored.account_locked_until is None


async def test_success_resets_failure_counter(db, authenticator, create_user):
    user, password = await create_user(role="student")
    for _ in range(4):
        await authenticator.authenticate(_login(user.email, "bad", "student"))

    result = await authenticator.authenticate(_login(user.email, password, "student"))

    assert isinstance(result, AuthSuccess)
    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 0


async def test_disabled_account(db, authenticator, create_user):
    user, password = await create_user(role="examiner", is_active=False)

    result = await authenticator.authenticate(_login(user.email, password, "examiner"))

    assert result.type is AuthErrorType.ACCOUNT_DISABLED
    stored = await User.get(id=user.id)
    assert stored.failed_login_attempts == 0


async def test_store_outage_maps_to_network_error(db, clock):
    class BrokenStore(CredentialStore):
        async def get_by_email(self, email):
            raise DBConnectionError("connection refused")

    authenticator = Authenticator(BrokenStore(), AuditTrail(), clock=clock)

    result = await authenticator.authenticate(_login("a@university.edu", "x", "student"))

    assert isinstance(result, AuthError)
    assert result.type is AuthErrorType.NETWORK_ERROR

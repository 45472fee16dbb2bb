import pytest

from dissertation_portal.core.permissions import permissions_for
from dissertation_portal.core.security import MS_PER_HOUR, issue_token, now_ms
from dissertation_portal.models.session import AuthSession
from dissertation_portal.schemas.auth import AuthSuccess, public_user
from dissertation_portal.services.session_manager import SessionManager


pytestmark = pytest.mark.asyncio


class MsClock:
    def __init__(self, start: int):
        self.now = start

    def __call__(self) -> int:
        return self.now


def _success_for(user, issued_at: int) -> AuthSuccess:
    return AuthSuccess(
        user=public_user(user),
        token=issue_token(str(user.id), user.role, now=issued_at),
        permissions=sorted(permissions_for(user.role)),
    )


async def test_start_persists_bundle(db, create_user):
    user, _ = await create_user(role="coordinator")
    sessions = SessionManager()

    session = await sessions.start(_success_for(user, now_ms()))

    row = await AuthSession.get(token=session.token.token)
    assert row.session_id == session.token.session_id
    assert row.role == "coordinator"
    assert row.permissions == session.permissions

    loaded = await sessions.current(session.token.token)
    assert loaded.user.id == str(user.id)
    assert loaded.token == session.token
    assert loaded.permissions == session.permissions


async def test_unknown_or_missing_token(db):
    sessions = SessionManager()
    assert await sessions.current(None) is None
    assert await sessions.current("") is None
    assert await sessions.current("f" * 64) is None


async def test_expired_session_is_purged(db, create_user):
    user, _ = await create_user()
    issued = now_ms()
    session = await SessionManager().start(_success_for(user, issued))

    later = SessionManager(clock_ms=MsClock(issued + 24 * MS_PER_HOUR))
    assert await later.current(session.token.token) is None
    assert await AuthSession.filter(user_id=user.id).count() == 0


async def test_token_rotated_near_expiry(db, create_user):
    user, _ = await create_user()
    issued = now_ms()
    session = await SessionManager().start(_success_for(user, issued))
    old = session.token

    clock = MsClock(issued + 23 * MS_PER_HOUR)
    loaded = await SessionManager(clock_ms=clock).current(old.token)

    assert loaded.token.token != old.token
    assert loaded.token.session_id != old.session_id
    assert loaded.token.expires_at == clock.now + 24 * MS_PER_HOUR
    assert loaded.user.id == str(user.id)

    # The old secret no longer resolves; the new one does
    assert await SessionManager(clock_ms=clock).current(old.token) is None
    again = await SessionManager(clock_ms=clock).current(loaded.token.token)
    assert again.token.token == loaded.token.token


async def test_token_not_rotated_with_time_left(db, create_user):
    user, _ = await create_user()
    issued = now_ms()
    session = await SessionManager().start(_success_for(user, issued))

    loaded = await SessionManager(clock_ms=MsClock(issued + 21 * MS_PER_HOUR)).current(session.token.token)

    assert loaded.token == session.token


async def test_explicit_refresh(db, create_user):
    user, _ = await create_user()
    issued = now_ms()
    sessions = SessionManager(clock_ms=MsClock(issued + MS_PER_HOUR))
    session = await sessions.start(_success_for(user, issued))

    refreshed = await sessions.refresh(session.token.token)

    assert refreshed.token.token != session.token.token
    assert refreshed.token.expires_at > session.token.expires_at
    assert await sessions.current(session.token.token) is None
    assert await sessions.refresh("does-not-exist") is None


async def test_clear_removes_bundle_and_is_idempotent(db, create_user):
    user, _ = await create_user()
    sessions = SessionManager()
    session = await sessions.start(_success_for(user, now_ms()))

    await sessions.clear(session.token.token)
    await sessions.clear(session.token.token)
    await sessions.clear(None)

    assert await sessions.current(session.token.token) is None
    assert await AuthSession.all().count() == 0


async def test_clear_user_revokes_every_session(db, create_user):
    user, _ = await create_user()
    other, _ = await create_user()
    sessions = SessionManager()
    for _ in range(2):
        await sessions.start(_success_for(user, now_ms()))
    kept = await sessions.start(_success_for(other, now_ms()))

    assert await sessions.clear_user(str(user.id)) == 2
    assert await sessions.current(kept.token.token) is not None

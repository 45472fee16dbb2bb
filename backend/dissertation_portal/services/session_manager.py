# dissertation_portal/services/session_manager.py
"""
Session bundle persistence.

A bundle (token + user + permissions + login time) lives in one
``auth_sessions`` row. Loading a bundle validates its token: expired
bundles are purged, bundles close to expiry are refreshed in place.
"""
import datetime as dt
import logging
from typing import Callable

from tortoise.transactions import in_transaction

from dissertation_portal.config import settings
from dissertation_portal.core.security import (
    MS_PER_HOUR,
    now_ms,
    refresh_token,
    remaining_ms,
    validate_token,
)
from dissertation_portal.models.session import AuthSession
from dissertation_portal.schemas.auth import AuthSuccess, SessionData, SessionToken, public_user

logger = logging.getLogger("uvicorn.error")


def _row_token(row: AuthSession) -> SessionToken:
    return SessionToken(
        token=row.token,
        session_id=row.session_id,
        user_id=str(row.user_id),
        role=row.role,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
    )


class SessionManager:
    def __init__(
        self,
        *,
        refresh_threshold_hours: int | None = None,
        clock_ms: Callable[[], int] = now_ms,
    ):
        hours = settings.token_refresh_threshold_hours if refresh_threshold_hours is None else refresh_threshold_hours
        self.refresh_threshold_ms = hours * MS_PER_HOUR
        self.clock_ms = clock_ms

    async def start(self, result: AuthSuccess, login_time: dt.datetime | None = None) -> SessionData:
        """Build the bundle for a fresh login and persist it."""
        session = SessionData(
            token=result.token,
            user=result.user,
            permissions=result.permissions,
            login_time=login_time or dt.datetime.now(dt.timezone.utc),
        )
        await self.save(session)
        return session

    async def save(self, session: SessionData) -> None:
        """
        Persist the bundle as one row, replacing any row for the same session id.
        """
        async with in_transaction() as conn:
            await AuthSession.filter(session_id=session.token.session_id).using_db(conn).delete()
            await AuthSession.create(
                token=session.token.token,
                session_id=session.token.session_id,
                user_id=session.user.id,
                role=session.token.role,
                permissions=list(session.permissions),
                login_time=session.login_time,
                issued_at=session.token.issued_at,
                expires_at=session.token.expires_at,
                using_db=conn,
            )

    async def current(self, token: str | None) -> SessionData | None:
        """
        Load the bundle for ``token``.

        Returns None (and purges the row) when the token has expired. When
        less than the refresh threshold remains, the token is rotated and
        the bundle re-persisted before it is returned.
        """
        if not token:
            return None
        row = await AuthSession.get_or_none(token=token).prefetch_related("user")
        if row is None:
            return None

        now = self.clock_ms()
        current_token = _row_token(row)
        if not validate_token(current_token, now=now):
            logger.info("[session] expired session=%s purged", row.session_id)
            await row.delete()
            return None

        if remaining_ms(current_token, now=now) < self.refresh_threshold_ms:
            current_token = await self._rotate(row, current_token, now)

        return SessionData(
            token=current_token,
            user=public_user(row.user),
            permissions=list(row.permissions or []),
            login_time=row.login_time,
        )

    async def refresh(self, token: str | None) -> SessionData | None:
        """Rotate the token of a still-valid session regardless of remaining life."""
        session = await self.current(token)
        if session is None:
            return None
        if session.token.token != token:
            # Already rotated by the threshold check
            return session
        row = await AuthSession.get(token=token)
        session.token = await self._rotate(row, session.token, self.clock_ms())
        return session

    async def _rotate(self, row: AuthSession, token: SessionToken, now: int) -> SessionToken:
        fresh = refresh_token(token, now=now)
        row.token = fresh.token
        row.session_id = fresh.session_id
        row.issued_at = fresh.issued_at
        row.expires_at = fresh.expires_at
        await row.save(update_fields=["token", "session_id", "issued_at", "expires_at"])
        logger.info("[session] token refreshed user_id=%s session=%s", row.user_id, fresh.session_id)
        return fresh

    async def clear(self, token: str | None) -> None:
        """Remove the whole bundle; permissions go with it. Idempotent."""
        if not token:
            return
        deleted = await AuthSession.filter(token=token).delete()
        if deleted:
            logger.info("[session] session cleared")

    async def clear_user(self, user_id: str) -> int:
        """Revoke every live session of a user (role change, deactivation)."""
        deleted = await AuthSession.filter(user_id=user_id).delete()
        if deleted:
            logger.info("[session] revoked %s sessions for user_id=%s", deleted, user_id)
        return deleted

# dissertation_portal/services/credential_store.py
"""
Repository over credential records.

All lockout counter updates run inside a transaction that holds a row lock
on the user, so concurrent failed logins cannot lose an increment or skip
the lockout.
"""
import datetime as dt
import uuid
from typing import Any

from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from dissertation_portal.models.user import User


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    async def get_by_email(self, email: str) -> User | None:
        return await User.get_or_none(email=normalize_email(email))

    async def get_by_id(self, user_id: str) -> User | None:
        try:
            uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await User.get_or_none(id=user_id)

    async def email_taken(self, email: str, using_db=None) -> bool:
        qs = User.filter(email=normalize_email(email))
        if using_db is not None:
            qs = qs.using_db(using_db)
        return await qs.exists()

    async def create(self, *, email: str, password_hash: str, using_db=None, **fields: Any) -> User:
        """
        Insert a new credential record. Raises ``tortoise.exceptions.IntegrityError``
        when the email is already taken.
        """
        return await User.create(
            using_db=using_db, email=normalize_email(email), password_hash=password_hash, **fields
        )

    async def register_failure(
        self,
        user: User,
        *,
        now: dt.datetime,
        max_attempts: int,
        lockout: dt.timedelta,
    ) -> User:
        """
        Count one failed attempt; lock the account once the threshold is reached.
        """
        async with in_transaction() as conn:
            locked = await User.select_for_update().using_db(conn).get(id=user.id)
            locked.failed_login_attempts = (locked.failed_login_attempts or 0) + 1
            if locked.failed_login_attempts >= max_attempts:
                locked.account_locked_until = now + lockout
            await locked.save(using_db=conn)
        return locked

    async def register_success(self, user: User, *, now: dt.datetime) -> User:
        async with in_transaction() as conn:
            locked = await User.select_for_update().using_db(conn).get(id=user.id)
            locked.failed_login_attempts = 0
            locked.account_locked_until = None
            locked.last_login = now
            await locked.save(using_db=conn)
        return locked

    async def release_expired_lock(self, user: User) -> User:
        """Start a fresh failure window for an account whose lock has run out."""
        async with in_transaction() as conn:
            locked = await User.select_for_update().using_db(conn).get(id=user.id)
            locked.failed_login_attempts = 0
            locked.account_locked_until = None
            await locked.save(using_db=conn)
        return locked

    async def list_users(
        self,
        *,
        q: str | None = None,
        role: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[int, list[User]]:
        qs = User.all().order_by("-created_at")
        if q:
            qs = qs.filter(Q(email__icontains=q) | Q(full_name__icontains=q))
        if role:
            qs = qs.filter(role=role)
        total = await qs.count()
        rows = await qs.offset(offset).limit(limit)
        return total, rows

    async def count_active_admins(self) -> int:
        return await User.filter(role="admin", is_active=True).count()

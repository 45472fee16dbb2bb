# dissertation_portal/core/security.py
"""
Security module for authentication primitives.
Handles password hashing, session token issuing/validation/refresh,
and temporary password generation for newly provisioned accounts.
"""
import datetime as dt
import hashlib
import secrets
import string
import time
import uuid

from passlib.pwd import genword
from passlib.utils import consteq

from dissertation_portal.config import settings
from dissertation_portal.schemas.auth import SessionToken

MS_PER_HOUR = 60 * 60 * 1000

# Alphabet for one-time passwords handed out on registration approval
TEMP_PASSWORD_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits + "!@#$%^&*"


def utc_now() -> dt.datetime:
    """
    Get current UTC datetime with timezone information.
    """
    return dt.datetime.now(dt.timezone.utc)


def now_ms() -> int:
    """Current time as epoch milliseconds (the unit of token expiry)."""
    return int(time.time() * 1000)


def hash_password(password: str, email: str, salt: str | None = None) -> str:
    """
    Hash a password bound to the account's email.

    The digest is SHA-256 over ``password + salt + lowercased(email)``,
    hex-encoded. It is deterministic: the email plus a fixed constant act
    as the salt, so the same inputs always give the same digest.

    Args:
        password: Plain text password
        email: Account email (case-insensitive)
        salt: Static salt constant (defaults to the configured one)

    Returns:
        64 character hexadecimal digest
    """
    salt = settings.password_salt if salt is None else salt
    material = f"{password}{salt}{email.lower()}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def verify_password(password: str, email: str, digest: str, salt: str | None = None) -> bool:
    """
    Recompute the digest for ``password``/``email`` and compare it to ``digest``.

    Returns:
        True if the password matches, False otherwise
    """
    if not digest:
        return False
    return consteq(hash_password(password, email, salt), digest)


def generate_temporary_password(length: int | None = None) -> str:
    """
    Generate a random one-time password for a freshly provisioned account.
    """
    return genword(length=length or settings.temp_password_length, chars=TEMP_PASSWORD_CHARS)


def _new_session_id(issued_at: int) -> str:
    return f"sess_{issued_at:x}_{uuid.uuid4().hex[:12]}"


def issue_token(user_id: str, role: str, *, now: int | None = None, ttl_hours: int | None = None) -> SessionToken:
    """
    Create a bearer session token for an authenticated user.

    The secret is 32 random bytes (hex-encoded). The role is a snapshot
    taken at issuance and never re-derived for the token's lifetime.

    Args:
        user_id: Credential record id
        role: The user's role at issuance time
        now: Issue time in epoch ms (defaults to the current time)
        ttl_hours: Token lifetime (defaults to the configured 24h)
    """
    issued_at = now_ms() if now is None else now
    ttl = settings.token_ttl_hours if ttl_hours is None else ttl_hours
    return SessionToken(
        token=secrets.token_hex(32),
        session_id=_new_session_id(issued_at),
        user_id=user_id,
        role=role,
        issued_at=issued_at,
        expires_at=issued_at + ttl * MS_PER_HOUR,
    )


def validate_token(token: SessionToken | None, *, now: int | None = None) -> bool:
    """
    A token is valid iff it carries a secret and an expiry, and the expiry
    is still in the future. There is no background sweep: expiry is only
    noticed on the next check.
    """
    if token is None or not token.token or not token.expires_at:
        return False
    current = now_ms() if now is None else now
    return token.expires_at > current


def refresh_token(token: SessionToken, *, now: int | None = None, ttl_hours: int | None = None) -> SessionToken:
    """
    Return a new token for the same user and role with a fresh secret,
    session id and expiry. The input token is left untouched.
    """
    return issue_token(token.user_id, token.role, now=now, ttl_hours=ttl_hours)


def remaining_ms(token: SessionToken, *, now: int | None = None) -> int:
    current = now_ms() if now is None else now
    return token.expires_at - current

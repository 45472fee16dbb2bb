# dissertation_portal/schemas/auth.py
"""
Pydantic schemas for authentication and sessions.
Defines login credentials, the session token, the public user projection,
and the typed success/failure results of an authentication attempt.
"""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """
    Credentials for a login attempt.
    Fields default to empty strings so that missing values reach the
    authenticator's own presence check instead of failing request parsing.
    """
    email: str = ""  # Account email (case-insensitive)
    password: str = ""  # Plain text password, hashed server-side
    role: str = ""  # Role the user claims to log in as


class SessionToken(BaseModel):
    """
    Bearer session token. Times are epoch milliseconds.
    The role is the user's role at issuance and is immutable for the token's life.
    """
    token: str  # 64 hex chars (32 random bytes)
    expires_at: int
    issued_at: int
    user_id: str
    role: str
    session_id: str


class UserOut(BaseModel):
    """
    Public projection of a credential record.
    Never carries the password hash or lockout counters.
    """
    id: str
    email: str
    full_name: str
    role: str
    department: Optional[str] = None
    specialization: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None
    student_id: Optional[str] = None
    max_students: Optional[int] = None
    current_students: Optional[int] = None
    is_active: bool = True
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    last_login: Optional[dt.datetime] = None


def public_user(u) -> UserOut:
    """Project a ``User`` model instance onto the public shape."""
    return UserOut(
        id=str(u.id),
        email=u.email,
        full_name=u.full_name,
        role=u.role,
        department=u.department,
        specialization=u.specialization,
        phone=u.phone,
        employee_id=u.employee_id,
        student_id=u.student_id,
        max_students=u.max_students,
        current_students=u.current_students,
        is_active=u.is_active,
        created_at=u.created_at,
        updated_at=u.updated_at,
        last_login=u.last_login,
    )


class AuthErrorType(str, Enum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ROLE_MISMATCH = "ROLE_MISMATCH"
    NETWORK_ERROR = "NETWORK_ERROR"


class AuthError(BaseModel):
    """Typed authentication failure; ``message`` is safe to show to the end user."""
    type: AuthErrorType
    message: str


class AuthSuccess(BaseModel):
    """Result of a successful authentication."""
    user: UserOut
    token: SessionToken
    permissions: list[str] = Field(default_factory=list)


class SessionData(BaseModel):
    """
    Session bundle persisted and cleared as one unit.
    """
    token: SessionToken
    user: UserOut
    permissions: list[str] = Field(default_factory=list)
    login_time: dt.datetime


class LoginResponse(BaseModel):
    """
    Response body for a successful login.
    ``accessToken`` repeats the token secret for clients that use the
    Authorization header instead of the cookie.
    """
    user: UserOut
    token: SessionToken
    permissions: list[str]
    accessToken: str

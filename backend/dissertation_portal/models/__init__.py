"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Credential record (login, profile, lockout counters)
- RegistrationRequest: Onboarding application awaiting admin review
- AuditLog: Append-only, capped audit trail entry
- AuthSession: Persisted session bundle for one login
"""
from .user import User
from .registration import RegistrationRequest, RegistrationStatus
from .audit_log import AuditLog, AuditAction
from .session import AuthSession

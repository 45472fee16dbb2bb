"""
Services Module

Stateful building blocks behind the API routers:
- AuditTrail: append-only, capped audit log
- CredentialStore: repository over credential records and lockout counters
- Authenticator: the login state machine
- SessionManager: persisted session bundles, refresh and purge
- RegistrationWorkflow: onboarding requests and account provisioning
- UserAdministration: admin role changes and account deactivation
"""
from .audit import AuditTrail, RequestContext
from .credential_store import CredentialStore, normalize_email
from .authenticator import Authenticator
from .session_manager import SessionManager
from .registration import RegistrationWorkflow, validate_registration
from .user_admin import UserAdministration

# dissertation_portal/core/exceptions.py
"""
Domain errors raised by the onboarding workflow and admin user management.

These represent caller contract violations (unknown ids, duplicate emails,
invalid input). Authentication failures are not exceptions: the
authenticator returns an ``AuthError`` value instead.
"""


class OnboardingError(Exception):
    """Base class: carries a machine-readable code and a human message."""

    code = "ONBOARDING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class RegistrationValidationError(OnboardingError):
    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors) or "Invalid registration data")
        self.errors = list(errors)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["errors"] = self.errors
        return detail


class RegistrationNotFound(OnboardingError):
    code = "NOT_FOUND"

    def __init__(self, request_id: str):
        super().__init__("Registration request not found")
        self.request_id = request_id


class RegistrationConflict(OnboardingError):
    code = "CONFLICT"


class InvalidRegistrationState(OnboardingError):
    code = "INVALID_STATE"


class UserNotFound(OnboardingError):
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id


class UserUpdateForbidden(OnboardingError):
    """Admin user edits that would lock the system out (self-demotion, last admin)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code

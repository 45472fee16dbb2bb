# dissertation_portal/models/user.py
"""
Database model for credential records.
Represents an account in the portal: login credentials, profile information,
role, lockout counters and audit provenance.
"""
import uuid
from tortoise import fields, models


class User(models.Model):
    """
    Credential record.

    Security:
    - Password is stored as a salted SHA-256 digest bound to the email
    - Email is stored lowercased and must be unique across all users
    - Accounts are never deleted; is_active=False is the only removal path
    - failed_login_attempts resets to 0 on every successful login
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: opaque user identifier
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login email (lowercased, unique)
    password_hash = fields.CharField(max_length=64)  # Hex digest, never plain text
    role = fields.CharField(max_length=32)  # One of the Role enum values
    full_name = fields.CharField(max_length=256)

    # Optional profile details
    department = fields.CharField(max_length=256, null=True)
    specialization = fields.CharField(max_length=256, null=True)
    phone = fields.CharField(max_length=64, null=True)
    employee_id = fields.CharField(max_length=64, null=True)
    student_id = fields.CharField(max_length=64, null=True)

    # Guide capacity
    max_students = fields.IntField(null=True)
    current_students = fields.IntField(null=True)

    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)
    created_by = fields.CharField(max_length=64, null=True)  # Id of the admin who provisioned the account

    # Login bookkeeping
    last_login = fields.DatetimeField(null=True)
    failed_login_attempts = fields.IntField(default=0)  # Consecutive failures (bad password or role mismatch)
    account_locked_until = fields.DatetimeField(null=True)  # Set when the failure threshold is reached

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

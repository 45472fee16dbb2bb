# dissertation_portal/models/audit_log.py
from enum import Enum
from tortoise import fields, models


class AuditAction(str, Enum):
    REGISTRATION_SUBMITTED = "registration_submitted"
    REGISTRATION_APPROVED = "registration_approved"
    REGISTRATION_REJECTED = "registration_rejected"
    INFO_REQUESTED = "info_requested"
    LOGIN_ATTEMPT = "login_attempt"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    ACCOUNT_CREATED = "account_created"
    ROLE_ASSIGNED = "role_assigned"
    ACCOUNT_DISABLED = "account_disabled"


class AuditLog(models.Model):
    """
    Append-only audit event.
    - id: auto-increment append sequence; higher id means more recent
    - entries are never edited; only the oldest are pruned beyond the cap
    """
    id = fields.IntField(pk=True)
    action_type = fields.CharField(max_length=32, index=True)
    user_id = fields.CharField(max_length=64, null=True)
    admin_id = fields.CharField(max_length=64, null=True)
    target_email = fields.CharField(max_length=256, null=True)
    details = fields.TextField()
    ip_address = fields.CharField(max_length=64, null=True)
    user_agent = fields.CharField(max_length=512, null=True)
    timestamp = fields.DatetimeField(auto_now_add=True)
    metadata = fields.JSONField(null=True)

    class Meta:
        table = "audit_logs"
        ordering = ["-id"]

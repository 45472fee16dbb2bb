# dissertation_portal/models/session.py
import uuid
from tortoise import fields, models


class AuthSession(models.Model):
    """
    Persisted session bundle: token + user + permissions + login time.

    One row per live login. The row is written and deleted as a unit, so
    logging out can never leave a stale permission list behind.
    - token: 64 hex chars (32 random bytes), looked up on every request
    - role: snapshot taken at login, not re-derived from the user row
    - issued_at / expires_at: epoch milliseconds
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    token = fields.CharField(max_length=64, unique=True, index=True)
    session_id = fields.CharField(max_length=64, unique=True)
    user = fields.ForeignKeyField("models.User", related_name="sessions", on_delete=fields.CASCADE)
    role = fields.CharField(max_length=32)
    permissions = fields.JSONField(default=list)
    login_time = fields.DatetimeField()
    issued_at = fields.BigIntField()
    expires_at = fields.BigIntField(index=True)

    class Meta:
        table = "auth_sessions"

# dissertation_portal/models/registration.py
import uuid
from enum import Enum
from tortoise import fields, models


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUESTED = "info_requested"


class RegistrationRequest(models.Model):
    """
    Onboarding application awaiting an admin decision.
    - email: lowercased, unique among all requests regardless of status
    - status: pending -> approved | rejected | info_requested
    - reviewed_*: filled in by whichever admin acted on the request
    - applicant_response: reserved, nothing writes it yet
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    email = fields.CharField(max_length=256, unique=True, index=True)
    full_name = fields.CharField(max_length=256)
    requested_role = fields.CharField(max_length=32)

    department = fields.CharField(max_length=256, null=True)
    specialization = fields.CharField(max_length=256, null=True)
    phone = fields.CharField(max_length=64, null=True)
    student_id = fields.CharField(max_length=64, null=True)
    employee_id = fields.CharField(max_length=64, null=True)
    max_students = fields.IntField(null=True)
    reason_for_request = fields.TextField()

    status = fields.CharField(max_length=16, default=RegistrationStatus.PENDING.value, index=True)
    submitted_at = fields.DatetimeField(auto_now_add=True)
    reviewed_at = fields.DatetimeField(null=True)
    reviewed_by = fields.CharField(max_length=64, null=True)
    admin_comments = fields.TextField(null=True)
    additional_info_requested = fields.TextField(null=True)
    applicant_response = fields.TextField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "registration_requests"

# dissertation_portal/schemas/registration.py
"""
Pydantic schemas for the onboarding (registration request) endpoints.
"""
import datetime as dt
from typing import Optional

from pydantic import BaseModel


class RegistrationIn(BaseModel):
    """
    Registration form submitted by an applicant.
    Every field is optional at the parsing level: the workflow validates the
    whole form and reports all violations at once.
    """
    email: Optional[str] = None
    full_name: Optional[str] = None
    requested_role: Optional[str] = None
    department: Optional[str] = None
    specialization: Optional[str] = None
    phone: Optional[str] = None
    student_id: Optional[str] = None
    employee_id: Optional[str] = None
    max_students: Optional[int] = None
    reason_for_request: Optional[str] = None


class RegistrationOut(BaseModel):
    id: str
    email: str
    full_name: str
    requested_role: str
    department: Optional[str] = None
    specialization: Optional[str] = None
    phone: Optional[str] = None
    student_id: Optional[str] = None
    employee_id: Optional[str] = None
    max_students: Optional[int] = None
    reason_for_request: str
    status: str
    submitted_at: Optional[dt.datetime] = None
    reviewed_at: Optional[dt.datetime] = None
    reviewed_by: Optional[str] = None
    admin_comments: Optional[str] = None
    additional_info_requested: Optional[str] = None
    applicant_response: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


def registration_to_out(r) -> RegistrationOut:
    return RegistrationOut(
        id=str(r.id),
        email=r.email,
        full_name=r.full_name,
        requested_role=r.requested_role,
        department=r.department,
        specialization=r.specialization,
        phone=r.phone,
        student_id=r.student_id,
        employee_id=r.employee_id,
        max_students=r.max_students,
        reason_for_request=r.reason_for_request,
        status=r.status,
        submitted_at=r.submitted_at,
        reviewed_at=r.reviewed_at,
        reviewed_by=r.reviewed_by,
        admin_comments=r.admin_comments,
        additional_info_requested=r.additional_info_requested,
        applicant_response=r.applicant_response,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


class ApproveIn(BaseModel):
    comments: Optional[str] = None  # Optional note from the reviewing admin


class RejectIn(BaseModel):
    comments: str = ""  # Required; checked by the workflow


class RequestInfoIn(BaseModel):
    info: str = ""  # What the applicant still needs to provide


class RegistrationListOut(BaseModel):
    items: list[RegistrationOut]
    total: int

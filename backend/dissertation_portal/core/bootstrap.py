# dissertation_portal/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles first-start setup: creating the default admin account and,
for demos, seeding one account per role.
"""
import logging

from dissertation_portal.config import settings
from dissertation_portal.core.permissions import Role
from dissertation_portal.core.security import hash_password
from dissertation_portal.models.user import User

logger = logging.getLogger("uvicorn.error")

DEMO_PASSWORD = "demo123"

DEMO_USERS = [
    {
        "email": "admin@university.edu",
        "role": Role.ADMIN.value,
        "full_name": "System Administrator",
        "department": "IT Department",
        "employee_id": "EMP001",
    },
    {
        "email": "coordinator@university.edu",
        "role": Role.COORDINATOR.value,
        "full_name": "Dr. Robert Johnson",
        "department": "Computer Science",
        "employee_id": "EMP002",
    },
    {
        "email": "guide@university.edu",
        "role": Role.GUIDE.value,
        "full_name": "Dr. Jane Smith",
        "department": "Computer Science",
        "specialization": "Artificial Intelligence",
        "employee_id": "EMP003",
        "max_students": 8,
        "current_students": 5,
    },
    {
        "email": "student@university.edu",
        "role": Role.STUDENT.value,
        "full_name": "John Doe",
        "department": "Computer Science",
        "specialization": "Machine Learning",
        "student_id": "CS2024001",
    },
    {
        "email": "ethics@university.edu",
        "role": Role.ETHICS_COMMITTEE.value,
        "full_name": "Dr. Sarah Wilson",
        "department": "Ethics Committee",
        "employee_id": "EMP004",
    },
    {
        "email": "examiner@university.edu",
        "role": Role.EXAMINER.value,
        "full_name": "Dr. Michael Brown",
        "department": "Computer Science",
        "employee_id": "EMP005",
    },
]


async def ensure_default_admin() -> None:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with role="admin"
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_EMAIL    (default: "admin@university.edu")
      ADMIN_NAME     (default: "System Administrator")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    if await User.filter(role=Role.ADMIN.value).exists():
        return

    if not settings.admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    email = settings.admin_email.strip().lower()
    if await User.filter(email=email).exists():
        logger.warning("[bootstrap] ADMIN_EMAIL %s belongs to a non-admin account -> skip.", email)
        return

    u = await User.create(
        email=email,
        password_hash=hash_password(settings.admin_password, email),
        role=Role.ADMIN.value,
        full_name=settings.admin_name,
        is_active=True,
        created_by="bootstrap",
    )
    logger.warning("[bootstrap] Created default admin -> email=%s id=%s", u.email, u.id)


async def seed_demo_users(enabled: bool | None = None) -> int:
    """
    Create one demo account per role when the user table is empty.
    All demo accounts share the password ``demo123``.

    Returns:
        Number of accounts created
    """
    if not (settings.seed_demo_users if enabled is None else enabled):
        return 0
    if await User.all().exists():
        return 0

    for account in DEMO_USERS:
        await User.create(
            password_hash=hash_password(DEMO_PASSWORD, account["email"]),
            phone="+1-555-0123",
            is_active=True,
            created_by="seed",
            **account,
        )
    logger.warning("[bootstrap] Seeded %s demo accounts", len(DEMO_USERS))
    return len(DEMO_USERS)

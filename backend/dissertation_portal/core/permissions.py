# dissertation_portal/core/permissions.py
"""
Role-based permissions.

Permissions are never stored: they are a pure function of the role.
Unknown roles resolve to an empty set, so every check denies by default.
"""
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    COORDINATOR = "coordinator"
    GUIDE = "guide"
    STUDENT = "student"
    ETHICS_COMMITTEE = "ethics_committee"
    EXAMINER = "examiner"


# Roles an applicant may ask for through the onboarding form
REGISTRABLE_ROLES = frozenset(
    {
        Role.STUDENT.value,
        Role.GUIDE.value,
        Role.COORDINATOR.value,
        Role.ETHICS_COMMITTEE.value,
        Role.EXAMINER.value,
    }
)


class Permission:
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_USERS = "manage_users"
    MANAGE_ONBOARDING = "manage_onboarding"
    VIEW_ALL_TOPICS = "view_all_topics"
    MANAGE_TOPICS = "manage_topics"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    MANAGE_APPROVALS = "manage_approvals"
    VIEW_PUBLICATIONS = "view_publications"
    MANAGE_PUBLICATIONS = "manage_publications"
    VIEW_AUDIT_LOGS = "view_audit_logs"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_STUDENTS = "view_students"
    VIEW_GUIDES = "view_guides"
    VIEW_REPORTS = "view_reports"
    VIEW_ASSIGNED_STUDENTS = "view_assigned_students"
    REVIEW_STUDENT_TOPICS = "review_student_topics"
    TRACK_PROGRESS = "track_progress"
    MANAGE_OWN_TOPIC = "manage_own_topic"
    VIEW_ASSIGNED_GUIDES = "view_assigned_guides"
    PERFORM_ETHICS_REVIEW = "perform_ethics_review"
    VIEW_REVIEW_TOPICS = "view_review_topics"
    EVALUATE_DISSERTATIONS = "evaluate_dissertations"
    VIEW_EXAMINATION_TOPICS = "view_examination_topics"


ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMIN: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.MANAGE_USERS,
            Permission.MANAGE_ONBOARDING,
            Permission.VIEW_ALL_TOPICS,
            Permission.MANAGE_ASSIGNMENTS,
            Permission.MANAGE_APPROVALS,
            Permission.VIEW_PUBLICATIONS,
            Permission.VIEW_AUDIT_LOGS,
            Permission.MANAGE_SETTINGS,
        }
    ),
    Role.COORDINATOR: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.MANAGE_TOPICS,
            Permission.MANAGE_ASSIGNMENTS,
            Permission.VIEW_STUDENTS,
            Permission.VIEW_GUIDES,
            Permission.MANAGE_APPROVALS,
            Permission.VIEW_REPORTS,
        }
    ),
    Role.GUIDE: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.VIEW_ASSIGNED_STUDENTS,
            Permission.REVIEW_STUDENT_TOPICS,
            Permission.TRACK_PROGRESS,
            Permission.VIEW_PUBLICATIONS,
        }
    ),
    Role.STUDENT: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.MANAGE_OWN_TOPIC,
            Permission.TRACK_PROGRESS,
            Permission.MANAGE_PUBLICATIONS,
            Permission.VIEW_ASSIGNED_GUIDES,
        }
    ),
    Role.ETHICS_COMMITTEE: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.PERFORM_ETHICS_REVIEW,
            Permission.VIEW_REVIEW_TOPICS,
        }
    ),
    Role.EXAMINER: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.EVALUATE_DISSERTATIONS,
            Permission.VIEW_EXAMINATION_TOPICS,
        }
    ),
}

# Every role must have a row in the table
_missing_roles = set(Role) - set(ROLE_PERMISSIONS)
if _missing_roles:
    raise RuntimeError(f"ROLE_PERMISSIONS has no entry for: {sorted(r.value for r in _missing_roles)}")


def parse_role(role: str | Role | None) -> Role | None:
    """Map a role string onto the closed enum, or None when it is not a known role."""
    if role is None:
        return None
    try:
        return Role(role)
    except ValueError:
        return None


def permissions_for(role: str | Role | None) -> frozenset[str]:
    known = parse_role(role)
    if known is None:
        return frozenset()
    return ROLE_PERMISSIONS[known]


def has_permission(role: str | Role | None, permission: str) -> bool:
    return permission in permissions_for(role)

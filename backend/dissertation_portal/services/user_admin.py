# dissertation_portal/services/user_admin.py
"""
Admin-side account changes: role assignment and (de)activation.

Either change revokes the user's live sessions, because a session's role
and permissions are a snapshot taken at login.
"""
import logging

from dissertation_portal.core.exceptions import UserNotFound, UserUpdateForbidden
from dissertation_portal.core.permissions import Role, parse_role
from dissertation_portal.models.audit_log import AuditAction
from dissertation_portal.models.user import User
from dissertation_portal.services.audit import AuditTrail, RequestContext
from dissertation_portal.services.credential_store import CredentialStore
from dissertation_portal.services.session_manager import SessionManager

logger = logging.getLogger("uvicorn.error")


class UserAdministration:
    def __init__(self, store: CredentialStore, audit: AuditTrail, sessions: SessionManager):
        self.store = store
        self.audit = audit
        self.sessions = sessions

    async def get(self, user_id: str) -> User:
        user = await self.store.get_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    async def update(
        self,
        user_id: str,
        admin_id: str,
        *,
        role: str | None = None,
        is_active: bool | None = None,
        context: RequestContext | None = None,
    ) -> User:
        """
        Apply a role change and/or an activation change.

        Raises:
            UserNotFound: unknown user id
            UserUpdateForbidden: invalid role, self-demotion/disable, or
                removing the last active admin
        """
        user = await self.get(user_id)
        acting_on_self = str(user.id) == str(admin_id)
        is_admin = user.role == Role.ADMIN.value

        role_changed = role is not None and role != user.role
        if role_changed:
            if parse_role(role) is None:
                raise UserUpdateForbidden("INVALID_ROLE", f"Unknown role: {role}")
            if acting_on_self:
                raise UserUpdateForbidden("CANNOT_DEMOTE_SELF", "Cannot change your own role")
            if is_admin and user.is_active and await self.store.count_active_admins() <= 1:
                raise UserUpdateForbidden("LAST_ADMIN_FORBIDDEN", "Cannot demote the last admin")

        deactivating = is_active is False and user.is_active
        reactivating = is_active is True and not user.is_active
        if deactivating:
            if acting_on_self:
                raise UserUpdateForbidden("CANNOT_DISABLE_SELF", "Cannot disable your own account")
            if is_admin and await self.store.count_active_admins() <= 1:
                raise UserUpdateForbidden("LAST_ADMIN_FORBIDDEN", "Cannot disable the last admin")

        previous_role = user.role
        if role_changed:
            user.role = role
        if deactivating:
            user.is_active = False
        if reactivating:
            user.is_active = True
            user.failed_login_attempts = 0
            user.account_locked_until = None
        await user.save()

        if role_changed:
            await self.audit.record(
                AuditAction.ROLE_ASSIGNED,
                f"Role changed from {previous_role} to {user.role}",
                admin_id=admin_id,
                user_id=str(user.id),
                target_email=user.email,
                metadata={"previous_role": previous_role, "new_role": user.role},
                context=context,
            )
        if deactivating:
            await self.audit.record(
                AuditAction.ACCOUNT_DISABLED,
                f"Account disabled for {user.full_name}",
                admin_id=admin_id,
                user_id=str(user.id),
                target_email=user.email,
                context=context,
            )
        if role_changed or deactivating:
            await self.sessions.clear_user(str(user.id))
            logger.info("[admin] user_id=%s updated by admin=%s", user.id, admin_id)
        return user

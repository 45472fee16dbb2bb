# dissertation_portal/services/audit.py
"""
Append-only, capped audit trail.

Entries are pushed at the front (highest sequence id) and the trail is
truncated to the newest ``cap`` entries after every append, so it behaves
as a bounded queue ordered most-recent-first.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from tortoise.expressions import Q

from dissertation_portal.config import settings
from dissertation_portal.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class RequestContext:
    """Where a request came from; copied into every audit entry it causes."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditTrail:
    def __init__(self, cap: int | None = None):
        self.cap = settings.audit_log_cap if cap is None else cap

    async def record(
        self,
        action: AuditAction,
        details: str,
        *,
        user_id: str | None = None,
        admin_id: str | None = None,
        target_email: str | None = None,
        metadata: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> AuditLog:
        """
        Append one entry and prune everything older than the newest ``cap``.
        """
        entry = await AuditLog.create(
            action_type=AuditAction(action).value,
            details=details,
            user_id=user_id,
            admin_id=admin_id,
            target_email=target_email,
            metadata=metadata,
            ip_address=context.ip_address if context else None,
            user_agent=context.user_agent if context else None,
        )
        await self._prune()
        return entry

    async def _prune(self) -> None:
        # Id of the newest entry that falls outside the cap, if any
        boundary = await (
            AuditLog.all().order_by("-id").offset(self.cap).limit(1).values_list("id", flat=True)
        )
        if boundary:
            removed = await AuditLog.filter(id__lte=boundary[0]).delete()
            logger.debug("[audit] pruned %s entries beyond cap=%s", removed, self.cap)

    @staticmethod
    def _filtered(action: AuditAction | str | None = None, q: str | None = None):
        qs = AuditLog.all().order_by("-id")
        if action:
            qs = qs.filter(action_type=AuditAction(action).value)
        if q:
            qs = qs.filter(Q(details__icontains=q) | Q(target_email__icontains=q))
        return qs

    async def recent(
        self,
        limit: int | None = None,
        action: AuditAction | str | None = None,
        q: str | None = None,
    ) -> list[AuditLog]:
        """Entries most-recent-first, optionally filtered by action type and free text."""
        qs = self._filtered(action, q)
        if limit is not None:
            qs = qs.limit(limit)
        return await qs

    async def search(
        self,
        *,
        action: AuditAction | str | None = None,
        q: str | None = None,
        limit: int = 100,
    ) -> tuple[int, list[AuditLog]]:
        """
        Page of matching entries plus the number of entries matching overall.
        ``q`` matches case-insensitively against the details and target email.
        """
        qs = self._filtered(action, q)
        total = await qs.count()
        rows = await qs.limit(limit)
        return total, rows

    async def count(self) -> int:
        return await AuditLog.all().count()

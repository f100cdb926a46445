"""
Audit Service

Append-only trail of admin mutations and authentication events. Entries are
flushed inside the caller's transaction so an entity write and its audit
entry commit (or roll back) together. A failed append is a StorageFailure
and fails the enclosing mutation.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from justchiro.core.config import settings
from justchiro.core.exceptions import StorageFailure
from justchiro.core.utils import client_ip
from justchiro.models.audit_log import AuditLog
from justchiro.models.user import User

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

USER_AGENT_MAX = 500


@dataclass(frozen=True)
class RequestOrigin:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request, trusted_proxies: Optional[Sequence[str]] = None) -> "RequestOrigin":
        if trusted_proxies is None:
            trusted_proxies = settings.TRUSTED_PROXIES
        ip = client_ip(request, trusted_proxies)
        user_agent = request.headers.get("user-agent")
        return cls(
            ip_address=ip[:45] if ip else None,
            user_agent=user_agent[:USER_AGENT_MAX] if user_agent else None,
        )


class AuditService:
    """Records and lists AuditLog entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        actor_id: Optional[int],
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        old_snapshot: Optional[Dict[str, Any]] = None,
        new_snapshot: Optional[Dict[str, Any]] = None,
        origin: Optional[RequestOrigin] = None,
    ) -> AuditLog:
        """
        Append one entry and flush it.

        Raises:
            StorageFailure: the entry could not be written
        """
        origin = origin or RequestOrigin()
        entry = AuditLog(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_snapshot,
            new_values=new_snapshot,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        try:
            self.db.add(entry)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Audit append failed for {action} {entity_type}:{entity_id}: {e}")
            raise StorageFailure("Failed to record audit entry") from e

        audit_logger.info(
            f"{action} {entity_type or '-'}:{entity_id if entity_id is not None else '-'} by user {actor_id}",
            extra={"audit": {
                "id": entry.id,
                "user_id": actor_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "ip_address": origin.ip_address,
            }},
        )
        return entry

    async def list_entries(self, page: int = 1, limit: int = 50) -> Tuple[List[Dict[str, Any]], int]:
        """Newest first, joined with the acting user's email and name."""
        total = await self.db.scalar(select(func.count(AuditLog.id)))

        result = await self.db.execute(
            select(AuditLog, User.email, User.name)
            .outerjoin(User, AuditLog.user_id == User.id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        logs = []
        for entry, email, name in result.all():
            row = entry.to_dict()
            row["user_email"] = email
            row["user_name"] = name
            logs.append(row)
        return logs, total or 0

    async def recent_activity(self, since) -> List[Dict[str, Any]]:
        """Action counts since `since`, most frequent first."""
        result = await self.db.execute(
            select(AuditLog.action, func.count(AuditLog.id).label("count"))
            .where(AuditLog.created_at > since)
            .group_by(AuditLog.action)
            .order_by(func.count(AuditLog.id).desc())
        )
        return [{"action": action, "count": count} for action, count in result.all()]

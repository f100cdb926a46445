"""
Audit log model

Append-only record of every admin mutation and of login/logout. The mapper
refuses UPDATE and DELETE of an existing entry.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, Index, event

from justchiro.core.database import Base
from justchiro.core.exceptions import OperationNotAllowed
from justchiro.core.utils import utcnow


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(100), nullable=True)
    entity_id = Column(Integer, nullable=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_audit_log_created", "created_at"),
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_action", "action"),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity='{self.entity_type}:{self.entity_id}')>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditAction:
    """Action tags written to audit_log.action."""
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent_delete"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    BULK_UPDATE = "bulk_update"
    CREATE_USER = "create_user"
    ACTIVATE_USER = "activate_user"
    DEACTIVATE_USER = "deactivate_user"


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise OperationNotAllowed("Audit log entries are append-only")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise OperationNotAllowed("Audit log entries are append-only")

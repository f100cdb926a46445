"""
Tests for the audit recorder and the append-only audit log.
"""
from datetime import timedelta

import pytest
from starlette.requests import Request

from justchiro.core.exceptions import OperationNotAllowed
from justchiro.core.utils import utcnow
from justchiro.models import AuditAction, AuditLog
from justchiro.services.audit_service import AuditService, RequestOrigin


def request_with(headers) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.9", 1234),
    })


class TestRequestOrigin:

    def test_direct_client(self):
        origin = RequestOrigin.from_request(request_with({"User-Agent": "pytest"}))
        assert origin == RequestOrigin(ip_address="10.0.0.9", user_agent="pytest")

    def test_forwarded_for_ignored_from_untrusted_peer(self):
        origin = RequestOrigin.from_request(request_with({"X-Forwarded-For": "203.0.113.5"}), trusted_proxies=[])
        assert origin.ip_address == "10.0.0.9"

    def test_forwarded_for_from_trusted_proxy(self):
        request = request_with({"X-Forwarded-For": "198.51.100.1, 203.0.113.5, 10.0.0.1"})
        origin = RequestOrigin.from_request(request, trusted_proxies=["10.0.0.0/8"])
        assert origin.ip_address == "203.0.113.5"

    def test_user_agent_truncated(self):
        origin = RequestOrigin.from_request(request_with({"User-Agent": "x" * 900}))
        assert len(origin.user_agent) == 500


class TestAuditService:

    @pytest.mark.asyncio
    async def test_record_and_list(self, db_session, admin_user):
        audit = AuditService(db_session)
        await audit.record(
            actor_id=admin_user.id,
            action=AuditAction.CREATE,
            entity_type="chiropractor",
            entity_id=3,
            new_snapshot={"name": "Dr. Lisa Anderson"},
            origin=RequestOrigin(ip_address="127.0.0.1", user_agent="pytest"),
        )
        await db_session.commit()

        logs, total = await audit.list_entries(page=1, limit=10)
        assert total == 1
        entry = logs[0]
        assert entry["action"] == "create"
        assert entry["old_values"] is None
        assert entry["new_values"] == {"name": "Dr. Lisa Anderson"}
        assert entry["user_email"] == admin_user.email
        assert entry["ip_address"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_recent_activity_counts(self, db_session, admin_user):
        audit = AuditService(db_session)
        for action in (AuditAction.LOGIN, AuditAction.LOGIN, AuditAction.LOGOUT):
            await audit.record(actor_id=admin_user.id, action=action)
        await db_session.commit()

        activity = await audit.recent_activity(utcnow() - timedelta(days=7))
        assert activity == [{"action": "login", "count": 2}, {"action": "logout", "count": 1}]

    @pytest.mark.asyncio
    async def test_entries_cannot_be_updated(self, db_session, admin_user):
        entry = await AuditService(db_session).record(actor_id=admin_user.id, action=AuditAction.LOGIN)
        await db_session.commit()

        entry.action = AuditAction.LOGOUT
        with pytest.raises(OperationNotAllowed):
            await db_session.flush()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_entries_cannot_be_deleted(self, db_session, admin_user):
        entry = await AuditService(db_session).record(actor_id=admin_user.id, action=AuditAction.LOGIN)
        await db_session.commit()

        entry_id = entry.id
        await db_session.delete(entry)
        with pytest.raises(OperationNotAllowed):
            await db_session.flush()
        await db_session.rollback()
        assert await db_session.get(AuditLog, entry_id) is not None

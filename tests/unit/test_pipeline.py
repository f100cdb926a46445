"""
Tests for the Mutation Pipeline stage machine.
"""
import json
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from starlette.requests import Request

from justchiro.core.config import settings
from justchiro.core.exceptions import (
    InsufficientPrivilege, MissingCredential, StorageFailure, ValidationFailed,
)
from justchiro.models import AuditAction, AuditLog, Chiropractor
from justchiro.schemas import chiropractor_rules
from justchiro.services.audit_service import AuditService
from justchiro.services.chiropractor_service import ChiropractorService
from justchiro.services.pipeline import MutationOutcome, MutationPipeline, Stage, read_json_body

from tests.factories import bearer


def make_request(body=None, headers=None) -> Request:
    raw = json.dumps(body).encode() if body is not None else b""

    async def receive():
        return {"type": "http.request", "body": raw, "more_body": False}

    return Request({
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("127.0.0.1", 5000),
    }, receive)


async def count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def listing_body():
    return {
        "name": "Dr. Robert Taylor",
        "state": "Washington",
        "address": "987 Pine Street, Seattle, WA 98101",
        "phone": "(555) 678-9012",
        "email": "robert.taylor@chiro.com",
        "description": "<script>alert(1)</script>Corrective exercise",
    }


def create_listing(db):
    async def mutate(data, identity):
        listing = await ChiropractorService(db).create(data)
        return MutationOutcome(entity_id=listing.id, new_snapshot=listing.to_dict(), result=listing)
    return mutate


class TestMutationPipeline:

    @pytest.mark.asyncio
    async def test_completes_with_one_audit_entry(self, db_session, admin_user, listing_body):
        pipeline = MutationPipeline(db_session, settings)
        outcome = await pipeline.run(
            make_request(listing_body, bearer(admin_user)),
            action=AuditAction.CREATE,
            entity_type="chiropractor",
            rules=chiropractor_rules,
            mutate=create_listing(db_session),
        )

        assert pipeline.stage == Stage.COMPLETED
        assert "<script" not in outcome.result.description
        entries = (await db_session.execute(select(AuditLog))).scalars().all()
        assert len(entries) == 1
        assert entries[0].entity_id == outcome.entity_id
        assert entries[0].user_id == admin_user.id

    @pytest.mark.asyncio
    async def test_rejected_before_auth(self, db_session, listing_body):
        mutate = AsyncMock()
        pipeline = MutationPipeline(db_session, settings)
        with pytest.raises(MissingCredential):
            await pipeline.run(
                make_request(listing_body),
                action=AuditAction.CREATE,
                entity_type="chiropractor",
                rules=chiropractor_rules,
                mutate=mutate,
            )
        assert pipeline.stage == Stage.REJECTED
        assert isinstance(pipeline.error, MissingCredential)
        mutate.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_for_role(self, db_session, make_user, listing_body):
        editor = await make_user(email="editor@justchiro.com", role="editor")
        mutate = AsyncMock()
        with pytest.raises(InsufficientPrivilege):
            await MutationPipeline(db_session, settings).run(
                make_request(listing_body, bearer(editor)),
                action=AuditAction.CREATE,
                entity_type="chiropractor",
                rules=chiropractor_rules,
                mutate=mutate,
            )
        mutate.assert_not_called()

    @pytest.mark.asyncio
    async def test_validation_failure_has_no_side_effects(self, db_session, admin_user, listing_body):
        listing_body["phone"] = "abc"
        mutate = AsyncMock()
        with pytest.raises(ValidationFailed) as exc_info:
            await MutationPipeline(db_session, settings).run(
                make_request(listing_body, bearer(admin_user)),
                action=AuditAction.CREATE,
                entity_type="chiropractor",
                rules=chiropractor_rules,
                mutate=mutate,
            )
        assert exc_info.value.violations == [{"field": "phone", "message": "Invalid phone number format"}]
        mutate.assert_not_called()
        assert await count(db_session, AuditLog) == 0

    @pytest.mark.asyncio
    async def test_audit_failure_rolls_back_entity(self, db_session, admin_user, listing_body):
        audit = AuditService(db_session)
        audit.record = AsyncMock(side_effect=StorageFailure("Failed to record audit entry"))
        pipeline = MutationPipeline(db_session, settings, audit=audit)

        with pytest.raises(StorageFailure):
            await pipeline.run(
                make_request(listing_body, bearer(admin_user)),
                action=AuditAction.CREATE,
                entity_type="chiropractor",
                rules=chiropractor_rules,
                mutate=create_listing(db_session),
            )
        assert pipeline.stage == Stage.REJECTED
        assert await count(db_session, Chiropractor) == 0

    @pytest.mark.asyncio
    async def test_outcome_overrides_action(self, db_session, admin_user):
        async def mutate(data, identity):
            return MutationOutcome(entity_id=None, action=AuditAction.UNPUBLISH, entity_type="blog_post")

        await MutationPipeline(db_session, settings).run(
            make_request(headers=bearer(admin_user)),
            action=AuditAction.PUBLISH,
            entity_type="placeholder",
            mutate=mutate,
        )
        entry = (await db_session.execute(select(AuditLog))).scalar_one()
        assert entry.action == "unpublish"
        assert entry.entity_type == "blog_post"


class TestReadJsonBody:

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_object(self):
        assert await read_json_body(make_request()) == {}

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async def receive():
            return {"type": "http.request", "body": b"{not json", "more_body": False}

        request = Request({"type": "http", "method": "POST", "path": "/", "headers": []}, receive)
        with pytest.raises(ValidationFailed) as exc_info:
            await read_json_body(request)
        assert exc_info.value.violations[0]["field"] == "body"

"""
Mutation Pipeline

Every admin write goes through the same sequence of stages:

    RECEIVED -> AUTHENTICATED -> AUTHORIZED -> VALIDATED -> SANITIZED
             -> PERSISTED -> AUDITED -> COMPLETED

The first failing stage moves the run to REJECTED and re-raises its error;
nothing after that stage executes. Authentication, authorization and
validation failures therefore happen before any write. PERSISTED and
AUDITED share one UnitOfWork, so the entity change is committed only
together with its audit entry.

Usage:
    async def mutate(data, identity):
        listing = await ChiropractorService(db).create(data)
        return MutationOutcome(entity_id=listing.id, new_snapshot=listing.to_dict(), result=listing)

    outcome = await MutationPipeline(db).run(
        request, action=AuditAction.CREATE, entity_type="chiropractor",
        rules=chiropractor_rules, mutate=mutate,
    )
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from justchiro.core.config import Settings, settings as default_settings
from justchiro.core.database import UnitOfWork
from justchiro.core.exceptions import ValidationFailed
from justchiro.core.sanitizer import sanitize_payload
from justchiro.core.validation import RuleSet
from justchiro.models.user import ROLE_ADMIN
from justchiro.services.audit_service import AuditService, RequestOrigin
from justchiro.services.auth_service import Authenticator, Identity, require_role

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    SANITIZED = "sanitized"
    PERSISTED = "persisted"
    AUDITED = "audited"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass
class MutationOutcome:
    """
    What a mutate callable reports back.

    `action` / `entity_type` override the pipeline defaults when the audit
    tag depends on the result (publish vs unpublish).
    """
    entity_id: Optional[int]
    old_snapshot: Optional[Dict[str, Any]] = None
    new_snapshot: Optional[Dict[str, Any]] = None
    result: Any = None
    action: Optional[str] = None
    entity_type: Optional[str] = None


Mutate = Callable[[Dict[str, Any], Identity], Awaitable[MutationOutcome]]


async def read_json_body(request: Request) -> Any:
    """Request body as JSON; an empty body reads as an empty object."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ValidationFailed(
            [{"field": "body", "message": "Request body must be valid JSON"}]
        ) from e


class MutationPipeline:
    def __init__(
        self,
        db: AsyncSession,
        settings: Settings = default_settings,
        authenticator: Optional[Authenticator] = None,
        audit: Optional[AuditService] = None,
    ):
        self.db = db
        self.settings = settings
        self.authenticator = authenticator or Authenticator(db, settings)
        self.audit = audit or AuditService(db)
        self.stage = Stage.RECEIVED
        self.error: Optional[Exception] = None

    def _advance(self, stage: Stage) -> None:
        logger.debug(f"pipeline {self.stage.value} -> {stage.value}")
        self.stage = stage

    async def run(
        self,
        request: Request,
        *,
        action: str,
        entity_type: str,
        mutate: Mutate,
        rules: Optional[RuleSet] = None,
        role: Optional[str] = ROLE_ADMIN,
    ) -> MutationOutcome:
        """
        Execute one write. `role=None` skips the role check (any
        authenticated account may proceed).
        """
        self.stage = Stage.RECEIVED
        self.error = None
        try:
            identity = await self.authenticator.authenticate(request, required=True)
            self._advance(Stage.AUTHENTICATED)

            if role is not None:
                require_role(identity, role)
            self._advance(Stage.AUTHORIZED)

            data: Dict[str, Any] = {}
            if rules is not None:
                data = rules.ensure_valid(await read_json_body(request))
            self._advance(Stage.VALIDATED)

            if rules is not None:
                data = rules.ensure_lengths(sanitize_payload(rules, data))
            self._advance(Stage.SANITIZED)

            origin = RequestOrigin.from_request(request)
            async with UnitOfWork(self.db):
                outcome = await mutate(data, identity)
                await self.db.flush()
                self._advance(Stage.PERSISTED)

                await self.audit.record(
                    actor_id=identity.id,
                    action=outcome.action or action,
                    entity_type=outcome.entity_type or entity_type,
                    entity_id=outcome.entity_id,
                    old_snapshot=outcome.old_snapshot,
                    new_snapshot=outcome.new_snapshot,
                    origin=origin,
                )
                self._advance(Stage.AUDITED)

            self._advance(Stage.COMPLETED)
            return outcome
        except Exception as e:
            self.error = e
            logger.info(f"{action} {entity_type} rejected at {self.stage.value}: {type(e).__name__}")
            self.stage = Stage.REJECTED
            raise

"""
API dependencies
"""
from typing import Any, Optional

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.config import settings
from justchiro.core.database import get_db
from justchiro.models.user import ROLE_ADMIN
from justchiro.services.auth_service import Authenticator, Identity, require_role
from justchiro.services.pipeline import MutationPipeline


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Success envelope shared by every JSON endpoint."""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> Identity:
    """Authenticated identity; 401 when the credential is missing or rejected"""
    return await Authenticator(db, settings).authenticate(request, required=True)


async def get_current_admin(identity: Identity = Depends(get_current_user)) -> Identity:
    """Require admin role"""
    return require_role(identity, ROLE_ADMIN)


async def get_pipeline(db: AsyncSession = Depends(get_db)) -> MutationPipeline:
    return MutationPipeline(db, settings)


class Pagination:
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page must be a positive integer"),
        limit: Optional[int] = Query(None, ge=1, le=100, description="Limit must be between 1 and 100"),
    ):
        self.page = page
        self.limit = limit

    def resolve(self, default_limit: int) -> tuple:
        return self.page, self.limit or default_limit

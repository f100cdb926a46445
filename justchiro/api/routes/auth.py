"""
Authentication routes

Login is rate limited (RATE_LIMIT_AUTH) and sets the HttpOnly auth cookie;
the token is also returned in the body for header-based clients. Login,
logout and password changes are written to the audit log.
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import envelope, get_current_user, get_pipeline
from justchiro.core.config import settings
from justchiro.core.cookies import clear_auth_cookie, set_auth_cookie
from justchiro.core.database import UnitOfWork, get_db
from justchiro.core.rate_limit import limiter
from justchiro.models.audit_log import AuditAction
from justchiro.schemas.auth import login_rules, password_change_rules
from justchiro.services.audit_service import AuditService, RequestOrigin
from justchiro.services.auth_service import Authenticator, Identity
from justchiro.services.pipeline import MutationOutcome, MutationPipeline, read_json_body
from justchiro.services.user_service import UserService

router = APIRouter()


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    """Exchange email + password for an access token."""
    data = login_rules.ensure_valid(await read_json_body(request))

    user, token = await Authenticator(db, settings).login(data["email"], data["password"])
    identity = Identity.from_user(user)

    async with UnitOfWork(db):
        await AuditService(db).record(
            actor_id=identity.id,
            action=AuditAction.LOGIN,
            origin=RequestOrigin.from_request(request),
        )

    set_auth_cookie(response, token, settings)
    return envelope({"user": identity.to_dict(), "token": token}, message="Login successful")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    async with UnitOfWork(db):
        await AuditService(db).record(
            actor_id=identity.id,
            action=AuditAction.LOGOUT,
            origin=RequestOrigin.from_request(request),
        )

    clear_auth_cookie(response, settings)
    return envelope(message="Logged out successfully")


@router.get("/me")
async def get_me(identity: Identity = Depends(get_current_user)):
    return envelope({"user": identity.to_dict()})


@router.post("/change-password")
async def change_password(
    request: Request,
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Change the caller's password (current password required)."""

    async def mutate(data, identity):
        before, user = await UserService(pipeline.db, settings).change_password(
            identity.id, data["currentPassword"], data["newPassword"]
        )
        return MutationOutcome(
            entity_id=user.id,
            old_snapshot=before,
            new_snapshot=user.to_dict(),
        )

    await pipeline.run(
        request,
        action=AuditAction.PASSWORD_CHANGE,
        entity_type="user",
        rules=password_change_rules,
        mutate=mutate,
        role=None,
    )
    return envelope(message="Password changed successfully")


@router.get("/verify")
async def verify(identity: Identity = Depends(get_current_user)):
    return envelope({"valid": True, "user": identity.to_dict()})

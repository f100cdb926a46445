"""
Admin routes

Dashboard, unfiltered listings/posts, audit log, user management and data
export. Every route requires an admin identity; writes additionally run
through the Mutation Pipeline.
"""
import time

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import Pagination, envelope, get_current_admin, get_pipeline
from justchiro.core.database import get_db
from justchiro.core.utils import paginate
from justchiro.models.audit_log import AuditAction
from justchiro.schemas.user import user_create_rules
from justchiro.services.admin_service import AdminService
from justchiro.services.audit_service import AuditService
from justchiro.services.blog_service import BlogService
from justchiro.services.chiropractor_service import ChiropractorService
from justchiro.services.pipeline import MutationOutcome, MutationPipeline
from justchiro.services.user_service import UserService

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("/dashboard")
async def dashboard(db: AsyncSession = Depends(get_db)):
    return envelope(await AdminService(db).dashboard())


# ----- Listings -----

@router.get("/chiropractors")
async def list_all_chiropractors(
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Every listing including soft-deleted ones, newest first."""
    page, limit = pagination.resolve(default_limit=50)
    listings, total = await ChiropractorService(db).list_all(page, limit)
    return envelope({
        "chiropractors": [listing.to_dict() for listing in listings],
        "pagination": paginate(page, limit, total),
    })


@router.post("/chiropractors/{listing_id}/restore")
async def restore_chiropractor(
    request: Request,
    listing_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        before, listing = await ChiropractorService(pipeline.db).set_active(listing_id, True)
        return MutationOutcome(
            entity_id=listing.id,
            old_snapshot=before,
            new_snapshot=listing.to_dict(),
        )

    outcome = await pipeline.run(request, action=AuditAction.RESTORE, entity_type="chiropractor", mutate=mutate)
    return envelope({"chiropractor": outcome.new_snapshot}, message="Chiropractor restored successfully")


@router.delete("/chiropractors/{listing_id}/permanent")
async def permanently_delete_chiropractor(
    request: Request,
    listing_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Irreversible removal. The audit entry keeps the full prior record."""

    async def mutate(data, identity):
        before = await ChiropractorService(pipeline.db).delete_permanently(listing_id)
        return MutationOutcome(entity_id=listing_id, old_snapshot=before)

    await pipeline.run(
        request,
        action=AuditAction.PERMANENT_DELETE,
        entity_type="chiropractor",
        mutate=mutate,
    )
    return envelope(message="Chiropractor permanently deleted")


# ----- Blog posts -----

@router.get("/blog-posts")
async def list_all_posts(
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Every post including unpublished ones, newest first."""
    page, limit = pagination.resolve(default_limit=20)
    posts, total = await BlogService(db).list_all(page, limit)
    return envelope({
        "posts": [post.to_dict() for post in posts],
        "pagination": paginate(page, limit, total),
    })


@router.post("/blog-posts/{post_id}/toggle-publish")
async def toggle_publish(
    request: Request,
    post_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        post = await BlogService(pipeline.db).toggle_publish(post_id)
        published = post.is_published
        return MutationOutcome(
            entity_id=post.id,
            old_snapshot={"is_published": not published},
            new_snapshot={"is_published": published},
            result=post,
            action=AuditAction.PUBLISH if published else AuditAction.UNPUBLISH,
        )

    outcome = await pipeline.run(request, action=AuditAction.PUBLISH, entity_type="blog_post", mutate=mutate)
    verb = "published" if outcome.result.is_published else "unpublished"
    return envelope({"post": outcome.result.to_dict()}, message=f"Blog post {verb} successfully")


# ----- Audit log -----

@router.get("/audit-log")
async def audit_log(
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page, limit = pagination.resolve(default_limit=50)
    logs, total = await AuditService(db).list_entries(page, limit)
    return envelope({"logs": logs, "pagination": paginate(page, limit, total)})


# ----- Users -----

@router.get("/users")
async def list_users(db: AsyncSession = Depends(get_db)):
    users = await UserService(db).list_users()
    return envelope({"users": [user.to_dict() for user in users]})


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
    async def mutate(data, identity):
        user = await UserService(pipeline.db, pipeline.settings).create_admin(data)
        return MutationOutcome(entity_id=user.id, new_snapshot=user.to_dict())

    outcome = await pipeline.run(
        request,
        action=AuditAction.CREATE_USER,
        entity_type="user",
        rules=user_create_rules,
        mutate=mutate,
    )
    return envelope({"user": outcome.new_snapshot}, message="User created successfully")


@router.post("/users/{user_id}/toggle-active")
async def toggle_user_active(
    request: Request,
    user_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        active, user = await UserService(pipeline.db, pipeline.settings).toggle_active(user_id, identity.id)
        return MutationOutcome(
            entity_id=user.id,
            old_snapshot={"is_active": not active},
            new_snapshot={"is_active": active},
            result=user,
            action=AuditAction.ACTIVATE_USER if active else AuditAction.DEACTIVATE_USER,
        )

    outcome = await pipeline.run(
        request,
        action=AuditAction.DEACTIVATE_USER,
        entity_type="user",
        mutate=mutate,
    )
    verb = "activated" if outcome.result.is_active else "deactivated"
    return envelope({"user": outcome.result.to_dict()}, message=f"User {verb} successfully")


# ----- Export -----

@router.get("/export/{export_type}")
async def export_data(export_type: str, db: AsyncSession = Depends(get_db)):
    """Download chiropractors or blog posts as a JSON attachment."""
    data = await AdminService(db).export(export_type)
    filename = f"{export_type}-export-{int(time.time() * 1000)}.json"
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

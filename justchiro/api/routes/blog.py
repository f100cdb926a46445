"""
Blog routes

Public reads see published posts only and count a view per read. Writes
are admin-only pipeline runs; delete is a hard delete.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import Pagination, envelope, get_pipeline
from justchiro.core.database import get_db
from justchiro.core.utils import paginate
from justchiro.models.audit_log import AuditAction
from justchiro.schemas.blog import blog_post_rules
from justchiro.services.blog_service import BlogService
from justchiro.services.pipeline import MutationOutcome, MutationPipeline

router = APIRouter()

ENTITY = "blog_post"


@router.get("")
async def list_posts(
    pagination: Pagination = Depends(),
    tag: Optional[str] = Query(None, max_length=50),
    search: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    page, limit = pagination.resolve(default_limit=10)
    posts, total = await BlogService(db).list_published(page, limit, tag=tag, search=search)
    return envelope({
        "posts": [post.to_summary() for post in posts],
        "pagination": paginate(page, limit, total),
    })


@router.get("/meta/tags")
async def list_tags(db: AsyncSession = Depends(get_db)):
    return envelope({"tags": await BlogService(db).tag_counts()})


@router.get("/slug/{slug}")
async def get_post_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return envelope({"post": await BlogService(db).read_published(slug=slug)})


@router.get("/{post_id}")
async def get_post(post_id: int = Path(..., ge=1), db: AsyncSession = Depends(get_db)):
    return envelope({"post": await BlogService(db).read_published(post_id=post_id)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
    async def mutate(data, identity):
        post = await BlogService(pipeline.db).create(data)
        return MutationOutcome(entity_id=post.id, new_snapshot=post.to_dict(), result=post)

    outcome = await pipeline.run(
        request,
        action=AuditAction.CREATE,
        entity_type=ENTITY,
        rules=blog_post_rules,
        mutate=mutate,
    )
    return envelope({"post": outcome.new_snapshot}, message="Blog post created successfully")


@router.put("/{post_id}")
async def update_post(
    request: Request,
    post_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        before, post = await BlogService(pipeline.db).update(post_id, data)
        return MutationOutcome(
            entity_id=post.id,
            old_snapshot=before,
            new_snapshot=post.to_dict(),
            result=post,
        )

    outcome = await pipeline.run(
        request,
        action=AuditAction.UPDATE,
        entity_type=ENTITY,
        rules=blog_post_rules,
        mutate=mutate,
    )
    return envelope({"post": outcome.new_snapshot}, message="Blog post updated successfully")


@router.delete("/{post_id}")
async def delete_post(
    request: Request,
    post_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        before = await BlogService(pipeline.db).delete(post_id)
        return MutationOutcome(entity_id=post_id, old_snapshot=before)

    await pipeline.run(request, action=AuditAction.DELETE, entity_type=ENTITY, mutate=mutate)
    return envelope(message="Blog post deleted successfully")

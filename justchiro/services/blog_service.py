"""
Blog Service

Post reads/writes, slug allocation, tag counts and atomic view counting.
"""
import logging
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy import select, func, or_, update, not_, case, literal, null
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.exceptions import NotFound, SlugConflict
from justchiro.core.slug import slugify, disambiguate
from justchiro.core.sanitizer import sanitize
from justchiro.core.utils import utcnow, like_pattern
from justchiro.models.blog_post import BlogPost, BlogPostTag

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200
META_DESCRIPTION_LENGTH = 160


class BlogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Slugs
    # ------------------------------------------------------------------

    async def slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = select(BlogPost.id).where(BlogPost.slug == slug)
        if exclude_id is not None:
            query = query.where(BlogPost.id != exclude_id)
        return (await self.db.execute(query.limit(1))).first() is not None

    async def unique_slug(self, title: str, exclude_id: Optional[int] = None) -> str:
        """
        Slug for `title` that no other post uses.

        One disambiguated retry on collision; a second collision raises
        SlugConflict instead of looping.
        """
        candidate = slugify(title)
        if candidate and not await self.slug_taken(candidate, exclude_id):
            return candidate

        retry = disambiguate(candidate)
        if await self.slug_taken(retry, exclude_id):
            logger.warning(f"Slug collision persisted after disambiguation: {retry}")
            raise SlugConflict("Could not generate a unique slug for this title", slug=retry)
        return retry

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    async def list_published(
        self,
        page: int = 1,
        limit: int = 10,
        tag: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[BlogPost], int]:
        # Stored text is sanitized, so filter values are compared in the same form
        filters = [BlogPost.is_published.is_(True)]
        if tag:
            filters.append(BlogPost.tag_rows.any(BlogPostTag.tag == sanitize(tag)))
        if search:
            pattern = like_pattern(sanitize(search))
            filters.append(or_(
                BlogPost.title.ilike(pattern, escape="\\"),
                BlogPost.content.ilike(pattern, escape="\\"),
            ))

        total = await self.db.scalar(select(func.count(BlogPost.id)).where(*filters))
        result = await self.db.execute(
            select(BlogPost)
            .where(*filters)
            .order_by(BlogPost.published_at.desc(), BlogPost.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_published(self, post_id: Optional[int] = None, slug: Optional[str] = None) -> BlogPost:
        query = select(BlogPost).where(BlogPost.is_published.is_(True))
        if slug is not None:
            query = query.where(BlogPost.slug == slug)
        else:
            query = query.where(BlogPost.id == post_id)
        post = (await self.db.execute(query)).scalar_one_or_none()
        if post is None:
            raise NotFound("Blog post not found")
        return post

    async def increment_views(self, post_id: int) -> int:
        """Single-statement increment; returns the new count."""
        result = await self.db.execute(
            update(BlogPost)
            .where(BlogPost.id == post_id)
            .values(views=BlogPost.views + 1)
            .returning(BlogPost.views)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one()

    async def read_published(self, post_id: Optional[int] = None, slug: Optional[str] = None) -> Dict[str, Any]:
        """Fetch a published post and count the view."""
        post = await self.get_published(post_id=post_id, slug=slug)
        data = post.to_dict()
        data["views"] = await self.increment_views(post.id)
        return data

    async def tag_counts(self) -> List[Dict[str, Any]]:
        count = func.count(BlogPostTag.post_id)
        result = await self.db.execute(
            select(BlogPostTag.tag, count.label("count"))
            .join(BlogPost, BlogPost.id == BlogPostTag.post_id)
            .where(BlogPost.is_published.is_(True))
            .group_by(BlogPostTag.tag)
            .order_by(count.desc(), BlogPostTag.tag.asc())
        )
        return [{"tag": tag, "count": n} for tag, n in result.all()]

    # ------------------------------------------------------------------
    # Admin reads
    # ------------------------------------------------------------------

    async def get(self, post_id: int) -> BlogPost:
        post = await self.db.get(BlogPost, post_id)
        if post is None:
            raise NotFound("Blog post not found")
        return post

    async def list_all(self, page: int = 1, limit: int = 20) -> Tuple[List[BlogPost], int]:
        total = await self.db.scalar(select(func.count(BlogPost.id)))
        result = await self.db.execute(
            select(BlogPost)
            .order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def export_all(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(BlogPost).order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
        )
        return [post.to_dict() for post in result.scalars().all()]

    async def count_published(self) -> int:
        return await self.db.scalar(
            select(func.count(BlogPost.id)).where(BlogPost.is_published.is_(True))
        ) or 0

    async def total_views(self) -> int:
        return await self.db.scalar(select(func.coalesce(func.sum(BlogPost.views), 0))) or 0

    async def popular(self, limit: int = 5) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(BlogPost.id, BlogPost.title, BlogPost.views, BlogPost.created_at)
            .where(BlogPost.is_published.is_(True))
            .order_by(BlogPost.views.desc(), BlogPost.id.asc())
            .limit(limit)
        )
        return [
            {
                "id": post_id,
                "title": title,
                "views": views,
                "created_at": created_at.isoformat() if created_at else None,
            }
            for post_id, title, views, created_at in result.all()
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(post: BlogPost, data: Dict[str, Any]) -> None:
        content = data["content"]
        excerpt = data.get("excerpt")
        post.title = data["title"]
        post.content = content
        post.author = data["author"]
        post.excerpt = excerpt or content[:EXCERPT_LENGTH]
        post.featured_image = data.get("featured_image") or None
        post.meta_title = data.get("meta_title") or data["title"]
        post.meta_description = data.get("meta_description") or excerpt or content[:META_DESCRIPTION_LENGTH]
        post.set_tags(data.get("tags") or [])

    async def create(self, data: Dict[str, Any]) -> BlogPost:
        published = data.get("is_published", True) is not False
        post = BlogPost(
            slug=await self.unique_slug(data["title"]),
            is_published=published,
            published_at=utcnow() if published else None,
            views=0,
        )
        self._apply(post, data)
        self.db.add(post)
        await self.db.flush()
        logger.info(f"Created blog post {post.id} ({post.slug})")
        return post

    async def update(self, post_id: int, data: Dict[str, Any]) -> Tuple[Dict[str, Any], BlogPost]:
        post = await self.get(post_id)
        before = post.to_dict()

        if data["title"] != post.title:
            post.slug = await self.unique_slug(data["title"], exclude_id=post.id)

        published = data.get("is_published", True) is not False
        if published and not post.is_published:
            post.published_at = utcnow()
        elif not published:
            post.published_at = None
        post.is_published = published

        self._apply(post, data)
        await self.db.flush()
        return before, post

    async def delete(self, post_id: int) -> Dict[str, Any]:
        post = await self.get(post_id)
        before = post.to_dict()
        await self.db.delete(post)
        await self.db.flush()
        logger.info(f"Deleted blog post {post_id}")
        return before

    async def toggle_publish(self, post_id: int) -> BlogPost:
        """
        Flip is_published in one statement. Publishing keeps an existing
        published_at (or stamps now); unpublishing clears it.
        """
        stamp = literal(utcnow(), type_=BlogPost.published_at.type)
        result = await self.db.execute(
            update(BlogPost)
            .where(BlogPost.id == post_id)
            .values(
                is_published=not_(BlogPost.is_published),
                published_at=case(
                    (BlogPost.is_published.is_(False), func.coalesce(BlogPost.published_at, stamp)),
                    else_=null(),
                ),
                updated_at=utcnow(),
            )
            .returning(BlogPost.id)
            .execution_options(synchronize_session=False)
        )
        if result.first() is None:
            raise NotFound("Blog post not found")

        refreshed = await self.db.execute(
            select(BlogPost)
            .where(BlogPost.id == post_id)
            .execution_options(populate_existing=True)
        )
        return refreshed.scalar_one()

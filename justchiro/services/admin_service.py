"""
Admin Service

Dashboard statistics and JSON data export.
"""
import logging
from datetime import timedelta
from typing import Dict, Any, List

from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.exceptions import ValidationFailed
from justchiro.core.utils import utcnow
from justchiro.services.audit_service import AuditService
from justchiro.services.blog_service import BlogService
from justchiro.services.chiropractor_service import ChiropractorService
from justchiro.services.user_service import UserService

logger = logging.getLogger(__name__)

EXPORT_TYPES = ("chiropractors", "blog-posts")
RECENT_ACTIVITY_WINDOW = timedelta(days=7)


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.chiropractors = ChiropractorService(db)
        self.posts = BlogService(db)
        self.users = UserService(db)
        self.audit = AuditService(db)

    async def dashboard(self) -> Dict[str, Any]:
        # One AsyncSession runs one query at a time
        return {
            "totalChiropractors": await self.chiropractors.count_active(),
            "totalBlogPosts": await self.posts.count_published(),
            "totalUsers": await self.users.count_active(),
            "totalBlogViews": await self.posts.total_views(),
            "topStates": await self.chiropractors.top_states(limit=5),
            "popularPosts": await self.posts.popular(limit=5),
            "recentActivity": await self.audit.recent_activity(utcnow() - RECENT_ACTIVITY_WINDOW),
        }

    async def export(self, export_type: str) -> List[Dict[str, Any]]:
        if export_type == "chiropractors":
            return await self.chiropractors.export_all()
        if export_type == "blog-posts":
            return await self.posts.export_all()
        raise ValidationFailed(
            [{"field": "type", "message": f"Export type must be one of: {', '.join(EXPORT_TYPES)}"}],
            message="Invalid export type",
        )

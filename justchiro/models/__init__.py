from justchiro.models.user import User, ROLE_ADMIN
from justchiro.models.chiropractor import Chiropractor
from justchiro.models.blog_post import BlogPost, BlogPostTag
from justchiro.models.site_setting import (
    SiteSetting,
    PUBLIC_SETTING_KEYS,
    CORE_SETTING_KEYS,
    DEFAULT_SETTINGS,
)
from justchiro.models.audit_log import AuditLog, AuditAction

__all__ = [
    "User",
    "ROLE_ADMIN",
    "Chiropractor",
    "BlogPost",
    "BlogPostTag",
    "SiteSetting",
    "PUBLIC_SETTING_KEYS",
    "CORE_SETTING_KEYS",
    "DEFAULT_SETTINGS",
    "AuditLog",
    "AuditAction",
]

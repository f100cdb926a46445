"""
Site settings model

Key/value store for CMS-editable site configuration. `setting_type` is a UI
hint only.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime

from justchiro.core.database import Base
from justchiro.core.utils import utcnow

# Readable without authentication
PUBLIC_SETTING_KEYS = (
    "site_name",
    "site_description",
    "site_keywords",
    "primary_color",
    "footer_text",
    "social_facebook",
    "social_twitter",
    "social_linkedin",
)

# Cannot be deleted through the API
CORE_SETTING_KEYS = ("site_name", "site_description", "contact_email")

DEFAULT_SETTINGS = [
    ("site_name", "Just Chiropractor", "text", "The name of the website"),
    ("site_description", "Find trusted chiropractors across the USA", "text", "Default site description for SEO"),
    ("site_keywords", "chiropractor, chiropractic care, spine health, wellness", "text", "Default keywords for SEO"),
    ("contact_email", "contact@justchiropractor.com", "text", "Main contact email"),
    ("primary_color", "#2563eb", "color", "Primary brand color"),
    ("footer_text", "© 2025 Just Chiropractor. All rights reserved.", "text", "Footer copyright text"),
    ("google_analytics_id", "", "text", "Google Analytics tracking ID"),
    ("social_facebook", "", "url", "Facebook page URL"),
    ("social_twitter", "", "url", "Twitter profile URL"),
    ("social_linkedin", "", "url", "LinkedIn page URL"),
]


class SiteSetting(Base):
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    setting_key = Column(String(255), unique=True, nullable=False, index=True)
    setting_value = Column(Text, nullable=True)
    setting_type = Column(String(50), nullable=False, default="text")
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SiteSetting(key='{self.setting_key}')>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "setting_key": self.setting_key,
            "setting_value": self.setting_value,
            "setting_type": self.setting_type,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

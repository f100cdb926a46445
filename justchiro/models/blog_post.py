"""
Blog post model

Tags are an ordered set kept in `blog_post_tags` (post_id, tag, position)
so tag filtering and tag counts work the same on PostgreSQL and SQLite.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from justchiro.core.database import Base
from justchiro.core.utils import utcnow


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), unique=True, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    author = Column(String(255), nullable=False)
    featured_image = Column(String(500), nullable=True)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    views = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    published_at = Column(DateTime(timezone=True), nullable=True)

    tag_rows = relationship(
        "BlogPostTag",
        back_populates="post",
        order_by="BlogPostTag.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_blog_posts_published", "is_published"),
        Index("ix_blog_posts_created", "created_at"),
    )

    def __repr__(self):
        return f"<BlogPost(id={self.id}, slug='{self.slug}')>"

    @property
    def tags(self) -> list:
        return [row.tag for row in self.tag_rows]

    def set_tags(self, tags) -> None:
        """Replace the tag set, keeping first-seen order and dropping duplicates."""
        wanted = []
        for tag in tags or []:
            if tag and tag not in wanted:
                wanted.append(tag)

        existing = {row.tag: row for row in self.tag_rows}
        rows = []
        for position, tag in enumerate(wanted):
            row = existing.get(tag) or BlogPostTag(tag=tag)
            row.position = position
            rows.append(row)
        self.tag_rows = rows

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "excerpt": self.excerpt,
            "author": self.author,
            "featured_image": self.featured_image,
            "tags": self.tags,
            "meta_title": self.meta_title,
            "meta_description": self.meta_description,
            "is_published": self.is_published,
            "views": self.views,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }

    def to_summary(self) -> dict:
        full = self.to_dict()
        return {
            key: full[key]
            for key in (
                "id", "title", "slug", "excerpt", "author", "featured_image",
                "tags", "views", "created_at", "published_at",
            )
        }


class BlogPostTag(Base):
    __tablename__ = "blog_post_tags"

    post_id = Column(Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String(50), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    post = relationship("BlogPost", back_populates="tag_rows")

    __table_args__ = (
        Index("ix_blog_post_tags_tag", "tag"),
    )

    def __repr__(self):
        return f"<BlogPostTag(post_id={self.post_id}, tag='{self.tag}')>"

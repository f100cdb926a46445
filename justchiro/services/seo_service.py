"""
SEO Service

Page/post/listing meta data, sitemap (JSON data and XML) and robots.txt.
The site base URL comes from the `site_url` setting when present, otherwise
from Settings.SITE_URL.
"""
import logging
from typing import Dict, Any, List, Optional
from urllib.parse import quote
from xml.etree import ElementTree as ET

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.config import Settings, settings as default_settings
from justchiro.core.exceptions import NotFound
from justchiro.core.slug import slugify
from justchiro.models.blog_post import BlogPost
from justchiro.models.chiropractor import Chiropractor
from justchiro.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

DEFAULT_SITE_NAME = "Just Chiropractor"
DEFAULT_DESCRIPTION = "Find trusted chiropractors across the USA"
DEFAULT_KEYWORDS = "chiropractor, chiropractic care, spine health"

STATIC_PAGES = [
    {"url": "/", "priority": 1.0, "changefreq": "daily"},
    {"url": "/directory", "priority": 0.9, "changefreq": "daily"},
    {"url": "/blog", "priority": 0.8, "changefreq": "daily"},
]


class SeoService:
    def __init__(self, db: AsyncSession, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.site_settings = SettingsService(db)

    async def _site(self, *keys: str) -> Dict[str, Optional[str]]:
        values = await self.site_settings.values(set(keys) | {"site_url"})
        values["site_url"] = (values.get("site_url") or self.settings.SITE_URL).rstrip("/")
        return values

    async def page_meta(self, page: str) -> Dict[str, Any]:
        site = await self._site("site_name", "site_description", "site_keywords")
        base = site["site_url"]
        name = site.get("site_name") or DEFAULT_SITE_NAME

        meta = {
            "title": name,
            "description": site.get("site_description") or DEFAULT_DESCRIPTION,
            "keywords": site.get("site_keywords") or DEFAULT_KEYWORDS,
            "canonical": f"{base}/{'' if page == 'home' else page}",
            "ogType": "website",
            "ogImage": f"{base}/images/og-default.jpg",
        }

        if page == "home":
            meta["title"] = f"{name} - Find Chiropractors Across the USA"
        elif page == "directory":
            meta["title"] = f"Chiropractor Directory - {name}"
            meta["description"] = "Browse our comprehensive directory of chiropractors across all 50 states."
        elif page == "blog":
            meta["title"] = f"Chiropractic Blog - {name}"
            meta["description"] = "Read the latest articles about chiropractic care, health tips, and wellness advice."
        return meta

    async def blog_meta(self, slug: str) -> Dict[str, Any]:
        result = await self.db.execute(
            select(BlogPost).where(BlogPost.slug == slug, BlogPost.is_published.is_(True))
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound("Blog post not found")

        base = (await self._site("site_name"))["site_url"]
        return {
            "title": post.meta_title or post.title,
            "description": post.meta_description or post.excerpt,
            "canonical": f"{base}/blog/{slug}",
            "ogType": "article",
            "ogImage": post.featured_image or f"{base}/images/og-default.jpg",
            "article": {
                "author": post.author,
                "publishedTime": post.published_at.isoformat() if post.published_at else None,
            },
        }

    async def chiropractor_meta(self, listing_id: int) -> Dict[str, Any]:
        result = await self.db.execute(
            select(Chiropractor).where(Chiropractor.id == listing_id, Chiropractor.is_active.is_(True))
        )
        listing = result.scalar_one_or_none()
        if listing is None:
            raise NotFound("Chiropractor not found")

        site = await self._site("site_name")
        base = site["site_url"]
        name = site.get("site_name") or DEFAULT_SITE_NAME
        specialty = listing.specialty

        return {
            "title": f"{listing.name} - {listing.state} Chiropractor | {name}",
            "description": (
                f"{listing.name} - {specialty or 'Chiropractor'} in {listing.state}. "
                f"Contact: {listing.phone}. Find detailed information and contact this "
                f"trusted chiropractic professional."
            ),
            "keywords": f"{listing.name}, chiropractor {listing.state}, {specialty or 'chiropractic care'}",
            "canonical": f"{base}/chiropractor/{listing.id}",
            "ogType": "profile",
            "schema": {
                "@context": "https://schema.org",
                "@type": "MedicalBusiness",
                "name": listing.name,
                "medicalSpecialty": specialty or "Chiropractic",
                "address": {
                    "@type": "PostalAddress",
                    "streetAddress": listing.address,
                    "addressRegion": listing.state,
                    "addressCountry": "US",
                },
                "telephone": listing.phone,
                "email": listing.email,
            },
        }

    async def sitemap_pages(self) -> List[Dict[str, Any]]:
        """Static pages, state filters, published posts and active listings."""
        pages = [dict(page) for page in STATIC_PAGES]

        states = await self.db.execute(
            select(Chiropractor.state)
            .where(Chiropractor.is_active.is_(True))
            .distinct()
            .order_by(Chiropractor.state)
        )
        for (state,) in states.all():
            pages.append({
                "url": f"/directory?state={quote(state, safe='')}",
                "priority": 0.7,
                "changefreq": "weekly",
            })

        posts = await self.db.execute(
            select(BlogPost.slug, BlogPost.updated_at)
            .where(BlogPost.is_published.is_(True))
            .order_by(BlogPost.published_at.desc(), BlogPost.id.desc())
        )
        for slug, updated_at in posts.all():
            pages.append({
                "url": f"/blog/{slug}",
                "priority": 0.6,
                "changefreq": "monthly",
                "lastmod": updated_at.isoformat() if updated_at else None,
            })

        listings = await self.db.execute(
            select(Chiropractor.id, Chiropractor.name, Chiropractor.updated_at)
            .where(Chiropractor.is_active.is_(True))
            .order_by(Chiropractor.name)
        )
        for listing_id, name, updated_at in listings.all():
            pages.append({
                "url": f"/chiropractor/{listing_id}/{slugify(name)}",
                "priority": 0.5,
                "changefreq": "monthly",
                "lastmod": updated_at.isoformat() if updated_at else None,
            })
        return pages

    async def sitemap_data(self) -> Dict[str, Any]:
        return {
            "baseUrl": self.settings.SITE_URL.rstrip("/"),
            "pages": await self.sitemap_pages(),
        }

    async def sitemap_xml(self) -> str:
        base = self.settings.SITE_URL.rstrip("/")
        urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
        for page in await self.sitemap_pages():
            url = ET.SubElement(urlset, "url")
            ET.SubElement(url, "loc").text = f"{base}{page['url']}"
            ET.SubElement(url, "changefreq").text = page["changefreq"]
            ET.SubElement(url, "priority").text = f"{page['priority']:.1f}"
            if page.get("lastmod"):
                ET.SubElement(url, "lastmod").text = page["lastmod"][:10]

        body = ET.tostring(urlset, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'

    def robots_txt(self) -> str:
        base = self.settings.SITE_URL.rstrip("/")
        return (
            "# Robots.txt for Just Chiropractor\n"
            "User-agent: *\n"
            "Allow: /\n"
            "\n"
            "# Disallow admin pages\n"
            "Disallow: /admin\n"
            "Disallow: /admin/\n"
            "Disallow: /api/\n"
            "\n"
            "# Sitemap\n"
            f"Sitemap: {base}/sitemap.xml\n"
            "\n"
            "# Crawl-delay\n"
            "Crawl-delay: 1\n"
        )

"""
SEO routes

Meta data for the frontend's static pages, blog posts and listings, plus
the sitemap as JSON. The XML sitemap and robots.txt are served from the
site root by the application itself.
"""
from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import envelope
from justchiro.core.config import settings
from justchiro.core.database import get_db
from justchiro.services.seo_service import SeoService

router = APIRouter()


@router.get("/page/{page}")
async def page_meta(page: str = Path(..., max_length=100), db: AsyncSession = Depends(get_db)):
    return envelope({"seo": await SeoService(db, settings).page_meta(page)})


@router.get("/blog/{slug}")
async def blog_meta(slug: str, db: AsyncSession = Depends(get_db)):
    return envelope({"seo": await SeoService(db, settings).blog_meta(slug)})


@router.get("/chiropractor/{listing_id}")
async def chiropractor_meta(listing_id: int = Path(..., ge=1), db: AsyncSession = Depends(get_db)):
    return envelope({"seo": await SeoService(db, settings).chiropractor_meta(listing_id)})


@router.get("/sitemap-data")
async def sitemap_data(db: AsyncSession = Depends(get_db)):
    return envelope(await SeoService(db, settings).sitemap_data())

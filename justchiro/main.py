"""
Just Chiropractor Backend
FastAPI application entry point

- Rate limiting with SlowAPI (default budget everywhere, tighter on login)
- Error sanitization middleware
- Security headers (CSP, X-Frame-Options, etc.)
- Request size limits
- Health endpoint with DB ping
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from justchiro import __version__
from justchiro.api.routes import admin, auth, blog, chiropractors, seo
from justchiro.api.routes import settings as site_settings
from justchiro.core.config import settings
from justchiro.core.database import AsyncSessionLocal, Base, engine, get_db
from justchiro.core.error_handler import ErrorSanitizationMiddleware, register_exception_handlers
from justchiro.core.logging_config import configure_logging
from justchiro.core.rate_limit import limiter, rate_limit_exceeded_handler
from justchiro.core.security_headers import SecurityHeadersMiddleware
from justchiro.services.seo_service import SeoService

# Import models to register them with SQLAlchemy
from justchiro.models import AuditLog, BlogPost, BlogPostTag, Chiropractor, SiteSetting, User  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure logging on startup. Local development databases get their
    tables created automatically; production schemas come from init_db.
    """
    configure_logging()
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Development schema ensured")
    logger.info(f"{settings.APP_NAME} API starting ({settings.ENVIRONMENT})")

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    lifespan=lifespan,
    title="Just Chiropractor API",
    description="""
## Just Chiropractor API

Chiropractor directory and blog with an audited admin console.

### Authentication
Admin endpoints require a JWT. Use `/api/auth/login` to get one; it is set as
an HttpOnly cookie for web clients and returned in the body for API clients.

### Rate Limits
- Login: 5 requests / 15 minutes
- General: 100 requests / 15 minutes
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check"},
        {"name": "Authentication", "description": "Login, logout and password management"},
        {"name": "Chiropractors", "description": "Chiropractor directory"},
        {"name": "Blog", "description": "Blog posts and tags"},
        {"name": "Admin", "description": "Dashboard, audit log, users and exports"},
        {"name": "Settings", "description": "Site settings"},
        {"name": "SEO", "description": "Meta data, sitemap and robots.txt"},
    ],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests that exceed the size limit."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.MAX_REQUEST_SIZE:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Request size limit exceeded: {content_length} bytes from {client}")
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "error": {
                        "kind": "PayloadTooLarge",
                        "code": "REQUEST_TOO_LARGE",
                        "message": (
                            f"Request body exceeds maximum size of "
                            f"{settings.MAX_REQUEST_SIZE // (1024 * 1024)}MB"
                        ),
                    },
                },
            )
        return await call_next(request)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(ErrorSanitizationMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(chiropractors.router, prefix="/api/chiropractors", tags=["Chiropractors"])
app.include_router(blog.router, prefix="/api/blog", tags=["Blog"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(site_settings.router, prefix="/api/settings", tags=["Settings"])
app.include_router(seo.router, prefix="/api/seo", tags=["SEO"])


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check with an actual DB ping. Returns 503 if the database is unreachable."""
    health_status = {
        "status": "ok",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database ping failed: {type(e).__name__}: {e}")
        health_status["database"] = "error"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)
    return health_status


@app.get("/sitemap.xml", tags=["SEO"], include_in_schema=False)
async def sitemap_xml(db: AsyncSession = Depends(get_db)):
    return Response(content=await SeoService(db, settings).sitemap_xml(), media_type="application/xml")


@app.get("/robots.txt", tags=["SEO"], include_in_schema=False)
async def robots_txt(db: AsyncSession = Depends(get_db)):
    return Response(content=SeoService(db, settings).robots_txt(), media_type="text/plain")

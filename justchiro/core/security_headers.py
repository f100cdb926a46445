"""
Security headers middleware

Helmet-style hardening headers on every response. The site CSP allows
inline styles/scripts and remote images for the public pages; the API docs
get a separate policy so Swagger UI and ReDoc can load from their CDN.
"""
from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from justchiro.core.config import settings

SITE_CSP = {
    "default-src": ["'self'"],
    "style-src": ["'self'", "'unsafe-inline'"],
    "script-src": ["'self'", "'unsafe-inline'"],
    "img-src": ["'self'", "data:", "https:", "http:"],
    "font-src": ["'self'", "https:", "data:"],
    "connect-src": ["'self'"],
    "frame-src": ["'none'"],
    "object-src": ["'none'"],
}

DOCS_CDN = "https://cdn.jsdelivr.net"
DOCS_CSP = {
    **SITE_CSP,
    "script-src": ["'self'", "'unsafe-inline'", DOCS_CDN],
    "style-src": ["'self'", "'unsafe-inline'", DOCS_CDN],
    "font-src": ["'self'", DOCS_CDN],
}
DOCS_PATHS = frozenset({"/docs", "/redoc", "/openapi.json"})

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HSTS = "max-age=31536000; includeSubDomains"


def render_csp(directives: Dict[str, list]) -> str:
    return "; ".join(f"{name} {' '.join(sources)}" for name, sources in directives.items())


def headers_for(path: str) -> Dict[str, str]:
    headers = dict(STATIC_HEADERS)
    headers["Content-Security-Policy"] = render_csp(DOCS_CSP if path in DOCS_PATHS else SITE_CSP)
    if settings.ENVIRONMENT == "production" and not settings.DEBUG:
        headers["Strict-Transport-Security"] = HSTS
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(headers_for(request.url.path))
        return response

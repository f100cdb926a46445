"""
Cookie Management Utilities

Centralized cookie handling for the auth token.
"""
from typing import Optional
from fastapi import Response
from starlette.requests import Request

from justchiro.core.config import Settings, settings as default_settings


def set_auth_cookie(response: Response, token: str, settings: Settings = default_settings) -> None:
    """Set the HttpOnly auth cookie (not readable by JS)."""
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


def clear_auth_cookie(response: Response, settings: Settings = default_settings) -> None:
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")


def get_token_from_cookie(request: Request, settings: Settings = default_settings) -> Optional[str]:
    """Extract access token from cookie."""
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_token_from_header(request: Request) -> Optional[str]:
    """Extract a bearer token from the Authorization header."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        return token or None
    return None

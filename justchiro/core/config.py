"""
Application configuration

Defaults assume production: DEBUG is off, SECRET_KEY and DATABASE_URL
must come from the environment, and a production start with unsafe values
is refused.

Settings are read once at startup and treated as read-only afterwards.
Components receive the Settings object at construction rather than reaching
for the module global, so tests can hand them their own instance.
"""
import ipaddress
import json
import os
import logging
from typing import Annotated, List
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

WEAK_SECRETS = {"secret", "changeme", "your-secret-key", "your-secret-key-change-in-production"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App - defaults are PRODUCTION safe
    APP_NAME: str = "Just Chiropractor"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Database - NO DEFAULT (will fail if not set)
    DATABASE_URL: str

    # Auth - NO DEFAULT SECRET KEY (will fail if not set)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60  # 7 days
    BCRYPT_ROUNDS: int = 12
    AUTH_COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "strict"

    # Public site
    SITE_URL: str = "https://justchiropractor.com"
    FRONTEND_URL: str = "http://localhost:3000"

    # CORS - JSON array or comma-separated string
    CORS_ORIGINS: Annotated[List[str], NoDecode] = DEFAULT_CORS_ORIGINS

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_cors_origins(cls, v):
        if not isinstance(v, str):
            return v
        if v.lstrip().startswith("["):
            return json.loads(v)
        return [origin.strip() for origin in v.split(",") if origin.strip()] or DEFAULT_CORS_ORIGINS

    # Reverse proxies whose X-Forwarded-For header is believed (IPs or CIDR ranges).
    # Empty: the socket peer is the client.
    TRUSTED_PROXIES: Annotated[List[str], NoDecode] = []

    @field_validator("TRUSTED_PROXIES", mode="before")
    @classmethod
    def split_trusted_proxies(cls, v):
        if isinstance(v, str):
            v = json.loads(v) if v.lstrip().startswith("[") else [p.strip() for p in v.split(",") if p.strip()]
        for proxy in v:
            ipaddress.ip_network(proxy, strict=False)
        return v

    # Database pool
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600  # 1 hour

    # Rate limiting (slowapi limit strings)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15 minutes"
    RATE_LIMIT_AUTH: str = "5/15 minutes"

    # Request body ceiling
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Bootstrap admin (init_db script)
    ADMIN_EMAIL: str = "admin@justchiropractor.com"
    ADMIN_PASSWORD: str = ""

    @property
    def cors_origins(self) -> List[str]:
        origins = list(self.CORS_ORIGINS)
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        return origins

    @model_validator(mode="after")
    def check_production(self):
        """Refuse to start a production deployment with unsafe settings."""
        if self.ENVIRONMENT != "production":
            return self

        problems = []
        if self.DEBUG:
            problems.append("DEBUG must be false in production")
        if len(self.SECRET_KEY) < 32 or self.SECRET_KEY.lower() in WEAK_SECRETS:
            problems.append("SECRET_KEY must be a random value of at least 32 characters")
        if not self.SITE_URL.startswith("https://"):
            problems.append("SITE_URL must use https")
        if self.BCRYPT_ROUNDS < 10:
            problems.append("BCRYPT_ROUNDS must be at least 10")
        if problems:
            raise ValueError("Unsafe production configuration: " + "; ".join(problems))

        if not self.COOKIE_SECURE:
            logger.warning("COOKIE_SECURE is off in production; the auth cookie may travel over plain HTTP")
        return self


def load_settings() -> Settings:
    """Build Settings from the environment, with development fallbacks."""
    try:
        return Settings()
    except Exception:
        if os.getenv("ENVIRONMENT", "development") != "development":
            raise
        logger.warning(
            "Settings validation failed, using development defaults. "
            "Set DATABASE_URL and SECRET_KEY in .env file."
        )
        os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./justchiro.db")
        os.environ.setdefault("SECRET_KEY", "dev-only-signing-key-not-for-production")
        os.environ.setdefault("ENVIRONMENT", "development")
        return Settings()


settings = load_settings()

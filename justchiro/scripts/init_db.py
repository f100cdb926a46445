"""
Database initialization

Creates all tables, the bootstrap admin account (ADMIN_EMAIL /
ADMIN_PASSWORD) and the default site settings. Safe to run repeatedly:
existing rows are left untouched.

Usage:
    python -m justchiro.scripts.init_db
"""
import asyncio
import logging
import secrets

from sqlalchemy import select

from justchiro.core.config import settings
from justchiro.core.database import Base, engine, get_db_session
from justchiro.core.logging_config import configure_logging
from justchiro.core.security import get_password_hash
from justchiro.models import DEFAULT_SETTINGS, ROLE_ADMIN, SiteSetting, User

logger = logging.getLogger(__name__)


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def create_admin(db) -> None:
    email = settings.ADMIN_EMAIL.strip().lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        logger.info(f"Admin {email} already exists, skipping")
        return

    password = settings.ADMIN_PASSWORD
    if not password:
        password = secrets.token_urlsafe(16)
        # Shown once so the operator can log in and change it
        print(f"Generated admin password for {email}: {password}")

    db.add(User(
        email=email,
        hashed_password=get_password_hash(password, settings.BCRYPT_ROUNDS),
        name="Administrator",
        role=ROLE_ADMIN,
        is_active=True,
    ))
    logger.info(f"Created default admin user {email}")


async def insert_default_settings(db) -> None:
    result = await db.execute(select(SiteSetting.setting_key))
    existing = set(result.scalars().all())

    added = 0
    for key, value, setting_type, description in DEFAULT_SETTINGS:
        if key in existing:
            continue
        db.add(SiteSetting(
            setting_key=key,
            setting_value=value,
            setting_type=setting_type,
            description=description,
        ))
        added += 1
    logger.info(f"Inserted {added} default site settings")


async def init_db():
    logger.info("Starting database initialization...")
    await create_tables()
    async with get_db_session() as db:
        await create_admin(db)
        await insert_default_settings(db)
    await engine.dispose()
    logger.info("Database initialization completed successfully!")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(init_db())

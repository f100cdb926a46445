"""
Pytest configuration and fixtures for Just Chiropractor tests.

Every test gets its own in-memory SQLite database; the app's get_db
dependency is overridden to hand out sessions bound to it.
"""
import os

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from justchiro.core.database import Base, get_db
from justchiro.core.security import get_password_hash
from justchiro.core.utils import utcnow
from justchiro.models import (
    DEFAULT_SETTINGS, AuditLog, BlogPost, Chiropractor, SiteSetting, User,
)

from tests.factories import ADMIN_PASSWORD, token_for


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client against the real app, wired to the per-test database."""
    from justchiro.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ----- Accounts -----

@pytest.fixture
def make_user(session_factory):
    async def _make_user(email="admin@justchiro.com", password=ADMIN_PASSWORD, name="Admin",
                         role="admin", is_active=True) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                hashed_password=get_password_hash(password, rounds=4),
                name=name,
                role=role,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user
    return _make_user


@pytest.fixture
async def admin_user(make_user):
    return await make_user()


@pytest.fixture
def admin_token(admin_user):
    return token_for(admin_user)


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


# ----- Content -----

@pytest.fixture
def make_listing(session_factory):
    async def _make_listing(**overrides) -> Chiropractor:
        data = {
            "name": "Dr. Sarah Johnson",
            "state": "California",
            "address": "123 Main Street, Los Angeles, CA 90001",
            "phone": "(555) 123-4567",
            "email": "sarah.johnson@chiro.com",
            "specialty": "Sports Injury & Rehabilitation",
            "is_featured": False,
            "is_active": True,
        }
        data.update(overrides)
        async with session_factory() as session:
            listing = Chiropractor(**data)
            session.add(listing)
            await session.commit()
            return listing
    return _make_listing


@pytest.fixture
def make_post(session_factory):
    async def _make_post(title="Understanding Spinal Alignment", slug=None, tags=(), is_published=True,
                         **overrides) -> BlogPost:
        from justchiro.core.slug import slugify

        async with session_factory() as session:
            post = BlogPost(
                title=title,
                slug=slug or slugify(title),
                content=overrides.pop("content", "Spinal alignment is crucial for overall health. " * 3),
                author=overrides.pop("author", "Dr. Michael Chen"),
                is_published=is_published,
                published_at=utcnow() if is_published else None,
                views=overrides.pop("views", 0),
                **overrides,
            )
            post.set_tags(list(tags))
            session.add(post)
            await session.commit()
            return post
    return _make_post


@pytest.fixture
async def default_settings(session_factory):
    async with session_factory() as session:
        for key, value, setting_type, description in DEFAULT_SETTINGS:
            session.add(SiteSetting(
                setting_key=key,
                setting_value=value,
                setting_type=setting_type,
                description=description,
            ))
        await session.commit()


# ----- Inspection -----

@pytest.fixture
def audit_entries(session_factory):
    """Audit log rows, oldest first, optionally filtered by action."""
    async def _audit_entries(action=None):
        async with session_factory() as session:
            query = select(AuditLog).order_by(AuditLog.id)
            if action is not None:
                query = query.where(AuditLog.action == action)
            return list((await session.execute(query)).scalars().all())
    return _audit_entries


@pytest.fixture
def count_rows(session_factory):
    async def _count_rows(model) -> int:
        async with session_factory() as session:
            return await session.scalar(select(func.count()).select_from(model))
    return _count_rows


@pytest.fixture
def chiropractor_payload():
    return {
        "name": "Dr. Emily Rodriguez",
        "state": "Texas",
        "address": "789 Oak Lane, Houston, TX 77001",
        "phone": "(555) 345-6789",
        "email": "Emily.Rodriguez@Chiro.com",
        "website": "https://www.rodriguezchiro.com",
        "specialty": "General Chiropractic Care",
        "description": "Comprehensive chiropractic care for the whole family.",
        "is_featured": True,
    }


@pytest.fixture
def post_payload():
    return {
        "title": "5 Benefits of Regular Chiropractic Care",
        "content": (
            "Regular chiropractic care offers numerous benefits beyond just pain relief. "
            "From improved posture to enhanced athletic performance, discover how consistent "
            "chiropractic adjustments can transform your overall health and wellness."
        ),
        "author": "Dr. Sarah Johnson",
        "tags": ["Health", "Wellness"],
    }

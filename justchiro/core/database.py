"""
Database configuration and session management

Pool sizing depends on the backend: PostgreSQL (asyncpg) gets a bounded
queue pool, SQLite (aiosqlite, local dev and tests) a single shared
connection.
"""
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from justchiro.core.config import settings
from justchiro.core.exceptions import Conflict, StorageFailure

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Map Heroku/Railway style postgres URLs onto the asyncpg driver."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    if settings.ENVIRONMENT == "production":
        return {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }
    return {
        "pool_size": 2,
        "max_overflow": 5,
        "pool_pre_ping": True,
    }


DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
    **engine_options(DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


@asynccontextmanager
async def get_db_session():
    """
    Session that commits on a clean exit and rolls back otherwise.

    Backs the request dependency below and the bootstrap scripts:

        async with get_db_session() as db:
            db.add(...)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncSession:
    """Request-scoped session. Pipeline writes commit earlier through UnitOfWork."""
    async with get_db_session() as session:
        yield session


class UnitOfWork:
    """
    Transaction boundary for one mutation and its audit entry.

    Everything flushed inside the block is committed together on a clean
    exit and rolled back together on any exception. Storage errors are
    translated into the domain taxonomy:
    IntegrityError -> Conflict, any other SQLAlchemyError -> StorageFailure.

    Usage:
        async with UnitOfWork(db):
            entity = await repo.create(...)
            await audit.record(...)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.db.rollback()
            self._translate(exc)
            return False

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self._translate(e)
            raise
        return False

    @staticmethod
    def _translate(exc: BaseException) -> None:
        if isinstance(exc, IntegrityError):
            logger.warning(f"Integrity violation rolled back: {exc.orig!r}")
            raise Conflict("Record conflicts with existing data") from exc
        if isinstance(exc, SQLAlchemyError):
            logger.error(f"Storage failure rolled back: {type(exc).__name__}: {exc}")
            raise StorageFailure("Failed to persist changes") from exc

"""
Database Configuration for the Admissions CRM

Async SQLAlchemy engine and session management. One session per request:
commits when the handler returns, rolls back when it raises, so every
cascading write in a request is applied atomically.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, Optional
from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy import text

from admissions_crm.config.settings import settings
from admissions_crm.infrastructure.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

SessionHook = Callable[[], Awaitable[None]]

_AFTER_COMMIT = "after_commit_hooks"
_AFTER_ROLLBACK = "after_rollback_hooks"


def build_database_url(
    database_url: Optional[str],
    supabase_url: Optional[str],
    supabase_password: Optional[str],
) -> str:
    """
    Resolve the asyncpg connection URL.

    Uses DATABASE_URL when set, otherwise derives the direct connection
    string from SUPABASE_URL + SUPABASE_PASSWORD.
    """
    if database_url:
        if database_url.startswith("postgresql://"):
            return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if database_url.startswith("postgres://"):
            return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
        return database_url

    if not supabase_url or not supabase_password:
        raise ConfigurationError(
            "Either DATABASE_URL or (SUPABASE_URL + SUPABASE_PASSWORD) is required",
            missing_keys=["DATABASE_URL", "SUPABASE_PASSWORD"],
        )

    match = re.match(r'https?://([^.]+)\.supabase\.co', supabase_url)
    if not match:
        raise ConfigurationError(f"Invalid SUPABASE_URL format: {supabase_url}")

    project_ref = match.group(1)
    password = quote_plus(supabase_password)

    return (
        f"postgresql+asyncpg://postgres:{password}"
        f"@db.{project_ref}.supabase.co:5432/postgres"
    )


class DatabaseManager:
    """
    Manages async database connections and sessions.

    Implements Singleton pattern for connection pooling efficiency.
    """

    _instance: Optional["DatabaseManager"] = None
    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def __new__(cls) -> "DatabaseManager":
        """Singleton pattern ensures single connection pool."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def engine(self) -> AsyncEngine:
        """Get or create async engine with connection pooling."""
        if self._engine is None:
            self._initialize_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create session factory."""
        if self._session_factory is None:
            self._initialize_engine()
        return self._session_factory

    def _initialize_engine(self) -> None:
        """Initialize async engine with pooling configuration."""
        database_url = build_database_url(
            settings.database_url,
            settings.supabase_url,
            settings.supabase_password,
        )

        self._engine = create_async_engine(
            database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,  # Verify connections before use
        )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        """Close engine and dispose of connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# ============================================================================
# Transaction hooks
# ============================================================================

def run_after_commit(session: AsyncSession, hook: SessionHook) -> None:
    """Run ``hook`` once the session's transaction has committed."""
    session.info.setdefault(_AFTER_COMMIT, []).append(hook)


def run_after_rollback(session: AsyncSession, hook: SessionHook) -> None:
    """Run ``hook`` if the session's transaction is rolled back instead."""
    session.info.setdefault(_AFTER_ROLLBACK, []).append(hook)


async def finish_transaction(session: AsyncSession, committed: bool) -> None:
    """
    Run the hooks registered for the outcome and discard the others.

    A failing hook is logged and the remaining hooks still run.
    """
    keep, discard = (_AFTER_COMMIT, _AFTER_ROLLBACK) if committed else (_AFTER_ROLLBACK, _AFTER_COMMIT)
    session.info.pop(discard, None)
    for hook in session.info.pop(keep, []):
        try:
            await hook()
        except Exception as e:
            logger.error(f"Post-transaction hook failed: {e}")


@asynccontextmanager
async def savepoint(session: AsyncSession) -> AsyncGenerator[None, None]:
    """
    Nested transaction that keeps the session hooks in step with it.

    When the block raises, after-commit hooks it registered are dropped and
    its after-rollback hooks run straight away, since the outer transaction
    may still commit.
    """
    commit_mark = len(session.info.get(_AFTER_COMMIT, []))
    rollback_mark = len(session.info.get(_AFTER_ROLLBACK, []))
    try:
        async with session.begin_nested():
            yield
    except Exception:
        del session.info.get(_AFTER_COMMIT, [])[commit_mark:]
        rolled_back = session.info.get(_AFTER_ROLLBACK, [])
        hooks = rolled_back[rollback_mark:]
        del rolled_back[rollback_mark:]
        for hook in hooks:
            try:
                await hook()
            except Exception as e:
                logger.error(f"Post-savepoint hook failed: {e}")
        raise


# Global instance (lazy initialization)
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get or create the database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection for async database sessions.

    Usage in FastAPI:
        @router.get("/leads")
        async def list_leads(session: AsyncSession = Depends(get_session)):
            ...
    """
    db = get_db_manager()
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.warning("Session rolled back after request failure")
            await finish_transaction(session, committed=False)
            raise
        await finish_transaction(session, committed=True)


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions outside FastAPI requests.

    Usage:
        async with get_session_context() as session:
            result = await session.execute(query)
    """
    db = get_db_manager()
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            await finish_transaction(session, committed=False)
            raise
        await finish_transaction(session, committed=True)


async def init_db() -> None:
    """Initialize database connection pool (called on app startup)."""
    db = get_db_manager()
    async with db.session_factory() as session:
        await session.execute(text("SELECT 1"))


async def close_db() -> None:
    """Close database connection pool (called on app shutdown)."""
    db = get_db_manager()
    await db.close()

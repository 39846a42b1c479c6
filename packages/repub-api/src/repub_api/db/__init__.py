# SPDX-License-Identifier: MIT
"""Database module for the package repository."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import DatabaseConfig

__all__ = [
    "init_db",
    "close_db",
    "get_session",
    "get_repository",
    "PackageRepository",
    "SQLAlchemyPackageRepository",
]

# Database engine and session will be initialized at startup
_engine = None
_session_factory = None


def async_url(url: str) -> str:
    """Convert a sync database URL to its async driver equivalent."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


async def init_db(config: "DatabaseConfig") -> None:
    """Initialize database connection and create tables.

    Args:
        config: Database configuration
    """
    global _engine, _session_factory

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    url = async_url(config.url)
    engine_options = {"echo": config.echo}
    if "sqlite" not in url:
        engine_options["pool_size"] = config.pool_size
        engine_options["max_overflow"] = config.max_overflow

    _engine = create_async_engine(url, **engine_options)

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    from .models import Base

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connection."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_session():
    """Get database session for dependency injection."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized")

    async with _session_factory() as session:
        yield session


from .repository import PackageRepository, SQLAlchemyPackageRepository, get_repository  # noqa: E402

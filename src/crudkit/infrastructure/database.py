"""Async SQLAlchemy engine, session factory, and session dependency.

Engines are created lazily and cached per URL, so importing this module never
opens a connection or requires a database driver.
"""

from collections.abc import AsyncGenerator

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./crudkit.db"
    echo_sql: bool = False


_engines: dict[str, AsyncEngine] = {}


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return the shared engine for settings.database_url, creating it on first use."""
    settings = settings or Settings()
    engine = _engines.get(settings.database_url)
    if engine is None:
        engine = create_async_engine(
            settings.database_url,
            echo=settings.echo_sql,
            pool_pre_ping=True,
        )
        _engines[settings.database_url] = engine
    return engine


def get_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine or get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a transactional async session."""
    async with get_session_factory()() as session:
        async with session.begin():
            yield session

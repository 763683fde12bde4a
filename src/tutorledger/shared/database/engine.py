from __future__ import annotations

from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from tutorledger.config import Settings, get_settings
from tutorledger.shared.database.base_model import Base
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def build_engine(database_url: str, settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create an async engine with pooling defaults that match the target store.
    """
    settings = settings or get_settings()
    kwargs: Dict[str, Any] = {"echo": settings.debug and not settings.is_prod}

    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection or every session sees an empty DB
        if ":memory:" in database_url or database_url.endswith("://"):
            kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
        else:
            kwargs.update(poolclass=NullPool)
    elif settings.is_testing:
        kwargs.update(poolclass=NullPool)
    else:
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=30,
            pool_recycle=3600,
            pool_pre_ping=True,
            connect_args={
                "server_settings": {
                    "application_name": f"tutor-ledger-{settings.environment}",
                    "statement_timeout": "30000",  # 30s
                }
            },
        )

    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_database_engine(
    database_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> AsyncEngine:
    """
    Initialize the process engine & session factory and smoke-test the connection.
    """
    global _engine, _session_factory
    settings = settings or get_settings()
    url = database_url or settings.database_url

    _engine = build_engine(url, settings)
    _session_factory = build_session_factory(_engine)

    async with _engine.begin() as conn:
        await conn.execute(sa.text("SELECT 1"))

    logger.info("Database connection established", dialect=_engine.dialect.name)
    return _engine


async def close_database_engine() -> None:
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call create_database_engine first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Session factory not initialized. Call create_database_engine first.")
    return _session_factory


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create any missing tables from the ORM metadata.

    Only for SQLite stores (local runs, tests); PostgreSQL schema, RLS
    policies included, comes from the migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ensured", tables=sorted(Base.metadata.tables))

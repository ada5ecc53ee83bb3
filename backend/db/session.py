"""
SellerOps Database Session Management

Async SQLAlchemy engine and session factory. The API shares the module-level
engine; workers and scripts build a short-lived engine per run.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core.config import get_settings


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Engine with pool settings applied only where the dialect supports them."""
    if not database_url.startswith("sqlite"):
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(database_url, **kwargs)


def session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.database_echo)
AsyncSessionLocal = session_factory(engine)


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy models."""
    pass

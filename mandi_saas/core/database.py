"""
Database configuration and session management

Schema is owned by Alembic migrations.
"""

from functools import lru_cache
from typing import Any, Dict, Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from mandi_saas.core.config import Settings, get_settings

settings = get_settings()


def database_url(settings: Settings) -> str:
    return settings.DATABASE_URL.replace("postgresql://", "postgresql+psycopg2://")


engine = create_engine(
    database_url(settings),
    echo=settings.DEBUG,
    pool_pre_ping=True,
)


def worker_engine_options(settings: Settings) -> Dict[str, Any]:
    """Engine options bounding every worker DB call (PostgreSQL only)"""
    if not database_url(settings).startswith("postgresql"):
        return {}
    statement_timeout_ms = settings.WORKER_STATEMENT_TIMEOUT_SECONDS * 1000
    return {
        "pool_timeout": settings.WORKER_POOL_TIMEOUT_SECONDS,
        "connect_args": {"options": f"-c statement_timeout={statement_timeout_ms}"},
    }


@lru_cache()
def get_worker_engine() -> Engine:
    """Engine for the subscription worker, created on first use"""
    return create_engine(
        database_url(settings),
        echo=settings.DEBUG,
        pool_pre_ping=True,
        **worker_engine_options(settings),
    )


def get_session() -> Generator[Session, None, None]:
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session

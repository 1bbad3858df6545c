"""
Engine y sesiones de base de datos del sync.

Los casos de uso manejan sus propias transacciones (un commit por item del
outbox o por record del webhook), por eso las sesiones que se entregan
aqui no hacen commit implicito: solo garantizan rollback y cierre.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from mentor_sync.core.config import settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def engine_args_for(database_url: str, app_settings: Any) -> dict:
    """
    Argumentos del engine segun el driver.

    PostgreSQL: pool acotado y application_name, asi las conexiones del
    dispatcher se distinguen en pg_stat_activity. SQLite no usa pool.
    """
    args = {"echo": app_settings.DEBUG}
    if not database_url.startswith("postgresql"):
        return args

    args.update({
        "pool_size": app_settings.DB_POOL_SIZE,
        "max_overflow": app_settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    })
    if "+asyncpg" in database_url:
        args["connect_args"] = {
            "server_settings": {"application_name": app_settings.APP_NAME},
        }
    return args


engine = create_async_engine(
    settings.effective_database_url,
    **engine_args_for(settings.effective_database_url, settings),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Sesion para jobs y requests. Lo no confirmado se descarta si el bloque
    lanza; el commit queda en manos del caso de uso.
    """
    async with (factory or AsyncSessionLocal)() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependencia de FastAPI: una sesion por request."""
    async with session_scope() as session:
        yield session


async def init_db() -> None:
    """Crea las tablas que falten (desarrollo y tests; en produccion, alembic)."""
    # Registrar modelos en Base.metadata antes de create_all
    from mentor_sync.infrastructure.database import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Cierra el pool de conexiones."""
    await engine.dispose()

"""
Entorno de Alembic del sync.

La base se comparte con la plataforma principal, que tiene sus propias
migraciones. Por eso:
- el historial vive en su propia tabla (alembic_version_mentor_sync)
- autogenerate solo mira las tablas declaradas en los modelos del sync,
  nunca propone borrar tablas ajenas
- asyncpg se cambia por psycopg: las migraciones corren sincronicas
"""
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

API_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(API_DIR))

from mentor_sync.core.config import settings  # noqa: E402
from mentor_sync.infrastructure.database import models  # noqa: E402,F401
from mentor_sync.infrastructure.database.session import Base  # noqa: E402

VERSION_TABLE = "alembic_version_mentor_sync"

config = context.config
config.set_main_option(
    "sqlalchemy.url",
    settings.effective_database_url.replace("+asyncpg", "+psycopg"),
)
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    """Ignora tablas reflejadas que no pertenecen a los modelos del sync."""
    if type_ == "table" and reflected and compare_to is None:
        return False
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        version_table=VERSION_TABLE,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Genera el SQL sin conectarse (para revisarlo antes de aplicarlo)."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

"""
Alembic migration environment for the planner schema.
Runs online against DATABASE_URL_SYNC, or offline to emit a SQL script.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from planner.db.base import Base
from planner.models import Company, Client, Guest, HotelRecord, TransportRecord, BudgetItem  # noqa: F401 - Import models for autogenerate
from planner.core.config import get_settings

config = context.config
settings = get_settings()

# Migrations use the synchronous driver
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_kwargs(url: str) -> dict:
    # SQLite can only ALTER tables through batch mode
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
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
        context.configure(
            connection=connection,
            **_configure_kwargs(str(connection.engine.url)),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

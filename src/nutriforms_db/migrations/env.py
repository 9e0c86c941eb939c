"""Alembic environment for the form tables.

Migrations run synchronously, so the libpq URL from ``get_sync_url()``
overrides whatever placeholder ``alembic.ini`` carries.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from nutriforms_db.config import get_sync_url
from nutriforms_db.models import Base  # registers both tables on Base.metadata

config = context.config
config.set_main_option("sqlalchemy.url", get_sync_url())

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect and apply pending revisions."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

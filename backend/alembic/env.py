"""
Alembic migration environment for the booking schema.

The overlap exclusion constraints live only in migrations (they need
PostgreSQL's btree_gist), so autogenerate is told to leave them alone.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from booking_core.core.config import get_settings
from booking_core.db.base import Base
from booking_core.models import Hold, Hotel, Reservation, Room, RoomType, User  # noqa: F401 - Import models for autogenerate

MIGRATION_ONLY_PREFIX = "excl_"

config = context.config

# Settings win over whatever alembic.ini carries
config.set_main_option("sqlalchemy.url", get_settings().DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    if reflected and compare_to is None and name and name.startswith(MIGRATION_ONLY_PREFIX):
        return False
    return True


def _configure(**kwargs) -> None:
    url = config.get_main_option("sqlalchemy.url") or ""
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
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

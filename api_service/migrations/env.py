import os
import sys

# Add project root to sys.path, assuming env.py is in api_service/migrations
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Importing the maintenance models registers their tables on Base.metadata.
import dwellwell.maintenance.models  # noqa: E402,F401
from api_service.db.models import Base  # noqa: E402
from dwellwell.config.settings import settings  # noqa: E402

target_metadata = Base.metadata


def _database_url() -> str:
    # An explicit sqlalchemy.url (e.g. `alembic -x` overrides in tests) wins.
    configured = config.get_main_option("sqlalchemy.url")
    if configured:
        return configured
    return settings.database.POSTGRES_URL_SYNC


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and not an Engine, so no DBAPI
    is needed. Calls to context.execute() emit the SQL to the script output.
    """
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a synchronous engine."""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = _database_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

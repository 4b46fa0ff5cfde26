"""
Alembic environment for the ACL store.

The database URL always comes from the application settings, so migrations
run against the same database the service opens.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from fileagent.core.config import get_settings
from fileagent.core.database import Base
from fileagent.models import Acl, APIKey, ActivityLog  # noqa: F401

config = context.config
# ConfigParser interpolation treats "%" as special
config.set_main_option("sqlalchemy.url", get_settings().sqlalchemy_database_uri.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        # SQLite can only alter tables by copying them
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

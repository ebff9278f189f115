from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from portal.config import settings
from portal.db import Base
import portal.models  # noqa: F401  registers tables on Base.metadata

config = context.config

# Override sqlalchemy.url with the fixed URL from settings
config.set_main_option("sqlalchemy.url", settings.database_url_fixed)

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    # main.py keeps its JSON logging and turns this off
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
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
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

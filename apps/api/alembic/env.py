import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from dxcrm.core.database import Base
from dxcrm.core.config import get_settings
from dxcrm.activity import models as activity_models  # noqa: F401
from dxcrm.core import sequence as sequence_models  # noqa: F401
from dxcrm.crm import models as crm_models  # noqa: F401
from dxcrm.identity import models as identity_models  # noqa: F401
from dxcrm.warehouse import models as warehouse_models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url") or get_settings().database_url


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(
        section,
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

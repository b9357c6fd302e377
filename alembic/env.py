"""Alembic environment for brokerage ledger schema migrations."""
# pylint: disable=no-member,invalid-name,wrong-import-order

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from brokerage_ledger.config import config_load_database_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

DATABASE_URL = config_load_database_url()

# Schema is written as explicit DDL in revisions; there is no ORM metadata to autogenerate from.
target_metadata = None


def alembic_configure_options() -> dict[str, object]:
    """Return migration context options shared by offline and online runs."""

    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "transaction_per_migration": True,
    }


def run_migrations_offline() -> None:
    """Emit migration SQL without a database connection."""

    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **alembic_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against the configured database."""

    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **alembic_configure_options())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

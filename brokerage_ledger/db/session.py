"""Engine factory shared by the API, the CLI and the recalculation job."""

from sqlalchemy import Engine, create_engine

DB_APPLICATION_NAME = "brokerage-ledger"


def db_create_engine(database_url: str, pool_size: int = 5) -> Engine:
    """Create the pooled PostgreSQL engine.

    Sessions run in UTC so `timestamptz` values come back offset-aware in
    UTC regardless of the server default. Connections identify themselves
    in `pg_stat_activity` by application name.

    Args:
        database_url: SQLAlchemy database URL.
        pool_size: Persistent connections; sized to the recalculation worker count.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the URL is blank or the pool size is not positive.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")
    if pool_size < 1:
        raise ValueError("pool_size must be >= 1")

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=pool_size,
        connect_args={"application_name": DB_APPLICATION_NAME, "options": "-c timezone=UTC"},
    )


__all__ = ["DB_APPLICATION_NAME", "db_create_engine"]

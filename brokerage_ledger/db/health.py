"""PostgreSQL connectivity probe used by the health endpoint."""

import time

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from brokerage_ledger.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Probe the brokerage database through the shared engine pool."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Read the server version and time the round trip.

        Returns:
            HealthStatus: Probe outcome with server version and latency.

        Raises:
            ConnectionError: Raised when the server cannot be reached or the query fails.
        """

        probe_started = time.perf_counter()
        try:
            with self._engine.connect() as connection:
                server_version = connection.execute(text("SHOW server_version")).scalar_one()
        except SQLAlchemyError as error:
            raise ConnectionError(f"database probe failed for {self.db_connection_label()}") from error

        latency_ms = round((time.perf_counter() - probe_started) * 1000, 2)
        return HealthStatus(
            status="ok",
            detail=f"postgresql {server_version} answered in {latency_ms} ms",
            server_version=str(server_version),
            latency_ms=latency_ms,
        )

"""Typed value objects shared by the db, job and API layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStatus:
    """Outcome of one database connectivity probe.

    Attributes:
        status: `ok` when the probe query answered.
        detail: Operator-facing description of the probe.
        server_version: PostgreSQL `server_version` reported by the probe.
        latency_ms: Round-trip time of the probe query in milliseconds.
    """

    status: str
    detail: str
    server_version: str | None = None
    latency_ms: float | None = None

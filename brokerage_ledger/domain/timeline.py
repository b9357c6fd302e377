"""Stage timeline recorded by batch jobs for run diagnostics."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any


class StageTimeline:
    """Ordered stage events of one job run.

    Each event carries its wall-clock instant and the milliseconds elapsed
    since the timeline was created, so a serialized run shows where time went.
    """

    def __init__(self) -> None:
        self._started = time.perf_counter()
        self._events: list[dict[str, object]] = []

    def timeline_record(self, stage: str, status: str, **details: Any) -> None:
        """Append one stage event.

        Args:
            stage: Stage name, such as `client_read` or `calculation`.
            status: Stage status marker.
            **details: JSON-serializable stage details.

        Raises:
            ValueError: Raised when stage or status is blank.
        """

        if not stage.strip():
            raise ValueError("stage must not be blank")
        if not status.strip():
            raise ValueError("status must not be blank")

        event: dict[str, object] = {
            "stage": stage.strip(),
            "status": status.strip(),
            "at_utc": datetime.now(timezone.utc).isoformat(),
            "elapsed_ms": round((time.perf_counter() - self._started) * 1000, 2),
        }
        if details:
            event["details"] = details
        self._events.append(event)

    @property
    def events(self) -> list[dict[str, object]]:
        """Return a copy of the recorded events in order."""

        return list(self._events)


__all__ = ["StageTimeline"]

"""Typed contracts between job orchestration and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol


@dataclass(frozen=True)
class JobExecutionResult:
    """Name and final status shared by every job outcome.

    Attributes:
        job_name: Job identifier.
        status: `success`, `partial_failure` or `failed`.
    """

    job_name: str
    status: str


class JobOrchestratorPort(Protocol):
    """Scheduler-facing port: run a named job with its configured defaults."""

    def job_supported_names(self) -> tuple[str, ...]:
        """Return the job names accepted by `job_execute`."""

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Run one named job for the period containing today.

        Args:
            job_name: Job identifier.

        Returns:
            JobExecutionResult: Final job outcome.

        Raises:
            ValueError: Raised when the job name is unsupported.
        """


class RecalculationPort(Protocol):
    """Operator-facing port: recalculate an explicit period for every client."""

    def job_execute_recalculation(
        self,
        period_kind: str,
        period_start: date,
        clear_payment: bool = False,
    ) -> JobExecutionResult:
        """Recalculate one period for all clients.

        Args:
            period_kind: `day`, `month` or `quarter`.
            period_start: First local date of the period.
            clear_payment: Reset quarter payment state for every client.

        Returns:
            JobExecutionResult: Batch outcome with per-client failures.

        Raises:
            RuntimeError: Raised when clients cannot be enumerated.
        """


__all__ = ["JobExecutionResult", "JobOrchestratorPort", "RecalculationPort"]

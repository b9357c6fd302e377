"""Job-layer orchestrator recalculating brokerage for every client of one period."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from brokerage_ledger.db import BrokerageLedgerRepositoryPort
from brokerage_ledger.domain import StageTimeline
from brokerage_ledger.ledger import (
    PERIOD_KIND_DAY,
    PERIOD_KIND_MONTH,
    PERIOD_KIND_QUARTER,
    PERIOD_KINDS,
    BrokerageCalculationPort,
    BrokerageEngineError,
)

from .interfaces import JobExecutionResult, JobOrchestratorPort, RecalculationPort

logger = logging.getLogger(__name__)

RECALCULATION_STATUS_SUCCESS = "success"
RECALCULATION_STATUS_PARTIAL = "partial_failure"
RECALCULATION_STATUS_FAILED = "failed"


@dataclass(frozen=True)
class RecalculationOrchestratorConfig:
    """Configuration values for batch recalculation.

    Attributes:
        period_kind: Period kind recalculated by the scheduled job.
        business_timezone: IANA timezone used to resolve today's period.
        max_workers: Worker threads calculating clients concurrently.
    """

    period_kind: str = PERIOD_KIND_MONTH
    business_timezone: str = "Asia/Kolkata"
    max_workers: int = 4


@dataclass(frozen=True)
class RecalculationFailure:
    """One client whose calculation failed.

    Attributes:
        client_id: Client identifier.
        error_code: Deterministic error code.
        error_message: Human-readable error message.
    """

    client_id: int
    error_code: str
    error_message: str


@dataclass(frozen=True)
class RecalculationRunResult(JobExecutionResult):
    """Outcome of one batch recalculation run.

    Attributes:
        period_kind: Recalculated period kind.
        period_start: Recalculated period start.
        processed_count: Clients calculated successfully.
        failed_count: Clients whose calculation failed.
        total_brokerage: Sum of successful client totals.
        failures: Per-client failures in client order.
        timeline: Structured stage events.
    """

    period_kind: str
    period_start: date
    processed_count: int
    failed_count: int
    total_brokerage: Decimal
    failures: tuple[RecalculationFailure, ...] = ()
    timeline: list[dict[str, object]] = field(default_factory=list)


class BrokerageRecalculationOrchestrator(JobOrchestratorPort, RecalculationPort):
    """Recalculate one period for all clients with per-client failure isolation."""

    _RECALCULATE_JOB_NAME = "brokerage_recalculate_all"

    def __init__(
        self,
        calculation_service: BrokerageCalculationPort,
        repository: BrokerageLedgerRepositoryPort,
        config: RecalculationOrchestratorConfig,
        today_provider: Callable[[], date] | None = None,
    ):
        """Initialize recalculation dependencies.

        Args:
            calculation_service: Per-client calculation service.
            repository: Repository used to enumerate clients.
            config: Orchestrator configuration values.
            today_provider: Optional local-date provider for scheduled runs.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if calculation_service is None:
            raise ValueError("calculation_service must not be None")
        if repository is None:
            raise ValueError("repository must not be None")
        if config.period_kind not in PERIOD_KINDS:
            raise ValueError(f"unsupported config.period_kind={config.period_kind}")
        if not config.business_timezone.strip():
            raise ValueError("config.business_timezone must not be blank")
        if config.max_workers < 1:
            raise ValueError("config.max_workers must be >= 1")

        self._calculation_service = calculation_service
        self._repository = repository
        self._config = config
        self._today_provider = today_provider or self._job_today_local

    def job_supported_names(self) -> tuple[str, ...]:
        """Return supported job names."""

        return (self._RECALCULATE_JOB_NAME,)

    def job_execute(self, job_name: str) -> RecalculationRunResult:
        """Recalculate the configured period kind containing today's local date.

        Args:
            job_name: Name of job to execute.

        Returns:
            RecalculationRunResult: Batch outcome.

        Raises:
            ValueError: Raised when job name is unsupported.
            RuntimeError: Raised when clients cannot be enumerated.
        """

        normalized_job_name = job_name.strip()
        if normalized_job_name != self._RECALCULATE_JOB_NAME:
            raise ValueError(f"unsupported job_name={normalized_job_name}")

        period_start = self._job_current_period_start(self._config.period_kind, self._today_provider())
        return self.job_execute_recalculation(period_kind=self._config.period_kind, period_start=period_start)

    def job_execute_recalculation(
        self,
        period_kind: str,
        period_start: date,
        clear_payment: bool = False,
    ) -> RecalculationRunResult:
        """Recalculate one explicit period for every client.

        A failing client is recorded with its error code and never stops the
        remaining clients.

        Args:
            period_kind: Period kind.
            period_start: Period start date.
            clear_payment: Reset quarter payment state for every client.

        Returns:
            RecalculationRunResult: Batch outcome.

        Raises:
            RuntimeError: Raised when clients cannot be enumerated.
        """

        timeline = StageTimeline()
        timeline.timeline_record("run", "started", period_kind=period_kind, period_start=period_start.isoformat())

        client_ids = self._repository.db_client_list_ids()
        timeline.timeline_record("client_read", "completed", client_count=len(client_ids))

        timeline.timeline_record("calculation", "started", max_workers=self._config.max_workers)
        with ThreadPoolExecutor(max_workers=self._config.max_workers, thread_name_prefix="brokerage-recalc") as executor:
            outcomes = list(
                executor.map(
                    lambda client_id: self._job_calculate_client(client_id, period_kind, period_start, clear_payment),
                    client_ids,
                )
            )

        failures = tuple(outcome for outcome in outcomes if isinstance(outcome, RecalculationFailure))
        total_brokerage = sum(
            (outcome for outcome in outcomes if isinstance(outcome, Decimal)),
            Decimal("0"),
        )
        processed_count = len(outcomes) - len(failures)
        timeline.timeline_record(
            "calculation",
            "completed",
            processed_count=processed_count,
            failed_count=len(failures),
            failed_client_ids=[failure.client_id for failure in failures],
        )

        if not failures:
            run_status = RECALCULATION_STATUS_SUCCESS
        elif processed_count > 0:
            run_status = RECALCULATION_STATUS_PARTIAL
        else:
            run_status = RECALCULATION_STATUS_FAILED
        timeline.timeline_record("run", run_status, total_brokerage=str(total_brokerage))

        logger.info(
            "brokerage recalculation finished period=%s:%s status=%s processed=%s failed=%s total_brokerage=%s",
            period_kind,
            period_start.isoformat(),
            run_status,
            processed_count,
            len(failures),
            total_brokerage,
        )
        return RecalculationRunResult(
            job_name=self._RECALCULATE_JOB_NAME,
            status=run_status,
            period_kind=period_kind,
            period_start=period_start,
            processed_count=processed_count,
            failed_count=len(failures),
            total_brokerage=total_brokerage,
            failures=failures,
            timeline=timeline.events,
        )

    def _job_calculate_client(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
        clear_payment: bool,
    ) -> Decimal | RecalculationFailure:
        """Calculate one client and convert expected failures into a record.

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.
            clear_payment: Reset quarter payment state.

        Returns:
            Decimal | RecalculationFailure: Client total brokerage or failure record.
        """

        try:
            result = self._calculation_service.brokerage_calculate(
                client_id=client_id,
                period_kind=period_kind,
                period_start=period_start,
                clear_payment=clear_payment,
            )
        except (LookupError, ConnectionError, ValueError, RuntimeError) as error:
            error_code = self._job_error_code_for_exception(error)
            logger.error(
                "brokerage recalculation failed client_id=%s period=%s:%s code=%s error=%s",
                client_id,
                period_kind,
                period_start.isoformat(),
                error_code,
                error,
            )
            return RecalculationFailure(client_id=client_id, error_code=error_code, error_message=str(error))
        return result.summary.total_brokerage

    def _job_error_code_for_exception(self, error: Exception) -> str:
        """Map a caught exception to a deterministic failure code."""

        if isinstance(error, BrokerageEngineError):
            return error.error_code
        if isinstance(error, ConnectionError):
            return "DATABASE_CONNECTION_ERROR"
        if isinstance(error, ValueError):
            return "CONTRACT_ERROR"
        if isinstance(error, LookupError):
            return "NOT_FOUND"
        return "PERSISTENCE_ERROR"

    def _job_current_period_start(self, period_kind: str, today_local: date) -> date:
        if period_kind == PERIOD_KIND_DAY:
            return today_local
        if period_kind == PERIOD_KIND_QUARTER:
            return date(today_local.year, ((today_local.month - 1) // 3) * 3 + 1, 1)
        return today_local.replace(day=1)

    def _job_today_local(self) -> date:
        return datetime.now(ZoneInfo(self._config.business_timezone)).date()


__all__ = [
    "BrokerageRecalculationOrchestrator",
    "RECALCULATION_STATUS_FAILED",
    "RECALCULATION_STATUS_PARTIAL",
    "RECALCULATION_STATUS_SUCCESS",
    "RecalculationFailure",
    "RecalculationOrchestratorConfig",
    "RecalculationRunResult",
]

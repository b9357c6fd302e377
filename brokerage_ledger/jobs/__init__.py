"""Job layer package for workflow orchestration boundaries."""

from .interfaces import JobExecutionResult, JobOrchestratorPort, RecalculationPort
from .recalculation_orchestrator import (
	RECALCULATION_STATUS_FAILED,
	RECALCULATION_STATUS_PARTIAL,
	RECALCULATION_STATUS_SUCCESS,
	BrokerageRecalculationOrchestrator,
	RecalculationFailure,
	RecalculationOrchestratorConfig,
	RecalculationRunResult,
)

__all__ = [
	"JobExecutionResult",
	"JobOrchestratorPort",
	"RecalculationPort",
	"BrokerageRecalculationOrchestrator",
	"RECALCULATION_STATUS_FAILED",
	"RECALCULATION_STATUS_PARTIAL",
	"RECALCULATION_STATUS_SUCCESS",
	"RecalculationFailure",
	"RecalculationOrchestratorConfig",
	"RecalculationRunResult",
]

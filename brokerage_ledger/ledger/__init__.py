"""Ledger layer package for holding-period brokerage computations."""

from .brokerage_service import BrokerageCalculationService
from .errors import BrokerageEngineError, ConfigurationMissingError, DataIntegrityError, InvalidPeriodError
from .fee_formulas import (
	BrokerageCalculationDetail,
	FeeFormula,
	FeePolicy,
	fee_compute_detail,
	fee_compute_period_details,
	fee_select_formula,
)
from .fifo_engine import (
	FifoLot,
	FifoMatchRequest,
	FifoMatchResult,
	FifoShortfall,
	FifoTradeInput,
	fifo_match_client_lots,
	fifo_match_instrument,
)
from .holding_window import HoldingWindow, holding_window_compute
from .interfaces import BrokerageCalculationPort, BrokerageCalculationResult
from .periods import (
	PERIOD_KIND_DAY,
	PERIOD_KIND_MONTH,
	PERIOD_KIND_QUARTER,
	PERIOD_KINDS,
	CalculationPeriod,
	period_build_day,
	period_build_month,
	period_build_quarter,
	period_build_range,
	period_quarter_months,
	period_resolve,
)
from .rollup import (
	SUMMARY_STATUS_CALCULATED,
	SUMMARY_STATUS_PAID,
	SUMMARY_STATUS_UNCALCULATED,
	BrokerageSummary,
	rollup_build_summary,
	summary_status,
)

__all__ = [
	"BrokerageCalculationDetail",
	"BrokerageCalculationPort",
	"BrokerageCalculationResult",
	"BrokerageCalculationService",
	"BrokerageEngineError",
	"BrokerageSummary",
	"CalculationPeriod",
	"ConfigurationMissingError",
	"DataIntegrityError",
	"FeeFormula",
	"FeePolicy",
	"FifoLot",
	"FifoMatchRequest",
	"FifoMatchResult",
	"FifoShortfall",
	"FifoTradeInput",
	"HoldingWindow",
	"InvalidPeriodError",
	"PERIOD_KINDS",
	"PERIOD_KIND_DAY",
	"PERIOD_KIND_MONTH",
	"PERIOD_KIND_QUARTER",
	"SUMMARY_STATUS_CALCULATED",
	"SUMMARY_STATUS_PAID",
	"SUMMARY_STATUS_UNCALCULATED",
	"fee_compute_detail",
	"fee_compute_period_details",
	"fee_select_formula",
	"fifo_match_client_lots",
	"fifo_match_instrument",
	"holding_window_compute",
	"period_build_day",
	"period_build_month",
	"period_build_quarter",
	"period_build_range",
	"period_quarter_months",
	"period_resolve",
	"rollup_build_summary",
	"summary_status",
]

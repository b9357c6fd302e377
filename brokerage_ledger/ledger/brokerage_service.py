"""Per-client brokerage calculation and persistence service."""
# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from brokerage_ledger.db import (
    BrokerageDetailInsertRequest,
    BrokerageDetailRecord,
    BrokerageLedgerRepositoryPort,
    BrokerageSummaryRecord,
    BrokerageSummaryUpsertRequest,
    TradeRecord,
)

from .errors import ConfigurationMissingError, InvalidPeriodError
from .fee_formulas import BrokerageCalculationDetail, FeePolicy, fee_compute_period_details
from .fifo_engine import FifoLot, FifoTradeInput, fifo_match_client_lots
from .interfaces import BrokerageCalculationPort, BrokerageCalculationResult
from .periods import (
    DEFAULT_BUSINESS_TIMEZONE,
    PERIOD_KIND_QUARTER,
    PERIOD_KINDS,
    CalculationPeriod,
    period_quarter_months,
    period_quarter_number,
    period_resolve,
)
from .rollup import BrokerageSummary, rollup_build_summary

logger = logging.getLogger(__name__)

PERIOD_LOCK_STRIPES = 64


class BrokerageCalculationService(BrokerageCalculationPort):
    """Compute and persist holding-period brokerage for one client and period."""

    def __init__(
        self,
        repository: BrokerageLedgerRepositoryPort,
        brokerage_rate: Decimal | None,
        business_timezone: str = DEFAULT_BUSINESS_TIMEZONE,
        rounding_quantum: Decimal = Decimal("0.01"),
        minimum_holding_days: int = 1,
    ):
        """Initialize calculation service dependencies.

        Args:
            repository: DB-layer brokerage ledger repository.
            brokerage_rate: Configured rate as a decimal fraction, None when unset.
            business_timezone: IANA timezone defining local period boundaries.
            rounding_quantum: Currency minor unit for half-up rounding.
            minimum_holding_days: Day-count floor for overlapping lots.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when repository or timezone is invalid.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if not business_timezone.strip():
            raise ValueError("business_timezone must not be blank")
        self._repository = repository
        self._brokerage_rate = brokerage_rate
        self._business_timezone = business_timezone.strip()
        self._rounding_quantum = rounding_quantum
        self._minimum_holding_days = minimum_holding_days
        self._period_locks = tuple(threading.Lock() for _ in range(PERIOD_LOCK_STRIPES))

    def brokerage_calculate(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
        clear_payment: bool = False,
    ) -> BrokerageCalculationResult:
        """Recompute and persist one (client, period).

        Every detail is computed before the period unit of work opens, so a
        failure leaves the previously persisted summary and details untouched.

        Args:
            client_id: Client identifier.
            period_kind: `day`, `month` or `quarter`.
            period_start: First local date of the period.
            clear_payment: Reset quarter payment state instead of carrying it forward.

        Returns:
            BrokerageCalculationResult: Persisted summary and computed details.

        Raises:
            ValueError: Raised when client_id is invalid.
            DataIntegrityError: Raised when trade history cannot be matched.
            ConfigurationMissingError: Raised when rate or quarter day count is absent.
            InvalidPeriodError: Raised when the period request is malformed.
            RuntimeError: Raised when repository access fails.
        """

        if client_id < 1:
            raise ValueError("client_id must be >= 1")

        period = self._resolve_period(period_kind, period_start)
        policy = self._build_fee_policy()

        trade_rows = self._repository.db_trade_list_for_client(client_id=client_id, before_utc=period.ends_at)
        lots = fifo_match_client_lots(client_id, self._build_fifo_inputs(trade_rows), strict=True).lots
        details = self._compute_period_details(lots, period, policy)

        with self._period_lock(client_id, period):
            with self._repository.db_brokerage_period_open(
                client_id=client_id,
                period_kind=period.period_kind,
                period_start=period.period_start,
            ) as unit_of_work:
                prior_summary = unit_of_work.prior_summary
                summary = rollup_build_summary(
                    client_id=client_id,
                    period=period,
                    details=details,
                    policy=policy,
                    prior=prior_summary,
                    clear_payment=clear_payment,
                )
                summary_record = unit_of_work.replace(
                    self._build_summary_request(summary),
                    [self._build_detail_request(period, detail) for detail in details],
                )

        if prior_summary is not None and prior_summary.is_paid and not summary_record.is_paid:
            logger.warning(
                "payment state cleared client_id=%s period=%s",
                client_id,
                period.period_key,
            )
        logger.info(
            "brokerage calculated client_id=%s period=%s trades=%s details=%s total_brokerage=%s",
            client_id,
            period.period_key,
            len(trade_rows),
            len(details),
            summary_record.total_brokerage,
        )
        return BrokerageCalculationResult(period=period, summary=summary_record, details=details)

    def brokerage_get_summary(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> BrokerageSummaryRecord | None:
        """Return the last persisted summary without recomputation.

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.

        Returns:
            BrokerageSummaryRecord | None: Summary row or None when never calculated.

        Raises:
            InvalidPeriodError: Raised when the period kind is unknown.
        """

        return self._repository.db_brokerage_summary_get(
            client_id=client_id,
            period_kind=self._normalize_period_kind(period_kind),
            period_start=period_start,
        )

    def brokerage_list_details(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> list[BrokerageDetailRecord]:
        """Return persisted detail rows of one (client, period).

        Raises:
            InvalidPeriodError: Raised when the period kind is unknown.
        """

        return self._repository.db_brokerage_detail_list(
            client_id=client_id,
            period_kind=self._normalize_period_kind(period_kind),
            period_start=period_start,
        )

    def _resolve_period(self, period_kind: str, period_start: date) -> CalculationPeriod:
        normalized_kind = self._normalize_period_kind(period_kind)
        days_in_quarter = None
        if normalized_kind == PERIOD_KIND_QUARTER:
            quarter_config = self._repository.db_quarter_get(
                year=period_start.year,
                quarter_number=period_quarter_number(period_start.month),
            )
            days_in_quarter = None if quarter_config is None else quarter_config.days_in_quarter
        return period_resolve(normalized_kind, period_start, self._business_timezone, days_in_quarter)

    def _build_fee_policy(self) -> FeePolicy:
        if self._brokerage_rate is None:
            raise ConfigurationMissingError("brokerage rate is not configured; set BROKERAGE_RATE")
        return FeePolicy(
            rate=self._brokerage_rate,
            quantum=self._rounding_quantum,
            minimum_holding_days=self._minimum_holding_days,
        )

    def _compute_period_details(
        self,
        lots: tuple[FifoLot, ...],
        period: CalculationPeriod,
        policy: FeePolicy,
    ) -> list[BrokerageCalculationDetail]:
        """Compute details of a period; quarters concatenate their three months.

        Args:
            lots: Matched lots of the client.
            period: Calculation period.
            policy: Fee policy.

        Returns:
            list[BrokerageCalculationDetail]: Details in period then lot order.

        Raises:
            DataIntegrityError: Raised when a lot has inconsistent timestamps.
        """

        reference_prices = self._repository.db_stock_reference_price_map()
        if period.period_kind != PERIOD_KIND_QUARTER:
            return fee_compute_period_details(lots, period, policy, reference_prices)

        details: list[BrokerageCalculationDetail] = []
        for month_period in period_quarter_months(period):
            details.extend(fee_compute_period_details(lots, month_period, policy, reference_prices))
        return details

    def _period_lock_for(self, client_id: int, period_kind: str, period_start: date) -> threading.Lock:
        """Return the stripe lock guarding one (client, period) key.

        Distinct keys may share a stripe; the set of locks never grows.

        Args:
            client_id: Client identifier.
            period_kind: Normalized period kind.
            period_start: First local date of the period.

        Returns:
            threading.Lock: Lock for the key's stripe.
        """

        return self._period_locks[hash((client_id, period_kind, period_start)) % len(self._period_locks)]

    @contextmanager
    def _period_lock(self, client_id: int, period: CalculationPeriod) -> Iterator[None]:
        with self._period_lock_for(client_id, period.period_kind, period.period_start):
            yield

    def _normalize_period_kind(self, period_kind: str) -> str:
        normalized_kind = (period_kind or "").strip().lower()
        if normalized_kind not in PERIOD_KINDS:
            raise InvalidPeriodError(f"unsupported period_kind={period_kind}")
        return normalized_kind

    def _build_fifo_inputs(self, trade_rows: list[TradeRecord]) -> list[FifoTradeInput]:
        return [
            FifoTradeInput(
                trade_id=trade.trade_id,
                symbol=trade.symbol,
                exchange=trade.exchange,
                side=trade.side,
                quantity=trade.quantity,
                price=trade.price,
                trade_timestamp_utc=trade.trade_timestamp_utc,
            )
            for trade in trade_rows
        ]

    def _build_summary_request(self, summary: BrokerageSummary) -> BrokerageSummaryUpsertRequest:
        return BrokerageSummaryUpsertRequest(
            client_id=summary.client_id,
            period_kind=summary.period_kind,
            period_start=summary.period_start,
            period_end=summary.period_end,
            total_days_in_period=summary.total_days_in_period,
            brokerage_rate=summary.brokerage_rate,
            total_brokerage=summary.total_brokerage,
            total_holding_value=summary.total_holding_value,
            total_turnover=summary.total_turnover,
            total_trades=summary.total_trades,
            total_holding_days=summary.total_holding_days,
            total_positions=summary.total_positions,
            days_in_quarter=summary.days_in_quarter,
            average_daily_holding=summary.average_daily_holding,
            average_daily_unused=summary.average_daily_unused,
            is_paid=summary.is_paid,
            paid_amount=summary.paid_amount,
            paid_date=summary.paid_date,
        )

    def _build_detail_request(
        self,
        period: CalculationPeriod,
        detail: BrokerageCalculationDetail,
    ) -> BrokerageDetailInsertRequest:
        return BrokerageDetailInsertRequest(
            client_id=detail.client_id,
            period_kind=period.period_kind,
            period_start=period.period_start,
            lot_id=detail.lot_id,
            buy_trade_id=detail.buy_trade_id,
            sell_trade_id=detail.sell_trade_id,
            symbol=detail.symbol,
            exchange=detail.exchange,
            quantity=detail.quantity,
            acquired_price=detail.acquired_price,
            disposed_price=detail.disposed_price,
            acquired_at_utc=detail.acquired_at,
            disposed_at_utc=detail.disposed_at,
            holding_start_utc=detail.holding_start,
            holding_end_utc=detail.holding_end,
            holding_days=detail.holding_days,
            total_days_in_period=detail.total_days_in_period,
            proration_days=detail.proration_days,
            position_value=detail.position_value,
            disposal_value=detail.disposal_value,
            closed_within_period=detail.closed_within_period,
            brokerage_rate=detail.brokerage_rate,
            fee_formula=detail.fee_formula.value,
            calculation_formula=detail.calculation_formula,
            brokerage_amount=detail.brokerage_amount,
            reference_price=detail.reference_price,
        )


__all__ = ["BrokerageCalculationService"]

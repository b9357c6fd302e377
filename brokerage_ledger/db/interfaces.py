"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from brokerage_ledger.domain import HealthStatus


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class TradeRecord:
    """Read model for one recorded trade.

    Attributes:
        trade_id: Trade identifier in insertion order.
        client_id: Owning client identifier.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.
        side: `BUY` or `SELL`.
        quantity: Traded quantity.
        price: Price per unit.
        trade_timestamp_utc: Offset-aware trade timestamp.
    """

    trade_id: int
    client_id: int
    symbol: str
    exchange: str
    side: str
    quantity: int
    price: Decimal
    trade_timestamp_utc: datetime

    @property
    def net_amount(self) -> Decimal:
        """Return `quantity * price`."""

        return self.quantity * self.price


@dataclass(frozen=True)
class QuarterConfigRecord:
    """Configured day count for one calendar quarter.

    Attributes:
        year: Calendar year.
        quarter_number: Quarter number 1..4.
        days_in_quarter: Authoritative day count used for quarter averages and proration.
        updated_at_utc: Last configuration change timestamp.
    """

    year: int
    quarter_number: int
    days_in_quarter: int
    updated_at_utc: datetime | None = None


@dataclass(frozen=True)
class BrokerageSummaryUpsertRequest:  # pylint: disable=too-many-instance-attributes
    """Write model for one period summary row.

    Payment fields are written exactly as given; the caller decides whether
    they were carried forward or cleared.
    """

    client_id: int
    period_kind: str
    period_start: date
    period_end: date
    total_days_in_period: int
    brokerage_rate: Decimal
    total_brokerage: Decimal
    total_holding_value: Decimal
    total_turnover: Decimal
    total_trades: int
    total_holding_days: int
    total_positions: int
    days_in_quarter: int | None
    average_daily_holding: Decimal | None
    average_daily_unused: Decimal | None
    is_paid: bool
    paid_amount: Decimal | None
    paid_date: date | None


@dataclass(frozen=True)
class BrokerageSummaryRecord:  # pylint: disable=too-many-instance-attributes
    """Read model for one persisted period summary row."""

    brokerage_summary_id: int
    client_id: int
    period_kind: str
    period_start: date
    period_end: date
    total_days_in_period: int
    brokerage_rate: Decimal
    total_brokerage: Decimal
    total_holding_value: Decimal
    total_turnover: Decimal
    total_trades: int
    total_holding_days: int
    total_positions: int
    days_in_quarter: int | None
    average_daily_holding: Decimal | None
    average_daily_unused: Decimal | None
    is_paid: bool
    paid_amount: Decimal | None
    paid_date: date | None
    calculated_at_utc: datetime
    updated_at_utc: datetime


@dataclass(frozen=True)
class BrokerageDetailInsertRequest:  # pylint: disable=too-many-instance-attributes
    """Write model for one fee detail row of a period."""

    client_id: int
    period_kind: str
    period_start: date
    lot_id: str
    buy_trade_id: int
    sell_trade_id: int | None
    symbol: str
    exchange: str
    quantity: int
    acquired_price: Decimal
    disposed_price: Decimal | None
    acquired_at_utc: datetime
    disposed_at_utc: datetime | None
    holding_start_utc: datetime
    holding_end_utc: datetime
    holding_days: int
    total_days_in_period: int
    proration_days: int
    position_value: Decimal
    disposal_value: Decimal | None
    closed_within_period: bool
    brokerage_rate: Decimal
    fee_formula: str
    calculation_formula: str
    brokerage_amount: Decimal
    reference_price: Decimal | None


@dataclass(frozen=True)
class BrokerageDetailRecord(BrokerageDetailInsertRequest):
    """Read model for one persisted fee detail row.

    Attributes:
        brokerage_calculation_detail_id: Row identifier, assigned in insertion order.
    """

    brokerage_calculation_detail_id: int


class BrokeragePeriodUnitOfWork(Protocol):
    """Locked read-modify-write scope for one (client, period) summary."""

    prior_summary: BrokerageSummaryRecord | None

    def replace(
        self,
        summary: BrokerageSummaryUpsertRequest,
        details: list[BrokerageDetailInsertRequest],
    ) -> BrokerageSummaryRecord:
        """Replace all detail rows and upsert the summary row of the locked period.

        Args:
            summary: Summary row to write.
            details: Complete detail set for the period.

        Returns:
            BrokerageSummaryRecord: Persisted summary row.

        Raises:
            ValueError: Raised when rows belong to another client or period.
            RuntimeError: Raised when persistence fails.
        """


class BrokerageLedgerRepositoryPort(Protocol):
    """Port definition for trade reads, quarter configuration and brokerage persistence."""

    def db_client_list_ids(self) -> list[int]:
        """List all client identifiers in ascending order.

        Returns:
            list[int]: Client identifiers.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_trade_list_for_client(self, client_id: int, before_utc: datetime) -> list[TradeRecord]:
        """List trades of one client recorded before an instant.

        Args:
            client_id: Client identifier.
            before_utc: Exclusive offset-aware upper bound.

        Returns:
            list[TradeRecord]: Trades ordered by timestamp then trade id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_stock_reference_price_map(self) -> dict[tuple[str, str], Decimal]:
        """Return current reference prices keyed by `(symbol, exchange)`.

        Returns:
            dict[tuple[str, str], Decimal]: Reference prices for display.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_quarter_get(self, year: int, quarter_number: int) -> QuarterConfigRecord | None:
        """Fetch quarter configuration.

        Args:
            year: Calendar year.
            quarter_number: Quarter number 1..4.

        Returns:
            QuarterConfigRecord | None: Configuration row or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_quarter_upsert(self, year: int, quarter_number: int, days_in_quarter: int) -> QuarterConfigRecord:
        """Create or update quarter configuration.

        Args:
            year: Calendar year.
            quarter_number: Quarter number 1..4.
            days_in_quarter: Day count 1..92.

        Returns:
            QuarterConfigRecord: Persisted configuration row.

        Raises:
            ValueError: Raised when values are out of range.
            RuntimeError: Raised when persistence fails.
        """

    def db_quarter_list_for_year(self, year: int) -> list[QuarterConfigRecord]:
        """List configured quarters of one year ordered by quarter number.

        Args:
            year: Calendar year.

        Returns:
            list[QuarterConfigRecord]: Configuration rows.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_brokerage_period_open(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> AbstractContextManager[BrokeragePeriodUnitOfWork]:
        """Open a serialized unit of work for one (client, period).

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.

        Returns:
            AbstractContextManager[BrokeragePeriodUnitOfWork]: Scope committing on clean exit.

        Raises:
            RuntimeError: Raised when the lock or the read fails.
        """

    def db_brokerage_summary_get(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> BrokerageSummaryRecord | None:
        """Fetch the persisted summary of one (client, period).

        Returns:
            BrokerageSummaryRecord | None: Summary row or None when never calculated.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_brokerage_summary_list(
        self,
        period_kind: str | None,
        client_id: int | None,
        limit: int,
        offset: int,
    ) -> list[BrokerageSummaryRecord]:
        """List persisted summaries, newest period first.

        Returns:
            list[BrokerageSummaryRecord]: Summary rows.

        Raises:
            ValueError: Raised when pagination values are invalid.
            RuntimeError: Raised when database read fails.
        """

    def db_brokerage_detail_list(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> list[BrokerageDetailRecord]:
        """List persisted detail rows of one (client, period) in insertion order.

        Returns:
            list[BrokerageDetailRecord]: Detail rows.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_brokerage_summary_record_payment(
        self,
        client_id: int,
        period_start: date,
        paid_amount: Decimal,
        paid_date: date,
    ) -> BrokerageSummaryRecord:
        """Mark a calculated quarter summary as paid.

        Args:
            client_id: Client identifier.
            period_start: Quarter start date.
            paid_amount: Amount received.
            paid_date: Payment date.

        Returns:
            BrokerageSummaryRecord: Updated summary row.

        Raises:
            ValueError: Raised when payment values are invalid.
            LookupError: Raised when the quarter was never calculated.
            RuntimeError: Raised when persistence fails.
        """


__all__ = [
    "BrokerageDetailInsertRequest",
    "BrokerageDetailRecord",
    "BrokerageLedgerRepositoryPort",
    "BrokeragePeriodUnitOfWork",
    "BrokerageSummaryRecord",
    "BrokerageSummaryUpsertRequest",
    "DatabaseHealthPort",
    "QuarterConfigRecord",
    "TradeRecord",
]

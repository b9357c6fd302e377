"""Database service for trade reads, quarter configuration and brokerage persistence."""
# pylint: disable=duplicate-code

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from brokerage_ledger.db.interfaces import (
    BrokerageDetailInsertRequest,
    BrokerageDetailRecord,
    BrokerageLedgerRepositoryPort,
    BrokerageSummaryRecord,
    BrokerageSummaryUpsertRequest,
    QuarterConfigRecord,
    TradeRecord,
)

_SUMMARY_COLUMNS = (
    "brokerage_summary_id, client_id, period_kind, period_start, period_end, total_days_in_period, "
    "brokerage_rate, total_brokerage, total_holding_value, total_turnover, total_trades, total_holding_days, "
    "total_positions, days_in_quarter, average_daily_holding, average_daily_unused, is_paid, paid_amount, "
    "paid_date, calculated_at_utc, updated_at_utc"
)

_DETAIL_INSERT_COLUMNS = (
    "client_id, period_kind, period_start, lot_id, buy_trade_id, sell_trade_id, symbol, exchange, quantity, "
    "acquired_price, disposed_price, acquired_at_utc, disposed_at_utc, holding_start_utc, holding_end_utc, "
    "holding_days, total_days_in_period, proration_days, position_value, disposal_value, closed_within_period, "
    "brokerage_rate, fee_formula, calculation_formula, brokerage_amount, reference_price"
)


def _db_map_summary_record(row: Any) -> BrokerageSummaryRecord:
    """Map one summary row mapping to its read model."""

    return BrokerageSummaryRecord(
        brokerage_summary_id=int(row["brokerage_summary_id"]),
        client_id=int(row["client_id"]),
        period_kind=row["period_kind"],
        period_start=row["period_start"],
        period_end=row["period_end"],
        total_days_in_period=int(row["total_days_in_period"]),
        brokerage_rate=Decimal(row["brokerage_rate"]),
        total_brokerage=Decimal(row["total_brokerage"]),
        total_holding_value=Decimal(row["total_holding_value"]),
        total_turnover=Decimal(row["total_turnover"]),
        total_trades=int(row["total_trades"]),
        total_holding_days=int(row["total_holding_days"]),
        total_positions=int(row["total_positions"]),
        days_in_quarter=None if row["days_in_quarter"] is None else int(row["days_in_quarter"]),
        average_daily_holding=None if row["average_daily_holding"] is None else Decimal(row["average_daily_holding"]),
        average_daily_unused=None if row["average_daily_unused"] is None else Decimal(row["average_daily_unused"]),
        is_paid=bool(row["is_paid"]),
        paid_amount=None if row["paid_amount"] is None else Decimal(row["paid_amount"]),
        paid_date=row["paid_date"],
        calculated_at_utc=row["calculated_at_utc"],
        updated_at_utc=row["updated_at_utc"],
    )


class _SQLAlchemyBrokeragePeriodUnitOfWork:
    """Unit of work bound to one open transaction holding the period lock."""

    def __init__(
        self,
        connection: Connection,
        client_id: int,
        period_kind: str,
        period_start: date,
        prior_summary: BrokerageSummaryRecord | None,
    ):
        self._connection = connection
        self._client_id = client_id
        self._period_kind = period_kind
        self._period_start = period_start
        self.prior_summary = prior_summary

    def replace(
        self,
        summary: BrokerageSummaryUpsertRequest,
        details: list[BrokerageDetailInsertRequest],
    ) -> BrokerageSummaryRecord:
        """Replace detail rows and upsert the summary inside the locked transaction.

        Args:
            summary: Summary row to write.
            details: Complete detail set for the period.

        Returns:
            BrokerageSummaryRecord: Persisted summary row.

        Raises:
            ValueError: Raised when rows belong to another client or period.
            RuntimeError: Raised when persistence fails.
        """

        period_identity = (self._client_id, self._period_kind, self._period_start)
        if (summary.client_id, summary.period_kind, summary.period_start) != period_identity:
            raise ValueError("summary does not belong to the locked period")
        for detail in details:
            if (detail.client_id, detail.period_kind, detail.period_start) != period_identity:
                raise ValueError(f"detail lot_id={detail.lot_id} does not belong to the locked period")

        try:
            self._connection.execute(
                text(
                    "DELETE FROM brokerage_calculation_detail "
                    "WHERE client_id = :client_id AND period_kind = :period_kind AND period_start = :period_start"
                ),
                {
                    "client_id": self._client_id,
                    "period_kind": self._period_kind,
                    "period_start": self._period_start,
                },
            )
            if details:
                insert_parameters = ", ".join(f":{column.strip()}" for column in _DETAIL_INSERT_COLUMNS.split(","))
                self._connection.execute(
                    text(f"INSERT INTO brokerage_calculation_detail ({_DETAIL_INSERT_COLUMNS}) VALUES ({insert_parameters})"),
                    [asdict(detail) for detail in details],
                )
            summary_row = self._connection.execute(
                text(
                    "INSERT INTO brokerage_summary ("
                    "client_id, period_kind, period_start, period_end, total_days_in_period, brokerage_rate, "
                    "total_brokerage, total_holding_value, total_turnover, total_trades, total_holding_days, "
                    "total_positions, days_in_quarter, average_daily_holding, average_daily_unused, is_paid, "
                    "paid_amount, paid_date, calculated_at_utc, updated_at_utc"
                    ") VALUES ("
                    ":client_id, :period_kind, :period_start, :period_end, :total_days_in_period, :brokerage_rate, "
                    ":total_brokerage, :total_holding_value, :total_turnover, :total_trades, :total_holding_days, "
                    ":total_positions, :days_in_quarter, :average_daily_holding, :average_daily_unused, :is_paid, "
                    ":paid_amount, :paid_date, now(), now()"
                    ") ON CONFLICT (client_id, period_kind, period_start) DO UPDATE SET "
                    "period_end = EXCLUDED.period_end, "
                    "total_days_in_period = EXCLUDED.total_days_in_period, "
                    "brokerage_rate = EXCLUDED.brokerage_rate, "
                    "total_brokerage = EXCLUDED.total_brokerage, "
                    "total_holding_value = EXCLUDED.total_holding_value, "
                    "total_turnover = EXCLUDED.total_turnover, "
                    "total_trades = EXCLUDED.total_trades, "
                    "total_holding_days = EXCLUDED.total_holding_days, "
                    "total_positions = EXCLUDED.total_positions, "
                    "days_in_quarter = EXCLUDED.days_in_quarter, "
                    "average_daily_holding = EXCLUDED.average_daily_holding, "
                    "average_daily_unused = EXCLUDED.average_daily_unused, "
                    "is_paid = EXCLUDED.is_paid, "
                    "paid_amount = EXCLUDED.paid_amount, "
                    "paid_date = EXCLUDED.paid_date, "
                    "calculated_at_utc = now(), "
                    "updated_at_utc = now() "
                    f"RETURNING {_SUMMARY_COLUMNS}"
                ),
                asdict(summary),
            ).mappings().one()
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage period replace failed") from error

        return _db_map_summary_record(summary_row)


class SQLAlchemyBrokerageLedgerService(BrokerageLedgerRepositoryPort):
    """SQLAlchemy implementation for brokerage ledger DB operations."""

    def __init__(self, engine: Engine):
        """Initialize brokerage ledger database service.

        Args:
            engine: SQLAlchemy engine used for persistence and reads.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_client_list_ids(self) -> list[int]:
        """List all client identifiers in ascending order.

        Returns:
            list[int]: Client identifiers.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text("SELECT client_id FROM client ORDER BY client_id asc")).all()
        except SQLAlchemyError as error:
            raise RuntimeError("client list read failed") from error
        return [int(row[0]) for row in rows]

    def db_trade_list_for_client(self, client_id: int, before_utc: datetime) -> list[TradeRecord]:
        """List trades of one client recorded before an instant.

        Args:
            client_id: Client identifier.
            before_utc: Exclusive offset-aware upper bound.

        Returns:
            list[TradeRecord]: Trades ordered by timestamp then trade id.

        Raises:
            ValueError: Raised when the bound is naive.
            RuntimeError: Raised when database read fails.
        """

        if before_utc.tzinfo is None or before_utc.utcoffset() is None:
            raise ValueError("before_utc must be offset-aware")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT trade_id, client_id, symbol, exchange, side, quantity, price, trade_timestamp_utc "
                        "FROM trade "
                        "WHERE client_id = :client_id AND trade_timestamp_utc < :before_utc "
                        "ORDER BY trade_timestamp_utc asc, trade_id asc"
                    ),
                    {"client_id": client_id, "before_utc": before_utc},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("trade read failed") from error

        return [
            TradeRecord(
                trade_id=int(row["trade_id"]),
                client_id=int(row["client_id"]),
                symbol=row["symbol"],
                exchange=row["exchange"],
                side=row["side"],
                quantity=int(row["quantity"]),
                price=Decimal(row["price"]),
                trade_timestamp_utc=row["trade_timestamp_utc"],
            )
            for row in rows
        ]

    def db_stock_reference_price_map(self) -> dict[tuple[str, str], Decimal]:
        """Return current reference prices keyed by `(symbol, exchange)`.

        Returns:
            dict[tuple[str, str], Decimal]: Reference prices for display.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text("SELECT symbol, exchange, reference_price FROM stock WHERE reference_price IS NOT NULL")
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("stock reference price read failed") from error
        return {(row["symbol"], row["exchange"]): Decimal(row["reference_price"]) for row in rows}

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

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT year, quarter_number, days_in_quarter, updated_at_utc "
                        "FROM quarter_config WHERE year = :year AND quarter_number = :quarter_number"
                    ),
                    {"year": year, "quarter_number": quarter_number},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("quarter configuration read failed") from error
        return None if row is None else self._db_map_quarter_record(row)

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

        if not 1 <= quarter_number <= 4:
            raise ValueError("quarter_number must be between 1 and 4")
        if not 1 <= days_in_quarter <= 92:
            raise ValueError("days_in_quarter must be between 1 and 92")

        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "INSERT INTO quarter_config (year, quarter_number, days_in_quarter, updated_at_utc) "
                        "VALUES (:year, :quarter_number, :days_in_quarter, now()) "
                        "ON CONFLICT (year, quarter_number) DO UPDATE SET "
                        "days_in_quarter = EXCLUDED.days_in_quarter, updated_at_utc = now() "
                        "RETURNING year, quarter_number, days_in_quarter, updated_at_utc"
                    ),
                    {"year": year, "quarter_number": quarter_number, "days_in_quarter": days_in_quarter},
                ).mappings().one()
        except SQLAlchemyError as error:
            raise RuntimeError("quarter configuration upsert failed") from error
        return self._db_map_quarter_record(row)

    def db_quarter_list_for_year(self, year: int) -> list[QuarterConfigRecord]:
        """List configured quarters of one year ordered by quarter number.

        Args:
            year: Calendar year.

        Returns:
            list[QuarterConfigRecord]: Configuration rows.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT year, quarter_number, days_in_quarter, updated_at_utc "
                        "FROM quarter_config WHERE year = :year ORDER BY quarter_number asc"
                    ),
                    {"year": year},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("quarter configuration list failed") from error
        return [self._db_map_quarter_record(row) for row in rows]

    @contextmanager
    def db_brokerage_period_open(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> Iterator[_SQLAlchemyBrokeragePeriodUnitOfWork]:
        """Open a serialized unit of work for one (client, period).

        The transaction takes a transaction-scoped advisory lock on the period
        identity and locks the existing summary row, so concurrent
        recalculations of the same period run one after another and each one
        reads the payment state the previous one committed.

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.

        Returns:
            Iterator[_SQLAlchemyBrokeragePeriodUnitOfWork]: Unit of work committing on clean exit.

        Raises:
            ValueError: Raised when period_kind is blank.
            RuntimeError: Raised when the lock or the read fails.
        """

        normalized_period_kind = self._validate_non_empty_text(period_kind, "period_kind")
        advisory_key_1, advisory_key_2 = self._build_advisory_lock_keys(client_id, normalized_period_kind, period_start)

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("SELECT pg_advisory_xact_lock(:key_1, :key_2)"),
                    {"key_1": advisory_key_1, "key_2": advisory_key_2},
                )
                prior_row = connection.execute(
                    text(
                        f"SELECT {_SUMMARY_COLUMNS} FROM brokerage_summary "
                        "WHERE client_id = :client_id AND period_kind = :period_kind AND period_start = :period_start "
                        "FOR UPDATE"
                    ),
                    {"client_id": client_id, "period_kind": normalized_period_kind, "period_start": period_start},
                ).mappings().first()
                yield _SQLAlchemyBrokeragePeriodUnitOfWork(
                    connection=connection,
                    client_id=client_id,
                    period_kind=normalized_period_kind,
                    period_start=period_start,
                    prior_summary=None if prior_row is None else _db_map_summary_record(prior_row),
                )
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage period unit of work failed") from error

    def db_brokerage_summary_get(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> BrokerageSummaryRecord | None:
        """Fetch the persisted summary of one (client, period).

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.

        Returns:
            BrokerageSummaryRecord | None: Summary row or None when never calculated.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        f"SELECT {_SUMMARY_COLUMNS} FROM brokerage_summary "
                        "WHERE client_id = :client_id AND period_kind = :period_kind AND period_start = :period_start"
                    ),
                    {"client_id": client_id, "period_kind": period_kind, "period_start": period_start},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage summary read failed") from error
        return None if row is None else _db_map_summary_record(row)

    def db_brokerage_summary_list(
        self,
        period_kind: str | None,
        client_id: int | None,
        limit: int,
        offset: int,
    ) -> list[BrokerageSummaryRecord]:
        """List persisted summaries, newest period first.

        Args:
            period_kind: Optional period kind filter.
            client_id: Optional client filter.
            limit: Maximum row count.
            offset: Row offset.

        Returns:
            list[BrokerageSummaryRecord]: Summary rows.

        Raises:
            ValueError: Raised when pagination values are invalid.
            RuntimeError: Raised when database read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_SUMMARY_COLUMNS} FROM brokerage_summary "
                        "WHERE (CAST(:period_kind AS text) IS NULL OR period_kind = CAST(:period_kind AS text)) "
                        "AND (CAST(:client_id AS bigint) IS NULL OR client_id = CAST(:client_id AS bigint)) "
                        "ORDER BY period_start desc, client_id asc, period_kind asc LIMIT :limit OFFSET :offset"
                    ),
                    {"period_kind": period_kind, "client_id": client_id, "limit": limit, "offset": offset},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage summary list failed") from error
        return [_db_map_summary_record(row) for row in rows]

    def db_brokerage_detail_list(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> list[BrokerageDetailRecord]:
        """List persisted detail rows of one (client, period) in insertion order.

        Args:
            client_id: Client identifier.
            period_kind: Period kind.
            period_start: Period start date.

        Returns:
            list[BrokerageDetailRecord]: Detail rows.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT brokerage_calculation_detail_id, {_DETAIL_INSERT_COLUMNS} "
                        "FROM brokerage_calculation_detail "
                        "WHERE client_id = :client_id AND period_kind = :period_kind AND period_start = :period_start "
                        "ORDER BY brokerage_calculation_detail_id asc"
                    ),
                    {"client_id": client_id, "period_kind": period_kind, "period_start": period_start},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage detail list failed") from error

        return [
            BrokerageDetailRecord(
                brokerage_calculation_detail_id=int(row["brokerage_calculation_detail_id"]),
                client_id=int(row["client_id"]),
                period_kind=row["period_kind"],
                period_start=row["period_start"],
                lot_id=row["lot_id"],
                buy_trade_id=int(row["buy_trade_id"]),
                sell_trade_id=None if row["sell_trade_id"] is None else int(row["sell_trade_id"]),
                symbol=row["symbol"],
                exchange=row["exchange"],
                quantity=int(row["quantity"]),
                acquired_price=Decimal(row["acquired_price"]),
                disposed_price=None if row["disposed_price"] is None else Decimal(row["disposed_price"]),
                acquired_at_utc=row["acquired_at_utc"],
                disposed_at_utc=row["disposed_at_utc"],
                holding_start_utc=row["holding_start_utc"],
                holding_end_utc=row["holding_end_utc"],
                holding_days=int(row["holding_days"]),
                total_days_in_period=int(row["total_days_in_period"]),
                proration_days=int(row["proration_days"]),
                position_value=Decimal(row["position_value"]),
                disposal_value=None if row["disposal_value"] is None else Decimal(row["disposal_value"]),
                closed_within_period=bool(row["closed_within_period"]),
                brokerage_rate=Decimal(row["brokerage_rate"]),
                fee_formula=row["fee_formula"],
                calculation_formula=row["calculation_formula"],
                brokerage_amount=Decimal(row["brokerage_amount"]),
                reference_price=None if row["reference_price"] is None else Decimal(row["reference_price"]),
            )
            for row in rows
        ]

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

        if paid_amount is None or paid_amount < Decimal("0"):
            raise ValueError("paid_amount must not be negative")
        if paid_date is None:
            raise ValueError("paid_date must not be None")

        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "UPDATE brokerage_summary SET "
                        "is_paid = true, paid_amount = :paid_amount, paid_date = :paid_date, updated_at_utc = now() "
                        "WHERE client_id = :client_id AND period_kind = 'quarter' AND period_start = :period_start "
                        f"RETURNING {_SUMMARY_COLUMNS}"
                    ),
                    {
                        "client_id": client_id,
                        "period_start": period_start,
                        "paid_amount": paid_amount,
                        "paid_date": paid_date,
                    },
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("brokerage payment update failed") from error

        if row is None:
            raise LookupError(
                f"quarter summary for client_id={client_id} period_start={period_start.isoformat()} was never calculated"
            )
        return _db_map_summary_record(row)

    def _db_map_quarter_record(self, row: Any) -> QuarterConfigRecord:
        return QuarterConfigRecord(
            year=int(row["year"]),
            quarter_number=int(row["quarter_number"]),
            days_in_quarter=int(row["days_in_quarter"]),
            updated_at_utc=row["updated_at_utc"],
        )

    def _build_advisory_lock_keys(self, client_id: int, period_kind: str, period_start: date) -> tuple[int, int]:
        """Create deterministic advisory lock keys for one (client, period).

        Args:
            client_id: Client identifier.
            period_kind: Normalized period kind.
            period_start: Period start date.

        Returns:
            tuple[int, int]: Two signed int32 lock keys for PostgreSQL advisory lock.
        """

        lock_identity = f"brokerage:{client_id}:{period_kind}:{period_start.isoformat()}"
        digest = hashlib.sha256(lock_identity.encode("utf-8")).digest()
        key_1 = int.from_bytes(digest[0:4], byteorder="big", signed=True)
        key_2 = int.from_bytes(digest[4:8], byteorder="big", signed=True)
        return key_1, key_2

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate required text input and return stripped value.

        Args:
            value: Candidate string value.
            field_name: Field name for error reporting.

        Returns:
            str: Stripped non-empty value.

        Raises:
            ValueError: Raised when value is blank.
        """

        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError(f"{field_name} must not be blank")
        return stripped_value


__all__ = ["SQLAlchemyBrokerageLedgerService"]

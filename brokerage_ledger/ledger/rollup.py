"""Period summary rollup with payment-state carry-forward."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from .fee_formulas import BrokerageCalculationDetail, FeePolicy
from .periods import PERIOD_KIND_QUARTER, CalculationPeriod

SUMMARY_STATUS_UNCALCULATED = "uncalculated"
SUMMARY_STATUS_CALCULATED = "calculated"
SUMMARY_STATUS_PAID = "paid"


class PaymentStateSource(Protocol):
    """Any prior summary shape exposing externally-owned payment fields."""

    is_paid: bool
    paid_amount: Decimal | None
    paid_date: date | None


@dataclass(frozen=True)
class BrokerageSummary:  # pylint: disable=too-many-instance-attributes
    """Aggregate of all detail rows for one client and period.

    Day and month rows never carry payment state; quarter rows carry the
    averages and the payment fields owned by the payment workflow.
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
    days_in_quarter: int | None = None
    average_daily_holding: Decimal | None = None
    average_daily_unused: Decimal | None = None
    is_paid: bool = False
    paid_amount: Decimal | None = None
    paid_date: date | None = None


def rollup_build_summary(
    client_id: int,
    period: CalculationPeriod,
    details: Sequence[BrokerageCalculationDetail],
    policy: FeePolicy,
    prior: PaymentStateSource | None = None,
    clear_payment: bool = False,
) -> BrokerageSummary:
    """Roll detail rows up into one period summary.

    Totals are sums of already rounded detail amounts. For quarters, the
    details are the union of the three month calculations and the averages
    divide by the configured `days_in_quarter`.
    `total_holding_value` counts each held lot once, so a lot held across
    several months of a quarter contributes its position value a single time.

    Args:
        client_id: Client identifier.
        period: Calculation period the summary describes.
        details: Detail rows of the period.
        policy: Fee policy used for the details.
        prior: Previously persisted summary of the same period, if any.
        clear_payment: Reset payment state instead of carrying it forward.

    Returns:
        BrokerageSummary: Summary ready to persist.
    """

    held_details = [detail for detail in details if not detail.closed_within_period]
    held_value_by_lot = {detail.lot_id: detail.position_value for detail in held_details}
    disposed_details = [detail for detail in details if detail.closed_within_period]

    trade_ids = {detail.buy_trade_id for detail in details}
    trade_ids.update(detail.sell_trade_id for detail in disposed_details if detail.sell_trade_id is not None)

    is_quarter = period.period_kind == PERIOD_KIND_QUARTER
    average_daily_holding = None
    average_daily_unused = None
    is_paid = False
    paid_amount = None
    paid_date = None

    if is_quarter:
        days_in_quarter = Decimal(period.days_in_quarter or period.proration_days)
        holding_day_value = sum(
            (detail.position_value * detail.holding_days for detail in held_details),
            Decimal("0"),
        )
        unused_day_value = sum(
            (
                detail.disposal_value * _rollup_days_until_period_end(detail, period)
                for detail in disposed_details
                if detail.disposal_value is not None
            ),
            Decimal("0"),
        )
        average_daily_holding = policy.fee_round(holding_day_value / days_in_quarter)
        average_daily_unused = policy.fee_round(unused_day_value / days_in_quarter)

        if prior is not None and not clear_payment:
            is_paid = bool(prior.is_paid)
            paid_amount = prior.paid_amount
            paid_date = prior.paid_date

    return BrokerageSummary(
        client_id=client_id,
        period_kind=period.period_kind,
        period_start=period.period_start,
        period_end=period.period_end,
        total_days_in_period=period.total_days_in_period,
        brokerage_rate=policy.rate,
        total_brokerage=sum((detail.brokerage_amount for detail in details), Decimal("0")),
        total_holding_value=sum(held_value_by_lot.values(), Decimal("0")),
        total_turnover=sum(
            (detail.disposal_value for detail in disposed_details if detail.disposal_value is not None),
            Decimal("0"),
        ),
        total_trades=len(trade_ids),
        total_holding_days=sum(detail.holding_days for detail in details),
        total_positions=len(details),
        days_in_quarter=period.days_in_quarter if is_quarter else None,
        average_daily_holding=average_daily_holding,
        average_daily_unused=average_daily_unused,
        is_paid=is_paid,
        paid_amount=paid_amount,
        paid_date=paid_date,
    )


def summary_status(summary: PaymentStateSource | None) -> str:
    """Return the lifecycle state of a persisted summary.

    Args:
        summary: Persisted summary or None when the period was never calculated.

    Returns:
        str: `uncalculated`, `calculated` or `paid`.
    """

    if summary is None:
        return SUMMARY_STATUS_UNCALCULATED
    if summary.is_paid:
        return SUMMARY_STATUS_PAID
    return SUMMARY_STATUS_CALCULATED


def _rollup_days_until_period_end(detail: BrokerageCalculationDetail, period: CalculationPeriod) -> int:
    """Return local days from a disposal to the period end.

    Args:
        detail: Disposed detail row.
        period: Period whose end bounds the unused span.

    Returns:
        int: Days the sale proceeds lay unused, zero for held details.
    """

    if detail.disposed_at is None:
        return 0
    return max((period.period_end - period.period_local_date(detail.disposed_at)).days, 0)


__all__ = [
    "BrokerageSummary",
    "PaymentStateSource",
    "SUMMARY_STATUS_CALCULATED",
    "SUMMARY_STATUS_PAID",
    "SUMMARY_STATUS_UNCALCULATED",
    "rollup_build_summary",
    "summary_status",
]

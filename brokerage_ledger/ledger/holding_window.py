"""Clip lot lifetimes to calculation periods."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .errors import DataIntegrityError
from .fifo_engine import FifoLot
from .periods import CalculationPeriod


@dataclass(frozen=True)
class HoldingWindow:
    """Overlap of one lot with one calculation period.

    Attributes:
        holding_start: Clipped start instant, inclusive.
        holding_end: Clipped end instant, exclusive.
        holding_days: Local calendar days in the window after the minimum floor.
        total_days_in_period: Calendar days of the period.
        closed_within_period: True when the lot was disposed inside the period.
    """

    holding_start: datetime
    holding_end: datetime
    holding_days: int
    total_days_in_period: int
    closed_within_period: bool


def holding_window_compute(lot: FifoLot, period: CalculationPeriod, minimum_days: int = 1) -> HoldingWindow | None:
    """Compute the clipped holding window of a lot in a period.

    Day counts use local business dates: the start day is included and the
    end day is excluded. A lot that overlaps the period holds for at least
    `minimum_days`, so a position bought and sold on the same day is billed
    as one day instead of zero.

    Args:
        lot: Matched lot.
        period: Calculation period.
        minimum_days: Floor applied to the day count of an overlapping lot.

    Returns:
        HoldingWindow | None: Clipped window, or None when the lot lies outside the period.

    Raises:
        ValueError: Raised when minimum_days is negative.
        DataIntegrityError: Raised when the lot was disposed before it was acquired.
    """

    if minimum_days < 0:
        raise ValueError("minimum_days must be >= 0")
    if lot.disposed_at is not None and lot.disposed_at < lot.acquired_at:
        raise DataIntegrityError(
            f"lot_id={lot.lot_id} is disposed at {lot.disposed_at.isoformat()} "
            f"before acquisition at {lot.acquired_at.isoformat()}",
            trade_id=lot.sell_trade_id,
        )

    holding_start = max(lot.acquired_at, period.starts_at)
    holding_end = period.ends_at if lot.disposed_at is None else min(lot.disposed_at, period.ends_at)
    closed_within_period = lot.disposed_at is not None and period.period_contains(lot.disposed_at)

    if holding_start >= holding_end and not closed_within_period:
        return None

    holding_days = (period.period_local_date(holding_end) - period.period_local_date(holding_start)).days
    return HoldingWindow(
        holding_start=holding_start,
        holding_end=max(holding_end, holding_start),
        holding_days=max(holding_days, minimum_days),
        total_days_in_period=period.total_days_in_period,
        closed_within_period=closed_within_period,
    )


__all__ = ["HoldingWindow", "holding_window_compute"]

"""Held and disposed brokerage fee formulas over clipped holding windows."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from .fifo_engine import FifoLot
from .holding_window import HoldingWindow, holding_window_compute
from .periods import CalculationPeriod


class FeeFormula(str, Enum):
    """Fee formula identifiers recorded on every detail row."""

    HELD_PRORATED = "held_prorated"
    DISPOSED_TURNOVER = "disposed_turnover"


@dataclass(frozen=True)
class FeePolicy:
    """Explicit fee inputs shared by every lot of one calculation.

    Attributes:
        rate: Brokerage rate as a decimal fraction.
        quantum: Currency minor unit amounts are rounded to.
        rounding: Decimal rounding mode applied once per formula.
        minimum_holding_days: Day-count floor for overlapping lots.
    """

    rate: Decimal
    quantum: Decimal = Decimal("0.01")
    rounding: str = ROUND_HALF_UP
    minimum_holding_days: int = 1

    def __post_init__(self) -> None:
        if self.rate is None or self.rate < Decimal("0"):
            raise ValueError("rate must be a non-negative decimal fraction")
        if self.quantum <= Decimal("0"):
            raise ValueError("quantum must be positive")
        if self.minimum_holding_days < 0:
            raise ValueError("minimum_holding_days must be >= 0")

    def fee_round(self, amount: Decimal) -> Decimal:
        """Round a monetary amount to the policy minor unit."""

        return amount.quantize(self.quantum, rounding=self.rounding)


@dataclass(frozen=True)
class BrokerageCalculationDetail:  # pylint: disable=too-many-instance-attributes
    """One immutable fee row per lot and period overlap.

    Attributes:
        client_id: Client identifier.
        lot_id: Matched lot identity.
        buy_trade_id: Trade that opened the lot.
        sell_trade_id: Trade that closed the lot, when closed.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.
        quantity: Lot quantity.
        acquired_price: Buy price per unit.
        disposed_price: Sell price per unit, when closed.
        acquired_at: Buy timestamp.
        disposed_at: Sell timestamp, when closed.
        holding_start: Clipped window start.
        holding_end: Clipped window end.
        holding_days: Window day count after the floor.
        total_days_in_period: Calendar days of the period.
        proration_days: Denominator used by the held formula.
        position_value: `quantity * acquired_price`.
        disposal_value: `quantity * disposed_price`, when closed.
        closed_within_period: True when the disposed formula applies.
        brokerage_rate: Rate used.
        fee_formula: Formula identifier.
        calculation_formula: Formula identifier with every numeric input.
        brokerage_amount: Rounded fee.
        reference_price: Current stock reference price, display only.
    """

    client_id: int
    lot_id: str
    buy_trade_id: int
    sell_trade_id: int | None
    symbol: str
    exchange: str
    quantity: int
    acquired_price: Decimal
    disposed_price: Decimal | None
    acquired_at: datetime
    disposed_at: datetime | None
    holding_start: datetime
    holding_end: datetime
    holding_days: int
    total_days_in_period: int
    proration_days: int
    position_value: Decimal
    disposal_value: Decimal | None
    closed_within_period: bool
    brokerage_rate: Decimal
    fee_formula: FeeFormula
    calculation_formula: str
    brokerage_amount: Decimal
    reference_price: Decimal | None = None


def _fee_held_prorated(
    lot: FifoLot,
    window: HoldingWindow,
    period: CalculationPeriod,
    policy: FeePolicy,
) -> tuple[Decimal, str]:
    position_value = lot.quantity * lot.acquired_price
    raw_amount = position_value * policy.rate * Decimal(window.holding_days) / Decimal(period.proration_days)
    amount = policy.fee_round(raw_amount)
    formula = (
        f"{FeeFormula.HELD_PRORATED.value}: {lot.quantity} x {lot.acquired_price} x {policy.rate} "
        f"x {window.holding_days} / {period.proration_days} = {amount}"
    )
    return amount, formula


def _fee_disposed_turnover(
    lot: FifoLot,
    window: HoldingWindow,
    period: CalculationPeriod,
    policy: FeePolicy,
) -> tuple[Decimal, str]:
    del window, period
    disposal_value = lot.quantity * lot.disposed_price
    amount = policy.fee_round(disposal_value * policy.rate)
    formula = f"{FeeFormula.DISPOSED_TURNOVER.value}: {lot.quantity} x {lot.disposed_price} x {policy.rate} = {amount}"
    return amount, formula


_FEE_FORMULA_HANDLERS: dict[
    FeeFormula,
    Callable[[FifoLot, HoldingWindow, CalculationPeriod, FeePolicy], tuple[Decimal, str]],
] = {
    FeeFormula.HELD_PRORATED: _fee_held_prorated,
    FeeFormula.DISPOSED_TURNOVER: _fee_disposed_turnover,
}


def fee_select_formula(window: HoldingWindow) -> FeeFormula:
    """Return the formula that applies to a holding window."""

    return FeeFormula.DISPOSED_TURNOVER if window.closed_within_period else FeeFormula.HELD_PRORATED


def fee_compute_detail(
    lot: FifoLot,
    window: HoldingWindow,
    period: CalculationPeriod,
    policy: FeePolicy,
    reference_price: Decimal | None = None,
) -> BrokerageCalculationDetail:
    """Apply the held or disposed formula to one clipped lot.

    Args:
        lot: Matched lot.
        window: Clipped holding window of the lot in the period.
        period: Calculation period.
        policy: Fee policy.
        reference_price: Optional stock reference price carried for display.

    Returns:
        BrokerageCalculationDetail: Fee row with its auditable formula string.
    """

    fee_formula = fee_select_formula(window)
    brokerage_amount, calculation_formula = _FEE_FORMULA_HANDLERS[fee_formula](lot, window, period, policy)
    disposal_value = None if lot.disposed_price is None else lot.quantity * lot.disposed_price

    return BrokerageCalculationDetail(
        client_id=lot.client_id,
        lot_id=lot.lot_id,
        buy_trade_id=lot.buy_trade_id,
        sell_trade_id=lot.sell_trade_id,
        symbol=lot.symbol,
        exchange=lot.exchange,
        quantity=lot.quantity,
        acquired_price=lot.acquired_price,
        disposed_price=lot.disposed_price,
        acquired_at=lot.acquired_at,
        disposed_at=lot.disposed_at,
        holding_start=window.holding_start,
        holding_end=window.holding_end,
        holding_days=window.holding_days,
        total_days_in_period=window.total_days_in_period,
        proration_days=period.proration_days,
        position_value=lot.quantity * lot.acquired_price,
        disposal_value=disposal_value,
        closed_within_period=window.closed_within_period,
        brokerage_rate=policy.rate,
        fee_formula=fee_formula,
        calculation_formula=calculation_formula,
        brokerage_amount=brokerage_amount,
        reference_price=reference_price,
    )


def fee_compute_period_details(
    lots: Iterable[FifoLot],
    period: CalculationPeriod,
    policy: FeePolicy,
    reference_prices: Mapping[tuple[str, str], Decimal] | None = None,
) -> list[BrokerageCalculationDetail]:
    """Compute detail rows for every lot that overlaps a period.

    Args:
        lots: Matched lots of one client.
        period: Calculation period.
        policy: Fee policy.
        reference_prices: Optional `(symbol, exchange)` keyed display prices.

    Returns:
        list[BrokerageCalculationDetail]: Details in lot order; lots outside the period are skipped.

    Raises:
        DataIntegrityError: Raised when a lot has inconsistent timestamps.
    """

    price_map = reference_prices or {}
    details: list[BrokerageCalculationDetail] = []
    for lot in lots:
        window = holding_window_compute(lot, period, minimum_days=policy.minimum_holding_days)
        if window is None:
            continue
        details.append(
            fee_compute_detail(
                lot=lot,
                window=window,
                period=period,
                policy=policy,
                reference_price=price_map.get((lot.symbol, lot.exchange)),
            )
        )
    return details


__all__ = [
    "BrokerageCalculationDetail",
    "FeeFormula",
    "FeePolicy",
    "fee_compute_detail",
    "fee_compute_period_details",
    "fee_select_formula",
]

"""Tests for held and disposed brokerage fee formulas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from brokerage_ledger.ledger import (
    FeeFormula,
    FeePolicy,
    FifoLot,
    fee_compute_period_details,
    period_build_day,
    period_build_month,
)

_KOLKATA = ZoneInfo("Asia/Kolkata")


def _lot(
    lot_id: str,
    quantity: int,
    acquired_price: str,
    acquired_at: datetime,
    disposed_price: str | None = None,
    disposed_at: datetime | None = None,
) -> FifoLot:
    """Build one lot for fee tests.

    Returns:
        FifoLot: Lot under test.
    """

    return FifoLot(
        lot_id=lot_id,
        client_id=3,
        symbol="INFY",
        exchange="NSE",
        quantity=quantity,
        buy_trade_id=int(lot_id.split(":")[0]),
        acquired_at=acquired_at,
        acquired_price=Decimal(acquired_price),
        sell_trade_id=None if disposed_at is None else int(lot_id.split(":")[1]),
        disposed_at=disposed_at,
        disposed_price=None if disposed_price is None else Decimal(disposed_price),
    )


def test_fee_held_lot_for_full_month_charges_rate_on_position_value() -> None:
    """Charge the full rate for a position held through the whole month.

    Returns:
        None: Assertions validate the held amount.

    Raises:
        AssertionError: Raised when the amount is wrong.
    """

    period = period_build_month(2026, 4)
    lot = _lot("1:open", 100, "10.00", datetime(2026, 3, 15, 10, 0, tzinfo=_KOLKATA))

    details = fee_compute_period_details([lot], period, FeePolicy(rate=Decimal("0.01")))

    assert len(details) == 1
    assert details[0].fee_formula is FeeFormula.HELD_PRORATED
    assert details[0].holding_days == 30
    assert details[0].position_value == Decimal("1000.00")
    assert details[0].brokerage_amount == Decimal("10.00")


def test_fee_held_lot_partial_month_is_prorated_and_rounded_once() -> None:
    """Prorate 11 of 30 days and round the final amount half-up.

    Returns:
        None: Assertions validate the amount and formula string.

    Raises:
        AssertionError: Raised when proration or rounding is wrong.
    """

    period = period_build_month(2026, 4)
    lot = _lot("5:open", 50, "20.00", datetime(2026, 4, 20, 10, 0, tzinfo=_KOLKATA))

    detail = fee_compute_period_details([lot], period, FeePolicy(rate=Decimal("0.01")))[0]

    assert detail.holding_days == 11
    assert detail.proration_days == 30
    assert detail.brokerage_amount == Decimal("3.67")
    assert detail.calculation_formula == "held_prorated: 50 x 20.00 x 0.01 x 11 / 30 = 3.67"
    assert detail.disposal_value is None


def test_fee_lot_closed_within_period_charges_turnover_only() -> None:
    """Charge rate on disposal value for lots sold inside the period.

    Returns:
        None: Assertions validate the disposed formula.

    Raises:
        AssertionError: Raised when the held formula is applied instead.
    """

    period = period_build_month(2026, 4)
    lot = _lot(
        "5:9",
        50,
        "20.00",
        datetime(2026, 4, 2, 10, 0, tzinfo=_KOLKATA),
        disposed_price="25.00",
        disposed_at=datetime(2026, 4, 25, 10, 0, tzinfo=_KOLKATA),
    )

    detail = fee_compute_period_details([lot], period, FeePolicy(rate=Decimal("0.01")))[0]

    assert detail.fee_formula is FeeFormula.DISPOSED_TURNOVER
    assert detail.closed_within_period
    assert detail.disposal_value == Decimal("1250.00")
    assert detail.brokerage_amount == Decimal("12.50")
    assert detail.calculation_formula == "disposed_turnover: 50 x 25.00 x 0.01 = 12.50"
    assert detail.sell_trade_id == 9


def test_fee_disposed_amount_rounds_half_up() -> None:
    """Round exact half minor units away from zero.

    Returns:
        None: Assertions validate half-up rounding.

    Raises:
        AssertionError: Raised when banker's rounding is applied.
    """

    period = period_build_month(2026, 4)
    lot = _lot(
        "1:2",
        1,
        "10.00",
        datetime(2026, 4, 2, 10, 0, tzinfo=_KOLKATA),
        disposed_price="12.25",
        disposed_at=datetime(2026, 4, 3, 10, 0, tzinfo=_KOLKATA),
    )

    detail = fee_compute_period_details([lot], period, FeePolicy(rate=Decimal("0.1")))[0]

    assert detail.brokerage_amount == Decimal("1.23")


def test_fee_period_details_skip_non_overlapping_lots_and_attach_reference_price() -> None:
    """Emit details only for overlapping lots, with display reference prices.

    Returns:
        None: Assertions validate filtering and reference prices.

    Raises:
        AssertionError: Raised when outside lots produce details.
    """

    period = period_build_month(2026, 4)
    inside_lot = _lot("1:open", 10, "100.00", datetime(2026, 4, 1, 0, 0, tzinfo=_KOLKATA))
    outside_lot = _lot("2:open", 10, "100.00", datetime(2026, 5, 3, 0, 0, tzinfo=_KOLKATA))

    details = fee_compute_period_details(
        [inside_lot, outside_lot],
        period,
        FeePolicy(rate=Decimal("0.005")),
        reference_prices={("INFY", "NSE"): Decimal("123.45")},
    )

    assert [detail.lot_id for detail in details] == ["1:open"]
    assert details[0].reference_price == Decimal("123.45")
    assert details[0].brokerage_amount == Decimal("5.00")


def test_fee_day_period_prorates_one_day_against_month_length() -> None:
    """Accrue one day of a held position using the month day count.

    Returns:
        None: Assertions validate daily accrual.

    Raises:
        AssertionError: Raised when daily proration is wrong.
    """

    period = period_build_day(datetime(2026, 4, 10).date())
    lot = _lot("1:open", 300, "10.00", datetime(2026, 3, 1, 10, 0, tzinfo=_KOLKATA))

    detail = fee_compute_period_details([lot], period, FeePolicy(rate=Decimal("0.01")))[0]

    assert detail.holding_days == 1
    assert detail.proration_days == 30
    assert detail.brokerage_amount == Decimal("1.00")


def test_fee_policy_rejects_invalid_values() -> None:
    """Reject negative rates and non-positive rounding quantum.

    Returns:
        None: Assertions validate policy validation.

    Raises:
        AssertionError: Raised when invalid policies are accepted.
    """

    with pytest.raises(ValueError):
        FeePolicy(rate=Decimal("-0.01"))
    with pytest.raises(ValueError):
        FeePolicy(rate=Decimal("0.01"), quantum=Decimal("0"))

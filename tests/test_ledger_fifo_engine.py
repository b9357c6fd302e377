"""Regression tests for FIFO lot matching over client trade history."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from brokerage_ledger.ledger import (
    DataIntegrityError,
    FifoMatchRequest,
    FifoTradeInput,
    fifo_match_client_lots,
    fifo_match_instrument,
)


def _trade(
    trade_id: int,
    side: str,
    quantity: int,
    price: str,
    timestamp_text: str,
    symbol: str = "INFY",
    exchange: str = "NSE",
) -> FifoTradeInput:
    """Build one trade input for matching tests.

    Args:
        trade_id: Trade identifier.
        side: `BUY` or `SELL`.
        quantity: Traded quantity.
        price: Decimal price text.
        timestamp_text: ISO-8601 UTC timestamp text.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.

    Returns:
        FifoTradeInput: Trade input.
    """

    return FifoTradeInput(
        trade_id=trade_id,
        symbol=symbol,
        exchange=exchange,
        side=side,
        quantity=quantity,
        price=Decimal(price),
        trade_timestamp_utc=datetime.fromisoformat(timestamp_text).replace(tzinfo=timezone.utc),
    )


def _request(trades: list[FifoTradeInput]) -> FifoMatchRequest:
    return FifoMatchRequest(client_id=7, symbol="INFY", exchange="NSE", trades=trades)


def test_ledger_fifo_split_buy_conserves_quantity_across_closed_and_open_lots() -> None:
    """Split one buy across a sell and keep the remainder open.

    Returns:
        None: Assertions validate lot quantities and identities.

    Raises:
        AssertionError: Raised when matched lots deviate from FIFO order.
    """

    result = fifo_match_instrument(
        _request(
            [
                _trade(1, "BUY", 100, "10.00", "2026-01-02T04:00:00"),
                _trade(2, "BUY", 50, "12.00", "2026-01-03T04:00:00"),
                _trade(3, "SELL", 120, "15.00", "2026-01-10T04:00:00"),
            ]
        )
    )

    assert [(lot.lot_id, lot.quantity) for lot in result.lots] == [
        ("1:3", 100),
        ("2:3", 20),
        ("2:open", 30),
    ]
    assert result.open_quantity == 30
    assert result.shortfalls == ()
    assert sum(lot.quantity for lot in result.lots) == 150
    assert result.lots[1].acquired_price == Decimal("12.00")
    assert result.lots[1].disposed_price == Decimal("15.00")
    assert result.lots[2].is_open


def test_ledger_fifo_output_is_deterministic_for_shuffled_input_and_timestamp_ties() -> None:
    """Order equal timestamps by trade id regardless of input order.

    Returns:
        None: Assertions validate replay-stable lots.

    Raises:
        AssertionError: Raised when shuffled input changes the lots.
    """

    trades = [
        _trade(11, "BUY", 5, "20.00", "2026-02-11T06:00:00"),
        _trade(10, "BUY", 5, "21.00", "2026-02-11T06:00:00"),
        _trade(12, "SELL", 6, "22.00", "2026-02-12T06:00:00"),
    ]

    first_result = fifo_match_instrument(_request(trades))
    second_result = fifo_match_instrument(_request(list(reversed(trades))))

    assert first_result == second_result
    assert [lot.lot_id for lot in first_result.lots] == ["10:12", "11:12", "11:open"]
    assert first_result.lots[0].quantity == 5
    assert first_result.lots[1].quantity == 1


def test_ledger_fifo_strict_oversell_raises_data_integrity_with_shortfall() -> None:
    """Reject a sell that exceeds the open quantity.

    Returns:
        None: Assertions validate the structured oversell error.

    Raises:
        AssertionError: Raised when oversell is not rejected.
    """

    with pytest.raises(DataIntegrityError) as error_info:
        fifo_match_instrument(
            _request(
                [
                    _trade(1, "BUY", 10, "10.00", "2026-03-01T04:00:00"),
                    _trade(2, "SELL", 15, "11.00", "2026-03-02T04:00:00"),
                ]
            )
        )

    assert error_info.value.error_code == "DATA_INTEGRITY"
    assert error_info.value.trade_id == 2
    assert error_info.value.requested_quantity == 15
    assert error_info.value.available_quantity == 10
    assert error_info.value.shortfall_quantity == 5


def test_ledger_fifo_lenient_oversell_records_shortfall_and_closes_available_quantity() -> None:
    """Record the oversell instead of raising when strict matching is off.

    Returns:
        None: Assertions validate shortfall records.

    Raises:
        AssertionError: Raised when shortfall is missing.
    """

    result = fifo_match_instrument(
        _request(
            [
                _trade(1, "BUY", 10, "10.00", "2026-03-01T04:00:00"),
                _trade(2, "SELL", 15, "11.00", "2026-03-02T04:00:00"),
            ]
        ),
        strict=False,
    )

    assert [lot.lot_id for lot in result.lots] == ["1:2"]
    assert result.open_quantity == 0
    assert len(result.shortfalls) == 1
    assert result.shortfalls[0].shortfall_quantity == 5


def test_ledger_fifo_sell_before_any_buy_is_oversell() -> None:
    """Treat a sell without prior buys as an oversell of the whole quantity.

    Returns:
        None: Assertions validate the oversell error.

    Raises:
        AssertionError: Raised when the sell is accepted.
    """

    with pytest.raises(DataIntegrityError) as error_info:
        fifo_match_instrument(
            _request(
                [
                    _trade(2, "BUY", 5, "10.00", "2026-03-05T04:00:00"),
                    _trade(1, "SELL", 5, "11.00", "2026-03-01T04:00:00"),
                ]
            )
        )

    assert error_info.value.available_quantity == 0
    assert error_info.value.shortfall_quantity == 5


@pytest.mark.parametrize("quantity", [0, -3])
def test_ledger_fifo_rejects_non_positive_quantity(quantity: int) -> None:
    """Reject trades with zero or negative quantity before matching.

    Args:
        quantity: Invalid quantity.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when the trade is accepted.
    """

    with pytest.raises(DataIntegrityError):
        fifo_match_instrument(_request([_trade(1, "BUY", quantity, "10.00", "2026-03-01T04:00:00")]))


def test_ledger_fifo_rejects_unknown_side() -> None:
    """Reject trades whose side is neither buy nor sell.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when the trade is accepted.
    """

    with pytest.raises(DataIntegrityError):
        fifo_match_instrument(_request([_trade(1, "HOLD", 1, "10.00", "2026-03-01T04:00:00")]))


def test_ledger_fifo_client_lots_match_each_instrument_independently() -> None:
    """Keep queues per instrument when matching all trades of a client.

    Returns:
        None: Assertions validate per-instrument matching.

    Raises:
        AssertionError: Raised when instruments share a queue.
    """

    result = fifo_match_client_lots(
        7,
        [
            _trade(1, "BUY", 10, "10.00", "2026-04-01T04:00:00", symbol="TCS"),
            _trade(2, "BUY", 10, "20.00", "2026-04-01T05:00:00", symbol="INFY"),
            _trade(3, "SELL", 4, "25.00", "2026-04-02T04:00:00", symbol="INFY"),
        ],
    )

    assert [(lot.symbol, lot.lot_id, lot.quantity) for lot in result.lots] == [
        ("INFY", "2:3", 4),
        ("INFY", "2:open", 6),
        ("TCS", "1:open", 10),
    ]
    assert result.open_quantity == 16
    assert all(lot.client_id == 7 for lot in result.lots)

"""FIFO lot matching over buy/sell trade history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .errors import DataIntegrityError

logger = logging.getLogger(__name__)

_FIFO_SUPPORTED_SIDES = frozenset({"BUY", "SELL"})


@dataclass(frozen=True)
class FifoTradeInput:
    """Trade input contract for FIFO lot matching.

    Attributes:
        trade_id: Ledger trade identifier; also the stable tie-break for equal timestamps.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.
        side: Trade side (`BUY` or `SELL`).
        quantity: Traded quantity, a positive integer.
        price: Price per unit.
        trade_timestamp_utc: Offset-aware trade timestamp.
    """

    trade_id: int
    symbol: str
    exchange: str
    side: str
    quantity: int
    price: Decimal
    trade_timestamp_utc: datetime


@dataclass(frozen=True)
class FifoMatchRequest:
    """Input contract for one client+instrument FIFO match.

    Attributes:
        client_id: Client identifier.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.
        trades: Ordered or unordered trades of this instrument.
    """

    client_id: int
    symbol: str
    exchange: str
    trades: list[FifoTradeInput]


@dataclass(frozen=True)
class FifoLot:
    """Quantity slice from one buy, closed by one sell or still open.

    Attributes:
        lot_id: Deterministic identity `"{buy_trade_id}:{sell_trade_id}"` or `"{buy_trade_id}:open"`.
        client_id: Client identifier.
        symbol: Instrument symbol.
        exchange: Instrument exchange code.
        quantity: Lot quantity.
        buy_trade_id: Buy trade that opened the slice.
        acquired_at: Buy timestamp.
        acquired_price: Buy price per unit.
        sell_trade_id: Sell trade that closed the lot, None while open.
        disposed_at: Sell timestamp, None while open.
        disposed_price: Sell price per unit, None while open.
    """

    lot_id: str
    client_id: int
    symbol: str
    exchange: str
    quantity: int
    buy_trade_id: int
    acquired_at: datetime
    acquired_price: Decimal
    sell_trade_id: int | None = None
    disposed_at: datetime | None = None
    disposed_price: Decimal | None = None

    @property
    def is_open(self) -> bool:
        """Return whether the lot has not been disposed."""

        return self.disposed_at is None


@dataclass(frozen=True)
class FifoShortfall:
    """Sell quantity that could not be matched against open lots.

    Attributes:
        sell_trade_id: Sell trade identifier.
        requested_quantity: Sell quantity.
        available_quantity: Open quantity at the time of the sell.
        shortfall_quantity: Unmatched quantity.
    """

    sell_trade_id: int
    requested_quantity: int
    available_quantity: int
    shortfall_quantity: int


@dataclass(frozen=True)
class FifoMatchResult:
    """Output payload for FIFO lot matching.

    Attributes:
        lots: Closed lots in matching order followed by open remainders in queue order.
        open_quantity: Quantity still open after all trades.
        shortfalls: Oversell records; always empty for strict matches.
    """

    lots: tuple[FifoLot, ...]
    open_quantity: int
    shortfalls: tuple[FifoShortfall, ...]


@dataclass
class _OpenFifoSlice:
    """Mutable open-slice state used during FIFO processing."""

    buy_trade_id: int
    acquired_at: datetime
    acquired_price: Decimal
    remaining_quantity: int


def fifo_match_instrument(request: FifoMatchRequest, strict: bool = True) -> FifoMatchResult:  # pylint: disable=too-many-locals
    """Reconstruct open and closed lots for one client+instrument.

    Open slices are kept in an ordered list with a front cursor. A buy appends
    a slice; a sell consumes slices oldest-first from the cursor, splitting
    the front slice when it holds more than the remaining sell quantity.

    Args:
        request: FIFO match request.
        strict: Raise on oversell instead of recording a shortfall.

    Returns:
        FifoMatchResult: Deterministic lots for the trade list.

    Raises:
        ValueError: Raised when request identity values are invalid.
        DataIntegrityError: Raised for invalid trades, or for oversells when strict.
    """

    if request is None:
        raise ValueError("request must not be None")
    if not request.symbol.strip():
        raise ValueError("request.symbol must not be blank")
    if not request.exchange.strip():
        raise ValueError("request.exchange must not be blank")

    for trade in request.trades:
        _fifo_validate_trade(trade)
        if (trade.symbol, trade.exchange) != (request.symbol, request.exchange):
            raise ValueError(
                f"trade_id={trade.trade_id} belongs to {trade.symbol}-{trade.exchange}, "
                f"not {request.symbol}-{request.exchange}"
            )

    sorted_trades = sorted(request.trades, key=lambda trade: (trade.trade_timestamp_utc, trade.trade_id))

    open_slices: list[_OpenFifoSlice] = []
    head = 0
    closed_lots: list[FifoLot] = []
    shortfalls: list[FifoShortfall] = []

    for trade in sorted_trades:
        if trade.side.strip().upper() == "BUY":
            open_slices.append(
                _OpenFifoSlice(
                    buy_trade_id=trade.trade_id,
                    acquired_at=trade.trade_timestamp_utc,
                    acquired_price=trade.price,
                    remaining_quantity=trade.quantity,
                )
            )
            continue

        available_quantity = sum(open_slice.remaining_quantity for open_slice in open_slices[head:])
        quantity_to_close = trade.quantity

        while quantity_to_close > 0 and head < len(open_slices):
            current_slice = open_slices[head]
            close_quantity = min(quantity_to_close, current_slice.remaining_quantity)
            closed_lots.append(
                FifoLot(
                    lot_id=f"{current_slice.buy_trade_id}:{trade.trade_id}",
                    client_id=request.client_id,
                    symbol=request.symbol,
                    exchange=request.exchange,
                    quantity=close_quantity,
                    buy_trade_id=current_slice.buy_trade_id,
                    acquired_at=current_slice.acquired_at,
                    acquired_price=current_slice.acquired_price,
                    sell_trade_id=trade.trade_id,
                    disposed_at=trade.trade_timestamp_utc,
                    disposed_price=trade.price,
                )
            )
            current_slice.remaining_quantity -= close_quantity
            quantity_to_close -= close_quantity
            if current_slice.remaining_quantity == 0:
                head += 1

        if quantity_to_close > 0:
            shortfall = FifoShortfall(
                sell_trade_id=trade.trade_id,
                requested_quantity=trade.quantity,
                available_quantity=available_quantity,
                shortfall_quantity=quantity_to_close,
            )
            if strict:
                raise DataIntegrityError(
                    f"sell trade_id={trade.trade_id} for client_id={request.client_id} "
                    f"{request.symbol}-{request.exchange} requests {trade.quantity} "
                    f"but only {available_quantity} is open; shortfall={quantity_to_close}",
                    trade_id=trade.trade_id,
                    requested_quantity=trade.quantity,
                    available_quantity=available_quantity,
                    shortfall_quantity=quantity_to_close,
                )
            logger.warning(
                "oversell flagged client_id=%s instrument=%s-%s sell_trade_id=%s shortfall=%s",
                request.client_id,
                request.symbol,
                request.exchange,
                trade.trade_id,
                quantity_to_close,
            )
            shortfalls.append(shortfall)

    open_lots = [
        FifoLot(
            lot_id=f"{open_slice.buy_trade_id}:open",
            client_id=request.client_id,
            symbol=request.symbol,
            exchange=request.exchange,
            quantity=open_slice.remaining_quantity,
            buy_trade_id=open_slice.buy_trade_id,
            acquired_at=open_slice.acquired_at,
            acquired_price=open_slice.acquired_price,
        )
        for open_slice in open_slices[head:]
        if open_slice.remaining_quantity > 0
    ]

    return FifoMatchResult(
        lots=tuple(closed_lots + open_lots),
        open_quantity=sum(lot.quantity for lot in open_lots),
        shortfalls=tuple(shortfalls),
    )


def fifo_match_client_lots(client_id: int, trades: list[FifoTradeInput], strict: bool = True) -> FifoMatchResult:
    """Match every instrument of one client and merge the results.

    Args:
        client_id: Client identifier.
        trades: All trades of the client, any instrument, any order.
        strict: Raise on oversell instead of recording a shortfall.

    Returns:
        FifoMatchResult: Lots of all instruments ordered by (symbol, exchange).

    Raises:
        DataIntegrityError: Raised for invalid trades, or for oversells when strict.
    """

    trades_by_instrument: dict[tuple[str, str], list[FifoTradeInput]] = {}
    for trade in trades:
        trades_by_instrument.setdefault((trade.symbol, trade.exchange), []).append(trade)

    lots: list[FifoLot] = []
    shortfalls: list[FifoShortfall] = []
    open_quantity = 0
    for symbol, exchange in sorted(trades_by_instrument):
        instrument_result = fifo_match_instrument(
            FifoMatchRequest(
                client_id=client_id,
                symbol=symbol,
                exchange=exchange,
                trades=trades_by_instrument[(symbol, exchange)],
            ),
            strict=strict,
        )
        lots.extend(instrument_result.lots)
        shortfalls.extend(instrument_result.shortfalls)
        open_quantity += instrument_result.open_quantity

    return FifoMatchResult(lots=tuple(lots), open_quantity=open_quantity, shortfalls=tuple(shortfalls))


def _fifo_validate_trade(trade: FifoTradeInput) -> None:
    """Reject trades that cannot take part in matching.

    Args:
        trade: Candidate trade.

    Returns:
        None: Validation has no return value.

    Raises:
        DataIntegrityError: Raised for unknown side, non-positive quantity or price, or naive timestamp.
    """

    if trade.side.strip().upper() not in _FIFO_SUPPORTED_SIDES:
        raise DataIntegrityError(f"unsupported trade side={trade.side} for trade_id={trade.trade_id}", trade_id=trade.trade_id)
    if isinstance(trade.quantity, bool) or not isinstance(trade.quantity, int) or trade.quantity <= 0:
        raise DataIntegrityError(
            f"trade quantity must be a positive integer for trade_id={trade.trade_id}, got {trade.quantity!r}",
            trade_id=trade.trade_id,
        )
    if trade.price is None or trade.price < Decimal("0"):
        raise DataIntegrityError(f"trade price must not be negative for trade_id={trade.trade_id}", trade_id=trade.trade_id)
    timestamp_value = trade.trade_timestamp_utc
    if timestamp_value.tzinfo is None or timestamp_value.utcoffset() is None:
        raise DataIntegrityError(
            f"trade_timestamp_utc must be offset-aware for trade_id={trade.trade_id}",
            trade_id=trade.trade_id,
        )


__all__ = [
    "FifoLot",
    "FifoMatchRequest",
    "FifoMatchResult",
    "FifoShortfall",
    "FifoTradeInput",
    "fifo_match_client_lots",
    "fifo_match_instrument",
]

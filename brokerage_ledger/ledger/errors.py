"""Typed exceptions raised by the brokerage calculation engine."""

from __future__ import annotations


class BrokerageEngineError(Exception):
    """Base exception for caller-recoverable engine failures.

    Attributes:
        error_code: Deterministic error code for API and job diagnostics.
    """

    error_code = "BROKERAGE_ENGINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DataIntegrityError(BrokerageEngineError, ValueError):
    """Trade history cannot be matched into lots as recorded.

    Raised for trades rejected before matching (non-positive quantity, unknown
    side) and for sells that exceed the open quantity of their instrument.

    Attributes:
        trade_id: Offending trade identifier, when known.
        requested_quantity: Sell quantity requested by the trade.
        available_quantity: Open quantity available when the sell was matched.
        shortfall_quantity: Unmatched sell quantity.
    """

    error_code = "DATA_INTEGRITY"

    def __init__(
        self,
        message: str,
        trade_id: int | None = None,
        requested_quantity: int | None = None,
        available_quantity: int | None = None,
        shortfall_quantity: int | None = None,
    ):
        super().__init__(message)
        self.trade_id = trade_id
        self.requested_quantity = requested_quantity
        self.available_quantity = available_quantity
        self.shortfall_quantity = shortfall_quantity


class ConfigurationMissingError(BrokerageEngineError, LookupError):
    """Required calculation configuration (rate, quarter day count) is absent."""

    error_code = "CONFIGURATION_MISSING"


class InvalidPeriodError(BrokerageEngineError, ValueError):
    """Requested period bounds or period identity are malformed."""

    error_code = "INVALID_PERIOD"


__all__ = [
    "BrokerageEngineError",
    "ConfigurationMissingError",
    "DataIntegrityError",
    "InvalidPeriodError",
]

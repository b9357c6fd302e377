"""Error envelope helpers shared by API routers."""

from __future__ import annotations

from fastapi import status
from fastapi.responses import JSONResponse

from brokerage_ledger.ledger import (
    BrokerageEngineError,
    ConfigurationMissingError,
    DataIntegrityError,
    InvalidPeriodError,
)

_API_ENGINE_ERROR_STATUS_CODES = {
    DataIntegrityError: status.HTTP_409_CONFLICT,
    ConfigurationMissingError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidPeriodError: status.HTTP_400_BAD_REQUEST,
}


def api_error_response(code: str, message: str, status_code: int, **extra: object) -> JSONResponse:
    """Build the deterministic `{"status": "error", ...}` envelope.

    Args:
        code: Deterministic error code.
        message: Human-readable message.
        status_code: HTTP status code.
        **extra: Additional payload members.

    Returns:
        JSONResponse: Error response.
    """

    payload: dict[str, object] = {"status": "error", "code": code, "message": message}
    payload.update(extra)
    return JSONResponse(content=payload, status_code=status_code)


def api_engine_error_response(error: BrokerageEngineError) -> JSONResponse:
    """Map a calculation engine error to its HTTP response.

    Args:
        error: Engine error raised by a calculation.

    Returns:
        JSONResponse: 409 for data integrity, 422 for missing configuration, 400 for invalid periods.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status_code in _API_ENGINE_ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            status_code = mapped_status_code
            break

    extra: dict[str, object] = {}
    if isinstance(error, DataIntegrityError) and error.shortfall_quantity is not None:
        extra["shortfall"] = {
            "trade_id": error.trade_id,
            "requested_quantity": error.requested_quantity,
            "available_quantity": error.available_quantity,
            "shortfall_quantity": error.shortfall_quantity,
        }
    return api_error_response(error.error_code, error.message, status_code, **extra)


__all__ = ["api_engine_error_response", "api_error_response"]

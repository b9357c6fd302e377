"""Brokerage API router composition for calculation, summary and payment endpoints."""
# pylint: disable=duplicate-code

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from brokerage_ledger.api.errors import api_engine_error_response, api_error_response
from brokerage_ledger.config import AppSettings
from brokerage_ledger.db import BrokerageDetailRecord, BrokerageLedgerRepositoryPort, BrokerageSummaryRecord
from brokerage_ledger.ledger import (
    SUMMARY_STATUS_UNCALCULATED,
    BrokerageCalculationDetail,
    BrokerageCalculationPort,
    BrokerageEngineError,
    summary_status,
)


class BrokerageCalculateRequest(BaseModel):
    """Request body for one (client, period) calculation."""

    client_id: int = Field(ge=1)
    period_kind: str = Field(min_length=1)
    period_start: date
    clear_payment: bool = False


class BrokeragePaymentRequest(BaseModel):
    """Request body recording a quarter payment."""

    client_id: int = Field(ge=1)
    period_start: date
    paid_amount: Decimal = Field(ge=0)
    paid_date: date


def api_create_brokerage_router(
    settings: AppSettings,
    calculation_service: BrokerageCalculationPort,
    brokerage_repository: BrokerageLedgerRepositoryPort,
) -> APIRouter:
    """Create brokerage router exposing calculation and summary APIs.

    Args:
        settings: Runtime settings used for pagination defaults.
        calculation_service: Ledger-layer calculation service.
        brokerage_repository: DB-layer brokerage repository for list and payment operations.

    Returns:
        APIRouter: Router exposing brokerage endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if calculation_service is None:
        raise ValueError("calculation_service must not be None")
    if brokerage_repository is None:
        raise ValueError("brokerage_repository must not be None")

    router = APIRouter(prefix="/brokerage", tags=["brokerage"])

    @router.post("/calculate")
    def api_brokerage_calculate(request: BrokerageCalculateRequest) -> JSONResponse:
        """Recompute one (client, period) and return summary plus details.

        Args:
            request: Calculation request body.

        Returns:
            JSONResponse: Summary and detail payload, or an engine error envelope.

        Raises:
            RuntimeError: Raised when persistence fails unexpectedly.
        """

        try:
            result = calculation_service.brokerage_calculate(
                client_id=request.client_id,
                period_kind=request.period_kind,
                period_start=request.period_start,
                clear_payment=request.clear_payment,
            )
        except BrokerageEngineError as error:
            return api_engine_error_response(error)
        except ValueError as error:
            return api_error_response("INVALID_REQUEST", str(error), status.HTTP_400_BAD_REQUEST)

        payload = {
            "period": {
                "period_kind": result.period.period_kind,
                "period_start": result.period.period_start.isoformat(),
                "period_end": result.period.period_end.isoformat(),
                "total_days_in_period": result.period.total_days_in_period,
                "proration_days": result.period.proration_days,
            },
            "summary": api_serialize_brokerage_summary(result.summary),
            "details": [api_serialize_calculation_detail(detail) for detail in result.details],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/summary")
    def api_brokerage_summary_get(
        client_id: int = Query(ge=1),
        period_kind: str = Query(min_length=1),
        period_start: date = Query(),
    ) -> JSONResponse:
        """Return the last persisted summary of one (client, period).

        Returns:
            JSONResponse: Summary payload, or 404 when the period was never calculated.
        """

        try:
            summary = calculation_service.brokerage_get_summary(
                client_id=client_id,
                period_kind=period_kind,
                period_start=period_start,
            )
        except BrokerageEngineError as error:
            return api_engine_error_response(error)

        if summary is None:
            return api_error_response(
                "SUMMARY_NOT_FOUND",
                f"no summary for client_id={client_id} period={period_kind}:{period_start.isoformat()}",
                status.HTTP_404_NOT_FOUND,
                summary_status=SUMMARY_STATUS_UNCALCULATED,
            )
        return JSONResponse(content=api_serialize_brokerage_summary(summary), status_code=status.HTTP_200_OK)

    @router.get("/summaries")
    def api_brokerage_summary_list(
        period_kind: str | None = Query(default=None),
        client_id: int | None = Query(default=None, ge=1),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """List persisted summaries, newest period first.

        Returns:
            JSONResponse: Summary list envelope payload.
        """

        normalized_period_kind = None if period_kind is None else period_kind.strip().lower() or None
        applied_limit = min(limit, settings.api_max_limit)
        summary_rows = brokerage_repository.db_brokerage_summary_list(
            period_kind=normalized_period_kind,
            client_id=client_id,
            limit=applied_limit,
            offset=offset,
        )
        payload = {
            "items": [api_serialize_brokerage_summary(summary_row) for summary_row in summary_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(summary_rows),
            },
            "filters": {
                "period_kind": normalized_period_kind,
                "client_id": client_id,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/details")
    def api_brokerage_detail_list(
        client_id: int = Query(ge=1),
        period_kind: str = Query(min_length=1),
        period_start: date = Query(),
    ) -> JSONResponse:
        """List persisted detail rows of one (client, period).

        Returns:
            JSONResponse: Detail list payload.
        """

        try:
            detail_rows = calculation_service.brokerage_list_details(
                client_id=client_id,
                period_kind=period_kind,
                period_start=period_start,
            )
        except BrokerageEngineError as error:
            return api_engine_error_response(error)

        payload = {
            "items": [api_serialize_detail_record(detail_row) for detail_row in detail_rows],
            "returned": len(detail_rows),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/payments")
    def api_brokerage_payment_record(request: BrokeragePaymentRequest) -> JSONResponse:
        """Mark a calculated quarter summary as paid.

        Args:
            request: Payment request body.

        Returns:
            JSONResponse: Updated summary, 404 when the quarter was never calculated.
        """

        try:
            summary = brokerage_repository.db_brokerage_summary_record_payment(
                client_id=request.client_id,
                period_start=request.period_start,
                paid_amount=request.paid_amount,
                paid_date=request.paid_date,
            )
        except ValueError as error:
            return api_error_response("INVALID_PAYMENT", str(error), status.HTTP_400_BAD_REQUEST)
        except LookupError as error:
            return api_error_response("SUMMARY_NOT_FOUND", str(error), status.HTTP_404_NOT_FOUND)

        return JSONResponse(content=api_serialize_brokerage_summary(summary), status_code=status.HTTP_200_OK)

    return router


def _api_decimal_text(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def api_serialize_brokerage_summary(summary: BrokerageSummaryRecord) -> dict[str, object]:
    """Serialize one typed summary row to JSON payload.

    Args:
        summary: Persisted summary row.

    Returns:
        dict[str, object]: JSON-serializable summary payload with lifecycle status.
    """

    return {
        "brokerage_summary_id": summary.brokerage_summary_id,
        "client_id": summary.client_id,
        "period_kind": summary.period_kind,
        "period_start": summary.period_start.isoformat(),
        "period_end": summary.period_end.isoformat(),
        "total_days_in_period": summary.total_days_in_period,
        "brokerage_rate": str(summary.brokerage_rate),
        "total_brokerage": str(summary.total_brokerage),
        "total_holding_value": str(summary.total_holding_value),
        "total_turnover": str(summary.total_turnover),
        "total_trades": summary.total_trades,
        "total_holding_days": summary.total_holding_days,
        "total_positions": summary.total_positions,
        "days_in_quarter": summary.days_in_quarter,
        "average_daily_holding": _api_decimal_text(summary.average_daily_holding),
        "average_daily_unused": _api_decimal_text(summary.average_daily_unused),
        "is_paid": summary.is_paid,
        "paid_amount": _api_decimal_text(summary.paid_amount),
        "paid_date": None if summary.paid_date is None else summary.paid_date.isoformat(),
        "summary_status": summary_status(summary),
        "calculated_at_utc": summary.calculated_at_utc.isoformat(),
        "updated_at_utc": summary.updated_at_utc.isoformat(),
    }


def api_serialize_calculation_detail(detail: BrokerageCalculationDetail) -> dict[str, object]:
    """Serialize one freshly computed detail row to JSON payload."""

    return {
        "lot_id": detail.lot_id,
        "buy_trade_id": detail.buy_trade_id,
        "sell_trade_id": detail.sell_trade_id,
        "symbol": detail.symbol,
        "exchange": detail.exchange,
        "quantity": detail.quantity,
        "acquired_price": str(detail.acquired_price),
        "disposed_price": _api_decimal_text(detail.disposed_price),
        "acquired_at_utc": detail.acquired_at.isoformat(),
        "disposed_at_utc": None if detail.disposed_at is None else detail.disposed_at.isoformat(),
        "holding_start_utc": detail.holding_start.isoformat(),
        "holding_end_utc": detail.holding_end.isoformat(),
        "holding_days": detail.holding_days,
        "total_days_in_period": detail.total_days_in_period,
        "proration_days": detail.proration_days,
        "position_value": str(detail.position_value),
        "disposal_value": _api_decimal_text(detail.disposal_value),
        "closed_within_period": detail.closed_within_period,
        "brokerage_rate": str(detail.brokerage_rate),
        "fee_formula": detail.fee_formula.value,
        "calculation_formula": detail.calculation_formula,
        "brokerage_amount": str(detail.brokerage_amount),
        "reference_price": _api_decimal_text(detail.reference_price),
    }


def api_serialize_detail_record(detail: BrokerageDetailRecord) -> dict[str, object]:
    """Serialize one persisted detail row to JSON payload."""

    return {
        "brokerage_calculation_detail_id": detail.brokerage_calculation_detail_id,
        "lot_id": detail.lot_id,
        "buy_trade_id": detail.buy_trade_id,
        "sell_trade_id": detail.sell_trade_id,
        "symbol": detail.symbol,
        "exchange": detail.exchange,
        "quantity": detail.quantity,
        "acquired_price": str(detail.acquired_price),
        "disposed_price": _api_decimal_text(detail.disposed_price),
        "acquired_at_utc": detail.acquired_at_utc.isoformat(),
        "disposed_at_utc": None if detail.disposed_at_utc is None else detail.disposed_at_utc.isoformat(),
        "holding_start_utc": detail.holding_start_utc.isoformat(),
        "holding_end_utc": detail.holding_end_utc.isoformat(),
        "holding_days": detail.holding_days,
        "total_days_in_period": detail.total_days_in_period,
        "proration_days": detail.proration_days,
        "position_value": str(detail.position_value),
        "disposal_value": _api_decimal_text(detail.disposal_value),
        "closed_within_period": detail.closed_within_period,
        "brokerage_rate": str(detail.brokerage_rate),
        "fee_formula": detail.fee_formula,
        "calculation_formula": detail.calculation_formula,
        "brokerage_amount": str(detail.brokerage_amount),
        "reference_price": _api_decimal_text(detail.reference_price),
    }


__all__ = [
    "BrokerageCalculateRequest",
    "BrokeragePaymentRequest",
    "api_create_brokerage_router",
    "api_serialize_brokerage_summary",
    "api_serialize_calculation_detail",
    "api_serialize_detail_record",
]

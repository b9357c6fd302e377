"""Job trigger API router composition for batch recalculation."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from brokerage_ledger.api.errors import api_error_response
from brokerage_ledger.jobs import RecalculationPort, RecalculationRunResult
from brokerage_ledger.ledger import PERIOD_KINDS


class RecalculationTriggerRequest(BaseModel):
    """Request body for recalculating one period for every client."""

    period_kind: str = Field(min_length=1)
    period_start: date
    clear_payment: bool = False


def api_create_jobs_router(recalculation_orchestrator: RecalculationPort) -> APIRouter:
    """Create router exposing the batch recalculation trigger.

    Args:
        recalculation_orchestrator: Job orchestrator for all-client recalculation.

    Returns:
        APIRouter: Router exposing job endpoints.

    Raises:
        ValueError: Raised when recalculation_orchestrator is invalid.
    """

    if recalculation_orchestrator is None:
        raise ValueError("recalculation_orchestrator must not be None")

    router = APIRouter(prefix="/jobs", tags=["jobs"])

    @router.post("/recalculate")
    def api_job_recalculate(request: RecalculationTriggerRequest) -> JSONResponse:
        """Recalculate one period for every client.

        Args:
            request: Recalculation trigger body.

        Returns:
            JSONResponse: Batch outcome; per-client failures are reported, not raised.
        """

        normalized_period_kind = request.period_kind.strip().lower()
        if normalized_period_kind not in PERIOD_KINDS:
            return api_error_response(
                "INVALID_PERIOD",
                f"unsupported period_kind={request.period_kind}",
                status.HTTP_400_BAD_REQUEST,
            )

        run_result = recalculation_orchestrator.job_execute_recalculation(
            period_kind=normalized_period_kind,
            period_start=request.period_start,
            clear_payment=request.clear_payment,
        )
        return JSONResponse(content=api_serialize_recalculation_result(run_result), status_code=status.HTTP_200_OK)

    return router


def api_serialize_recalculation_result(run_result: RecalculationRunResult) -> dict[str, object]:
    """Serialize one batch recalculation outcome to JSON payload."""

    return {
        "job_name": run_result.job_name,
        "status": run_result.status,
        "period_kind": run_result.period_kind,
        "period_start": run_result.period_start.isoformat(),
        "processed_count": run_result.processed_count,
        "failed_count": run_result.failed_count,
        "total_brokerage": str(run_result.total_brokerage),
        "failures": [
            {
                "client_id": failure.client_id,
                "error_code": failure.error_code,
                "error_message": failure.error_message,
            }
            for failure in run_result.failures
        ],
        "timeline": run_result.timeline,
    }


__all__ = ["RecalculationTriggerRequest", "api_create_jobs_router", "api_serialize_recalculation_result"]

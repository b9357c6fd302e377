"""Quarter configuration API router composition."""

from __future__ import annotations

from fastapi import APIRouter, Path, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from brokerage_ledger.api.errors import api_error_response
from brokerage_ledger.db import BrokerageLedgerRepositoryPort, QuarterConfigRecord


class QuarterConfigRequest(BaseModel):
    """Request body configuring one quarter's day count."""

    days_in_quarter: int = Field(ge=1, le=92)


def api_create_quarters_router(brokerage_repository: BrokerageLedgerRepositoryPort) -> APIRouter:
    """Create router exposing quarter day-count configuration.

    Args:
        brokerage_repository: DB-layer repository owning quarter configuration.

    Returns:
        APIRouter: Router exposing quarter endpoints.

    Raises:
        ValueError: Raised when brokerage_repository is invalid.
    """

    if brokerage_repository is None:
        raise ValueError("brokerage_repository must not be None")

    router = APIRouter(prefix="/quarters", tags=["quarters"])

    @router.get("/{year}")
    def api_quarter_list(year: int = Path(ge=2000, le=2100)) -> JSONResponse:
        """List configured quarters of one year."""

        quarter_rows = brokerage_repository.db_quarter_list_for_year(year=year)
        payload = {
            "year": year,
            "items": [api_serialize_quarter_config(quarter_row) for quarter_row in quarter_rows],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.put("/{year}/{quarter_number}")
    def api_quarter_upsert(
        request: QuarterConfigRequest,
        year: int = Path(ge=2000, le=2100),
        quarter_number: int = Path(ge=1, le=4),
    ) -> JSONResponse:
        """Create or update one quarter's authoritative day count.

        Returns:
            JSONResponse: Persisted quarter configuration.
        """

        try:
            quarter_row = brokerage_repository.db_quarter_upsert(
                year=year,
                quarter_number=quarter_number,
                days_in_quarter=request.days_in_quarter,
            )
        except ValueError as error:
            return api_error_response("INVALID_QUARTER", str(error), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(content=api_serialize_quarter_config(quarter_row), status_code=status.HTTP_200_OK)

    return router


def api_serialize_quarter_config(quarter_row: QuarterConfigRecord) -> dict[str, object]:
    """Serialize one quarter configuration row to JSON payload."""

    return {
        "year": quarter_row.year,
        "quarter_number": quarter_row.quarter_number,
        "days_in_quarter": quarter_row.days_in_quarter,
        "updated_at_utc": None if quarter_row.updated_at_utc is None else quarter_row.updated_at_utc.isoformat(),
    }


__all__ = ["QuarterConfigRequest", "api_create_quarters_router", "api_serialize_quarter_config"]

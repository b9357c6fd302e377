"""Health endpoint reporting application liveness and database reachability."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from brokerage_ledger.db import DatabaseHealthPort


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create the `/health` router.

    Args:
        db_health_service: Database probe.

    Returns:
        APIRouter: Router exposing `/health`.

    Raises:
        ValueError: Raised when db_health_service is None.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Probe the database and report 200 when it answers, 503 otherwise."""

        payload: dict[str, object] = {"app": "up", "target": db_health_service.db_connection_label()}
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload.update(status="degraded", database="down", detail=str(error))
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload.update(
            status="ok",
            database=db_health.status,
            detail=db_health.detail,
            server_version=db_health.server_version,
            latency_ms=db_health.latency_ms,
        )
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_health_router"]

"""FastAPI application factory for the brokerage ledger service."""

from fastapi import FastAPI

from brokerage_ledger.config import AppSettings
from brokerage_ledger.db import BrokerageLedgerRepositoryPort, DatabaseHealthPort
from brokerage_ledger.jobs import RecalculationPort
from brokerage_ledger.ledger import BrokerageCalculationPort

from .routers import (
    api_create_brokerage_router,
    api_create_health_router,
    api_create_jobs_router,
    api_create_quarters_router,
)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    brokerage_repository: BrokerageLedgerRepositoryPort,
    calculation_service: BrokerageCalculationPort,
    recalculation_orchestrator: RecalculationPort,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        brokerage_repository: Brokerage repository for list, quarter and payment APIs.
        calculation_service: Calculation service for calculate and summary APIs.
        recalculation_orchestrator: Batch recalculation orchestrator.

    Returns:
        FastAPI: Framework application instance.
    """
    application = FastAPI(title="Brokerage Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal service descriptor for bootstrap verification."""

        return {
            "service": "brokerage-ledger",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(
        api_create_brokerage_router(
            settings=settings,
            calculation_service=calculation_service,
            brokerage_repository=brokerage_repository,
        )
    )
    application.include_router(api_create_quarters_router(brokerage_repository=brokerage_repository))
    application.include_router(api_create_jobs_router(recalculation_orchestrator=recalculation_orchestrator))

    return application

"""Application bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI

from brokerage_ledger.api import create_api_application
from brokerage_ledger.config import AppSettings, config_load_settings
from brokerage_ledger.db import SQLAlchemyBrokerageLedgerService, SQLAlchemyDatabaseHealthService, db_create_engine
from brokerage_ledger.jobs import BrokerageRecalculationOrchestrator, RecalculationOrchestratorConfig
from brokerage_ledger.ledger import BrokerageCalculationService


@dataclass(frozen=True)
class BootstrapRuntime:
    """Wired runtime dependencies shared by API and CLI surfaces.

    Attributes:
        settings: Validated runtime settings.
        db_health_service: Database health service.
        brokerage_repository: SQLAlchemy brokerage repository.
        calculation_service: Per-client calculation service.
        recalculation_orchestrator: All-client recalculation orchestrator.
    """

    settings: AppSettings
    db_health_service: SQLAlchemyDatabaseHealthService
    brokerage_repository: SQLAlchemyBrokerageLedgerService
    calculation_service: BrokerageCalculationService
    recalculation_orchestrator: BrokerageRecalculationOrchestrator


def bootstrap_create_runtime(settings: AppSettings | None = None) -> BootstrapRuntime:
    """Assemble runtime dependencies after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        BootstrapRuntime: Wired runtime dependencies.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(
        database_url=resolved_settings.database_url,
        pool_size=resolved_settings.recalculation_max_workers,
    )
    brokerage_repository = SQLAlchemyBrokerageLedgerService(engine=engine)
    calculation_service = BrokerageCalculationService(
        repository=brokerage_repository,
        brokerage_rate=resolved_settings.brokerage_rate,
        business_timezone=resolved_settings.business_timezone,
        rounding_quantum=resolved_settings.brokerage_rounding_quantum,
        minimum_holding_days=resolved_settings.brokerage_minimum_holding_days,
    )
    recalculation_orchestrator = BrokerageRecalculationOrchestrator(
        calculation_service=calculation_service,
        repository=brokerage_repository,
        config=RecalculationOrchestratorConfig(
            business_timezone=resolved_settings.business_timezone,
            max_workers=resolved_settings.recalculation_max_workers,
        ),
    )
    return BootstrapRuntime(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        brokerage_repository=brokerage_repository,
        calculation_service=calculation_service,
        recalculation_orchestrator=recalculation_orchestrator,
    )


def bootstrap_create_application(runtime: BootstrapRuntime | None = None) -> FastAPI:
    """Assemble the FastAPI application.

    Args:
        runtime: Optional wired runtime; built from the environment when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_runtime = runtime or bootstrap_create_runtime()
    return create_api_application(
        settings=resolved_runtime.settings,
        db_health_service=resolved_runtime.db_health_service,
        brokerage_repository=resolved_runtime.brokerage_repository,
        calculation_service=resolved_runtime.calculation_service,
        recalculation_orchestrator=resolved_runtime.recalculation_orchestrator,
    )

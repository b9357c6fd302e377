"""Database layer package for all SQL and persistence boundaries."""

from .brokerage_ledger import SQLAlchemyBrokerageLedgerService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	BrokerageDetailInsertRequest,
	BrokerageDetailRecord,
	BrokerageLedgerRepositoryPort,
	BrokeragePeriodUnitOfWork,
	BrokerageSummaryRecord,
	BrokerageSummaryUpsertRequest,
	DatabaseHealthPort,
	QuarterConfigRecord,
	TradeRecord,
)
from .session import db_create_engine

__all__ = [
	"BrokerageDetailInsertRequest",
	"BrokerageDetailRecord",
	"BrokerageLedgerRepositoryPort",
	"BrokeragePeriodUnitOfWork",
	"BrokerageSummaryRecord",
	"BrokerageSummaryUpsertRequest",
	"DatabaseHealthPort",
	"QuarterConfigRecord",
	"SQLAlchemyBrokerageLedgerService",
	"SQLAlchemyDatabaseHealthService",
	"TradeRecord",
	"db_create_engine",
]

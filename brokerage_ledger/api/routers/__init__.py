"""API router package for endpoint composition."""

from .brokerage import api_create_brokerage_router
from .health import api_create_health_router
from .jobs import api_create_jobs_router
from .quarters import api_create_quarters_router

__all__ = [
	"api_create_brokerage_router",
	"api_create_health_router",
	"api_create_jobs_router",
	"api_create_quarters_router",
]

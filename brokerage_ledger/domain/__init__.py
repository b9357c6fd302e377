"""Value objects shared across the db, job and API layers."""

from .models import HealthStatus
from .timeline import StageTimeline

__all__ = [
	"HealthStatus",
	"StageTimeline",
]

"""Court domain exports."""

from .service import CourtNotFound, CourtService
from .store import reset_memory_state, seed_memory_store

__all__ = [
	"CourtService",
	"CourtNotFound",
	"seed_memory_store",
	"reset_memory_state",
]

"""Match domain exports."""

from .service import MatchDetailService, MatchListService
from .store import reset_memory_state, seed_memory_store

__all__ = [
	"MatchListService",
	"MatchDetailService",
	"seed_memory_store",
	"reset_memory_state",
]

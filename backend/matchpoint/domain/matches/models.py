"""Domain models backing match search and detail results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class GameType(str, Enum):
	SINGLES = "SINGLES"
	MEN_DOUBLES = "MEN_DOUBLES"
	WOMEN_DOUBLES = "WOMEN_DOUBLES"
	MIXED_DOUBLES = "MIXED_DOUBLES"


class MatchStatus(str, Enum):
	RECRUITING = "RECRUITING"
	COMPLETED = "COMPLETED"

	@property
	def external(self) -> str:
		"""Public name exposed by the API (OPEN / CLOSED)."""

		return "OPEN" if self is MatchStatus.RECRUITING else "CLOSED"


class Age(str, Enum):
	TWENTY = "TWENTY"
	THIRTY = "THIRTY"
	FORTY = "FORTY"
	OVER_FIFTY = "OVER_FIFTY"


class Period(str, Enum):
	ONE_YEAR = "ONE_YEAR"
	TWO_YEARS = "TWO_YEARS"
	THREE_YEARS = "THREE_YEARS"
	OVER_FOUR_YEARS = "OVER_FOUR_YEARS"


class SortMode(str, Enum):
	CREATED_AT = "createdAt"
	LATEST = "latest"
	DISTANCE = "distance"
	RECOMMEND = "recommend"


@dataclass(slots=True)
class MatchCandidate:
	"""Normalized match record returned from the store layer."""

	id: int
	host_id: int
	court_id: int
	court_latitude: float
	court_longitude: float
	match_start: datetime
	match_end: datetime
	created_at: datetime
	game_type: GameType
	status: MatchStatus
	fee: int = 0
	ages: frozenset[Age] = field(default_factory=frozenset)
	periods: frozenset[Period] = field(default_factory=frozenset)
	player_count_men: int = 0
	player_count_women: int = 0
	description: Optional[str] = None
	updated_at: Optional[datetime] = None


@dataclass(slots=True)
class MatchWithMetrics:
	"""A candidate decorated with the metrics of one search call."""

	match: MatchCandidate
	distance_km: float
	score: float = 0.0


@dataclass(frozen=True, slots=True)
class SearchParams:
	"""Validated, defaulted search parameters."""

	sort: SortMode
	window_from: datetime
	window_to: datetime
	game_type: Optional[GameType]
	statuses: frozenset[MatchStatus]
	latitude: float
	longitude: float
	radius_km: int
	size: int
	cursor: Optional[str] = None

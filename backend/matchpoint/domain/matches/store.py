"""Match store backends: Postgres for deployments, in-memory for dev and tests.

The store applies only the coarse filters (start-time window, game type,
statuses). Distance, score, radius, sort and cursor are handled by the
search service.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Iterable, Optional, Protocol

import asyncpg

from matchpoint.domain.matches import models
from matchpoint.infra.postgres import get_pool
from matchpoint.settings import settings


class MatchStore(Protocol):
	async def find_matches_for_search(
		self,
		window_from: datetime,
		window_to: datetime,
		game_type: Optional[models.GameType],
		statuses: Iterable[models.MatchStatus],
	) -> list[models.MatchCandidate]:
		...

	async def get_match(self, match_id: int) -> Optional[models.MatchCandidate]:
		...


class MemoryMatchStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.matches: dict[int, models.MatchCandidate] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.matches.clear()

	async def seed(self, matches: Iterable[models.MatchCandidate]) -> None:
		async with self._lock:
			self.matches = {match.id: match for match in matches}

	async def find_matches_for_search(
		self,
		window_from: datetime,
		window_to: datetime,
		game_type: Optional[models.GameType],
		statuses: Iterable[models.MatchStatus],
	) -> list[models.MatchCandidate]:
		wanted = set(statuses)
		async with self._lock:
			return [
				match
				for match in self.matches.values()
				if window_from < match.match_start <= window_to
				and (game_type is None or match.game_type is game_type)
				and (not wanted or match.status in wanted)
			]

	async def get_match(self, match_id: int) -> Optional[models.MatchCandidate]:
		async with self._lock:
			return self.matches.get(match_id)


_MATCH_COLUMNS = """
	m.id,
	m.host_id,
	m.court_id,
	c.latitude AS court_latitude,
	c.longitude AS court_longitude,
	m.match_start,
	m.match_end,
	m.created_at,
	m.updated_at,
	m.game_type,
	m.status,
	m.fee,
	m.description,
	m.player_count_men,
	m.player_count_women,
	COALESCE((SELECT array_agg(a.age) FROM match_ages a WHERE a.match_id = m.id), '{}') AS ages,
	COALESCE((SELECT array_agg(p.period) FROM match_periods p WHERE p.match_id = m.id), '{}') AS periods
"""


def _local(value: Optional[datetime]) -> Optional[datetime]:
	"""TIMESTAMPTZ columns arrive zone-aware; the search works in naive local time."""

	if value is None or value.tzinfo is None:
		return value
	return value.astimezone().replace(tzinfo=None)


def _row_to_candidate(row: asyncpg.Record) -> models.MatchCandidate:
	return models.MatchCandidate(
		id=int(row["id"]),
		host_id=int(row["host_id"]),
		court_id=int(row["court_id"]),
		court_latitude=float(row["court_latitude"]),
		court_longitude=float(row["court_longitude"]),
		match_start=_local(row["match_start"]),
		match_end=_local(row["match_end"]),
		created_at=_local(row["created_at"]),
		updated_at=_local(row["updated_at"]),
		game_type=models.GameType(row["game_type"]),
		status=models.MatchStatus(row["status"]),
		fee=int(row["fee"]),
		description=row["description"],
		player_count_men=int(row["player_count_men"]),
		player_count_women=int(row["player_count_women"]),
		ages=frozenset(models.Age(value) for value in row["ages"]),
		periods=frozenset(models.Period(value) for value in row["periods"]),
	)


class PostgresMatchStore:
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def find_matches_for_search(
		self,
		window_from: datetime,
		window_to: datetime,
		game_type: Optional[models.GameType],
		statuses: Iterable[models.MatchStatus],
	) -> list[models.MatchCandidate]:
		status_values = [status.value for status in statuses]
		async with self._pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_MATCH_COLUMNS}
				FROM matches m
				JOIN courts c ON c.id = m.court_id
				WHERE m.match_start > $1
					AND m.match_start <= $2
					AND ($3::text IS NULL OR m.game_type = $3::text)
					AND (cardinality($4::text[]) = 0 OR m.status = ANY($4::text[]))
				""",
				window_from.astimezone(),
				window_to.astimezone(),
				game_type.value if game_type else None,
				status_values,
			)
		return [_row_to_candidate(row) for row in rows]

	async def get_match(self, match_id: int) -> Optional[models.MatchCandidate]:
		async with self._pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				SELECT {_MATCH_COLUMNS}
				FROM matches m
				JOIN courts c ON c.id = m.court_id
				WHERE m.id = $1
				""",
				match_id,
			)
		return _row_to_candidate(row) if row else None


_MEMORY = MemoryMatchStore()


async def resolve_store() -> MatchStore:
	"""Return the store selected by ``settings.match_store_backend``."""

	if settings.match_store_backend == "memory":
		return _MEMORY
	return PostgresMatchStore(await get_pool())


async def seed_memory_store(matches: Iterable[models.MatchCandidate]) -> None:
	await _MEMORY.seed(matches)


async def reset_memory_state() -> None:
	await _MEMORY.reset()

"""Court store backends mirroring the match store selection."""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Protocol

import asyncpg

from matchpoint.domain.courts import models
from matchpoint.infra.postgres import get_pool
from matchpoint.settings import settings


class CourtStore(Protocol):
	async def search(self, keyword: str, *, after_id: int, limit: int) -> list[models.Court]:
		...

	async def get(self, court_id: int) -> Optional[models.Court]:
		...


class MemoryCourtStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.courts: dict[int, models.Court] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.courts.clear()

	async def seed(self, courts: Iterable[models.Court]) -> None:
		async with self._lock:
			self.courts = {court.id: court for court in courts}

	async def search(self, keyword: str, *, after_id: int, limit: int) -> list[models.Court]:
		async with self._lock:
			hits = [
				court
				for court in self.courts.values()
				if court.id > after_id and court.matches_keyword(keyword)
			]
		hits.sort(key=lambda court: court.id)
		return hits[:limit]

	async def get(self, court_id: int) -> Optional[models.Court]:
		async with self._lock:
			return self.courts.get(court_id)


def _like_pattern(keyword: str) -> str:
	escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
	return f"%{escaped}%"


def _row_to_court(row: asyncpg.Record) -> models.Court:
	return models.Court(
		id=int(row["id"]),
		name=row["name"],
		location=row["location"],
		latitude=float(row["latitude"]),
		longitude=float(row["longitude"]),
		img_url=row["img_url"],
	)


class PostgresCourtStore:
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def search(self, keyword: str, *, after_id: int, limit: int) -> list[models.Court]:
		async with self._pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, name, location, latitude, longitude, img_url
				FROM courts
				WHERE (name ILIKE $1 OR location ILIKE $1)
					AND id > $2
				ORDER BY id ASC
				LIMIT $3
				""",
				_like_pattern(keyword),
				after_id,
				limit,
			)
		return [_row_to_court(row) for row in rows]

	async def get(self, court_id: int) -> Optional[models.Court]:
		async with self._pool.acquire() as conn:
			row = await conn.fetchrow(
				"SELECT id, name, location, latitude, longitude, img_url FROM courts WHERE id = $1",
				court_id,
			)
		return _row_to_court(row) if row else None


_MEMORY = MemoryCourtStore()


async def resolve_store() -> CourtStore:
	if settings.match_store_backend == "memory":
		return _MEMORY
	return PostgresCourtStore(await get_pool())


async def seed_memory_store(courts: Iterable[models.Court]) -> None:
	await _MEMORY.seed(courts)


async def reset_memory_state() -> None:
	await _MEMORY.reset()

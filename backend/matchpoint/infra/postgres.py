"""asyncpg pool shared by the match and court stores."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Optional

import asyncpg

from matchpoint.settings import settings

logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None


async def init_pool() -> asyncpg.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			command_timeout=settings.postgres_command_timeout,
			server_settings={"application_name": settings.service_name},
		)
		logger.info(
			"postgres_pool_ready min=%d max=%d",
			settings.postgres_min_pool_size,
			settings.postgres_max_pool_size,
		)
	return _pool


async def get_pool() -> asyncpg.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def ping(timeout: float) -> float:
	"""Run ``SELECT 1`` on a pooled connection and return the round trip in seconds."""

	pool = await get_pool()
	start = perf_counter()
	async with pool.acquire() as conn:
		await asyncio.wait_for(conn.execute("SELECT 1"), timeout=timeout)
	return perf_counter() - start


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None

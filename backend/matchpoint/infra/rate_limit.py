"""Fixed-window request budgets for the search endpoints, counted in Redis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from matchpoint.infra.redis import redis_client

KEY_PREFIX = "matchpoint:rl"


@dataclass(frozen=True, slots=True)
class RateWindow:
	"""Counter state of one client in the current window after a hit."""

	count: int
	limit: int
	retry_after: int

	@property
	def exceeded(self) -> bool:
		return self.count > self.limit


def window_key(kind: str, client: str, window_start: int, window_seconds: int) -> str:
	return f"{KEY_PREFIX}:{kind}:{window_seconds}:{window_start}:{client}"


async def hit(
	kind: str,
	client: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> RateWindow:
	"""Count one request for ``client`` and report where it stands in the window."""

	now = time.time() if now is None else now
	window_start = int(now // window_seconds) * window_seconds
	key = window_key(kind, client, window_start, window_seconds)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window_seconds)
		count, _ = await pipe.execute()
	retry_after = max(1, int(window_start + window_seconds - now))
	return RateWindow(count=int(count), limit=limit, retry_after=retry_after)

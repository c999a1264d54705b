"""Court lookup and keyword search."""

from __future__ import annotations

import logging
from typing import Optional

from matchpoint.domain.courts import models, schemas
from matchpoint.domain.courts.store import CourtStore, resolve_store
from matchpoint.domain.matches.policy import InvalidSearchParameter, MatchPolicyError
from matchpoint.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class CourtNotFound(MatchPolicyError):
	def __init__(self) -> None:
		super().__init__(detail="court_not_found", status_code=404)


def _to_result(court: models.Court) -> schemas.CourtResult:
	return schemas.CourtResult(
		court_id=court.id,
		name=court.name,
		address=court.location,
		latitude=court.latitude,
		longitude=court.longitude,
		thumbnail=court.img_url,
	)


class CourtService:
	def __init__(self, store: Optional[CourtStore] = None) -> None:
		self._store = store

	async def _resolve_store(self) -> CourtStore:
		if self._store is not None:
			return self._store
		return await resolve_store()

	async def get(self, court_id: int) -> schemas.CourtResult:
		store = await self._resolve_store()
		court = await store.get(court_id)
		if court is None:
			raise CourtNotFound()
		return _to_result(court)

	async def search(
		self,
		keyword: str,
		*,
		cursor: Optional[int] = None,
		size: Optional[int] = None,
	) -> schemas.CourtSearchResponse:
		"""Keyset search over court name/address ordered by id; cursor is the last id seen."""

		normalized = (keyword or "").strip()
		if not normalized:
			raise InvalidSearchParameter("blank_keyword")
		limit = size if size is not None and size > 0 else DEFAULT_PAGE_SIZE
		after_id = cursor if cursor is not None and cursor > 0 else 0

		store = await self._resolve_store()
		courts = await store.search(normalized, after_id=after_id, limit=limit + 1)
		has_next = len(courts) > limit
		page = courts[:limit]
		obs_metrics.inc_court_search()
		logger.info("court_search results=%d has_next=%s", len(page), has_next)
		return schemas.CourtSearchResponse(
			courts=[_to_result(court) for court in page],
			has_next=has_next,
			cursor=page[-1].id if has_next else None,
			size=len(page),
		)

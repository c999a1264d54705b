"""Service layer for match list search and match detail lookups."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, TypeVar

from matchpoint.domain.matches import cursor as cursors
from matchpoint.domain.matches import models, policy, ranking, schemas
from matchpoint.domain.matches.store import MatchStore, resolve_store
from matchpoint.obs import metrics as obs_metrics
from matchpoint.settings import settings

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _iso(value: Optional[datetime]) -> Optional[str]:
	"""ISO-8601 local date-time at second precision, no zone suffix."""

	if value is None:
		return None
	if value.tzinfo is not None:
		value = value.astimezone().replace(tzinfo=None)
	return value.isoformat(timespec="seconds")


def _ordered(values: Iterable[E], enum_cls: type[E]) -> list[str]:
	order = {member: index for index, member in enumerate(enum_cls)}
	return [member.value for member in sorted(values, key=order.__getitem__)]


def _summary_fields(match: models.MatchCandidate) -> dict[str, object]:
	return {
		"match_id": match.id,
		"host_id": match.host_id,
		"start_date_time": _iso(match.match_start),
		"end_date_time": _iso(match.match_end),
		"game_type": match.game_type.value,
		"court_id": match.court_id,
		"period": _ordered(match.periods, models.Period),
		"player_count_men": match.player_count_men,
		"player_count_women": match.player_count_women,
		"age_range": _ordered(match.ages, models.Age),
		"fee": match.fee,
		"status": match.status.external,
		"created_at": _iso(match.created_at),
	}


def _with_metrics(
	candidates: Iterable[models.MatchCandidate],
	params: models.SearchParams,
	*,
	now: datetime,
) -> list[models.MatchWithMetrics]:
	"""Compute distance (and score under recommend) and drop matches outside the radius."""

	items: list[models.MatchWithMetrics] = []
	for match in candidates:
		distance = ranking.haversine_km(params.latitude, params.longitude, match.court_latitude, match.court_longitude)
		if distance > params.radius_km:
			continue
		score = 0.0
		if params.sort is models.SortMode.RECOMMEND:
			score = ranking.recommendation_score(distance, match.match_start, now)
		items.append(models.MatchWithMetrics(match=match, distance_km=distance, score=score))
	return items


def _after_cursor(
	items: list[models.MatchWithMetrics],
	cursor: Optional[cursors.Cursor],
	sort: models.SortMode,
) -> list[models.MatchWithMetrics]:
	"""Keep the sorted items strictly after the cursor position."""

	if cursor is None:
		return items
	boundary = cursor.position()
	for index, item in enumerate(items):
		if cursors.sort_key(item, sort) > boundary:
			return items[index:]
	if settings.match_cursor_exhausted_restart:
		logger.warning("match_search.cursor_exhausted sort=%s action=restart", sort.value)
		return items
	logger.warning("match_search.cursor_exhausted sort=%s action=empty_page", sort.value)
	return []


class MatchListService:
	"""Filter, rank and page through matches for the match list screen."""

	def __init__(self, store: Optional[MatchStore] = None) -> None:
		self._store = store

	async def _resolve_store(self) -> MatchStore:
		if self._store is not None:
			return self._store
		return await resolve_store()

	async def search(
		self,
		query: schemas.MatchListQuery,
		*,
		now: Optional[datetime] = None,
	) -> schemas.MatchListResponse:
		start = time.perf_counter()
		now = now or datetime.now()
		try:
			params = policy.normalize_search(query, now=now)
			cursor = cursors.decode_cursor(params.cursor, params.sort) if params.cursor else None
		except policy.InvalidSearchParameter as exc:
			obs_metrics.inc_match_search_reject(exc.reason or exc.detail)
			logger.info("match_search.rejected reason=%s", exc.reason)
			raise

		try:
			store = await self._resolve_store()
			candidates = await store.find_matches_for_search(
				params.window_from,
				params.window_to,
				params.game_type,
				params.statuses,
			)
			obs_metrics.observe_match_candidates(len(candidates))

			items = _with_metrics(candidates, params, now=now)
			items.sort(key=lambda item: cursors.sort_key(item, params.sort))
			remaining = _after_cursor(items, cursor, params.sort)

			has_next = len(remaining) > params.size
			page = remaining[: params.size]
			next_cursor = None
			if has_next:
				next_cursor = cursors.encode_cursor(cursors.cursor_for(page[-1], params.sort))

			obs_metrics.inc_match_search(params.sort.value)
			logger.info(
				"match_search sort=%s candidates=%d in_radius=%d page=%d has_next=%s",
				params.sort.value,
				len(candidates),
				len(items),
				len(page),
				has_next,
			)
			return schemas.MatchListResponse(
				matches=[schemas.MatchSummary(**_summary_fields(item.match)) for item in page],
				size=len(page),
				has_next=has_next,
				cursor=next_cursor,
			)
		finally:
			obs_metrics.observe_match_search_latency(params.sort.value, time.perf_counter() - start)


class MatchDetailService:
	def __init__(self, store: Optional[MatchStore] = None) -> None:
		self._store = store

	async def get(self, match_id: int) -> schemas.MatchDetail:
		store = self._store if self._store is not None else await resolve_store()
		match = await store.get_match(match_id)
		if match is None:
			logger.info("match_detail.not_found match_id=%s", match_id)
			raise policy.MatchNotFound()
		return schemas.MatchDetail(
			**_summary_fields(match),
			description=match.description,
			updated_at=_iso(match.updated_at),
		)

"""Parameter validation, error types and rate limits for match search."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from matchpoint.domain.matches import models, schemas
from matchpoint.infra import rate_limit
from matchpoint.obs import metrics as obs_metrics
from matchpoint.settings import settings

FAR_FUTURE_DATE = date(9999, 12, 31)
DEFAULT_START_HOUR = 0
DEFAULT_END_HOUR = 24

_SORT_MODES = {mode.value.lower(): mode for mode in models.SortMode}


@dataclass(slots=True)
class MatchPolicyError(Exception):
	detail: str
	status_code: int = 400
	reason: Optional[str] = None
	retry_after: Optional[int] = None

	def __str__(self) -> str:  # pragma: no cover - debugging aid
		return self.reason or self.detail


class InvalidSearchParameter(MatchPolicyError):
	def __init__(self, reason: str) -> None:
		super().__init__(detail="invalid_match_search_parameter", status_code=400, reason=reason)


class SearchRateLimited(MatchPolicyError):
	def __init__(self, retry_after: Optional[int] = None) -> None:
		super().__init__(detail="rate_limit", status_code=429, retry_after=retry_after)


class MatchNotFound(MatchPolicyError):
	def __init__(self) -> None:
		super().__init__(detail="match_not_found", status_code=404)


async def enforce_rate_limit(actor: str, *, kind: str, limit: Optional[int] = None) -> None:
	"""Ensure the caller remains within the configured per-minute budget."""

	budget = settings.search_rate_limit_per_minute if limit is None else limit
	if budget <= 0:
		return
	window = await rate_limit.hit(kind, actor, limit=budget)
	if window.exceeded:
		obs_metrics.inc_rate_limited(kind)
		raise SearchRateLimited(retry_after=window.retry_after)


def parse_sort(raw: Optional[str]) -> models.SortMode:
	if raw is None or not raw.strip():
		return models.SortMode.CREATED_AT
	mode = _SORT_MODES.get(raw.strip().lower())
	if mode is None:
		raise InvalidSearchParameter("invalid_sort")
	return mode


def parse_game_type(raw: Optional[str]) -> Optional[models.GameType]:
	if raw is None or not raw.strip():
		return None
	try:
		return models.GameType(raw.strip().upper())
	except ValueError as exc:
		raise InvalidSearchParameter("invalid_game_type") from exc


def parse_statuses(raw: Optional[str]) -> frozenset[models.MatchStatus]:
	"""Parse "RECRUITING,COMPLETED" style input; blank means RECRUITING only."""

	if raw is None or not raw.strip():
		return frozenset({models.MatchStatus.RECRUITING})
	statuses: set[models.MatchStatus] = set()
	for token in raw.split(","):
		trimmed = token.strip()
		if not trimmed:
			continue
		try:
			statuses.add(models.MatchStatus(trimmed.upper()))
		except ValueError as exc:
			raise InvalidSearchParameter("invalid_status") from exc
	if not statuses:
		raise InvalidSearchParameter("invalid_status")
	return frozenset(statuses)


def _parse_int(raw: Optional[str], reason: str) -> Optional[int]:
	if raw is None or not raw.strip():
		return None
	try:
		return int(raw.strip())
	except ValueError as exc:
		raise InvalidSearchParameter(reason) from exc


def _parse_float(raw: Optional[str], reason: str) -> Optional[float]:
	if raw is None or not raw.strip():
		return None
	try:
		return float(raw.strip())
	except ValueError as exc:
		raise InvalidSearchParameter(reason) from exc


def _parse_date(raw: Optional[str], default: date) -> date:
	if raw is None or not raw.strip():
		return default
	try:
		return date.fromisoformat(raw.strip())
	except ValueError as exc:
		raise InvalidSearchParameter("invalid_date") from exc


def resolve_window(query: schemas.MatchListQuery, *, now: datetime) -> tuple[datetime, datetime]:
	"""Return the (from, to] start-time window, never reaching back before now."""

	start_date = _parse_date(query.start_date, now.date())
	end_date = _parse_date(query.end_date, FAR_FUTURE_DATE)
	if start_date > end_date:
		raise InvalidSearchParameter("invalid_date_range")

	start_hour = _parse_int(query.start_time, "invalid_hour_range")
	end_hour = _parse_int(query.end_time, "invalid_hour_range")
	if start_hour is None:
		start_hour = DEFAULT_START_HOUR
	if end_hour is None:
		end_hour = DEFAULT_END_HOUR
	if not 0 <= start_hour <= 23 or not 1 <= end_hour <= 24 or start_hour >= end_hour:
		raise InvalidSearchParameter("invalid_hour_range")

	window_from = datetime.combine(start_date, time(start_hour, 0))
	window_to = datetime.combine(end_date, time(23, 59) if end_hour == 24 else time(end_hour, 0))
	if window_from < now:
		window_from = now
	return window_from, window_to


def resolve_reference_point(
	sort: models.SortMode,
	latitude: Optional[float],
	longitude: Optional[float],
) -> tuple[float, float]:
	if sort is models.SortMode.DISTANCE and (latitude is None or longitude is None):
		raise InvalidSearchParameter("missing_coordinates")
	if (latitude is None) != (longitude is None):
		raise InvalidSearchParameter("partial_coordinates")
	if latitude is None or longitude is None:
		return settings.match_default_latitude, settings.match_default_longitude
	if not (math.isfinite(latitude) and math.isfinite(longitude)):
		raise InvalidSearchParameter("coordinates_out_of_range")
	if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
		raise InvalidSearchParameter("coordinates_out_of_range")
	return latitude, longitude


def normalize_search(query: schemas.MatchListQuery, *, now: datetime) -> models.SearchParams:
	"""Apply defaults and validate every filter before the store is queried."""

	sort = parse_sort(query.sort)
	size = _parse_int(query.size, "invalid_size")
	if size is None or size <= 0:
		size = settings.match_default_page_size
	window_from, window_to = resolve_window(query, now=now)
	game_type = parse_game_type(query.game_type)
	statuses = parse_statuses(query.status)
	latitude, longitude = resolve_reference_point(
		sort,
		_parse_float(query.latitude, "invalid_coordinates"),
		_parse_float(query.longitude, "invalid_coordinates"),
	)
	radius = _parse_int(query.radius, "invalid_radius")
	if radius is None or radius <= 0:
		radius = settings.match_default_radius_km
	cursor = query.cursor.strip() if query.cursor and query.cursor.strip() else None
	return models.SearchParams(
		sort=sort,
		window_from=window_from,
		window_to=window_to,
		game_type=game_type,
		statuses=statuses,
		latitude=latitude,
		longitude=longitude,
		radius_km=radius,
		size=size,
		cursor=cursor,
	)

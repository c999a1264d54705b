"""Opaque keyset cursors for match search.

Each sort mode has its own cursor shape. The sort tag travels inside the
token so a cursor can only be replayed under the sort that issued it.
"""

from __future__ import annotations

import base64
import json
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ClassVar, Union

from matchpoint.domain.matches.models import MatchWithMetrics, SortMode
from matchpoint.domain.matches.policy import InvalidSearchParameter


@dataclass(frozen=True, slots=True)
class CreatedAtCursor:
	created_at: datetime
	id: int
	sort: ClassVar[SortMode] = SortMode.CREATED_AT

	def position(self) -> tuple[datetime, int]:
		return (self.created_at, self.id)


@dataclass(frozen=True, slots=True)
class LatestCursor:
	match_start: datetime
	id: int
	sort: ClassVar[SortMode] = SortMode.LATEST

	def position(self) -> tuple[datetime, int]:
		return (self.match_start, self.id)


@dataclass(frozen=True, slots=True)
class DistanceCursor:
	distance: float
	id: int
	sort: ClassVar[SortMode] = SortMode.DISTANCE

	def position(self) -> tuple[float, int]:
		return (self.distance, self.id)


@dataclass(frozen=True, slots=True)
class RecommendCursor:
	score: float
	id: int
	sort: ClassVar[SortMode] = SortMode.RECOMMEND

	def position(self) -> tuple[float, int]:
		return (self.score, self.id)


Cursor = Union[CreatedAtCursor, LatestCursor, DistanceCursor, RecommendCursor]


def sort_key(item: MatchWithMetrics, sort: SortMode) -> tuple[Any, int]:
	"""Primary key for the sort mode, with the match id as tie-break."""

	match = item.match
	if sort is SortMode.LATEST:
		return (match.match_start, match.id)
	if sort is SortMode.DISTANCE:
		return (item.distance_km, match.id)
	if sort is SortMode.RECOMMEND:
		return (item.score, match.id)
	return (match.created_at, match.id)


def cursor_for(item: MatchWithMetrics, sort: SortMode) -> Cursor:
	"""Build the cursor pointing at ``item`` under ``sort``."""

	match = item.match
	if sort is SortMode.LATEST:
		return LatestCursor(match_start=match.match_start, id=match.id)
	if sort is SortMode.DISTANCE:
		return DistanceCursor(distance=item.distance_km, id=match.id)
	if sort is SortMode.RECOMMEND:
		return RecommendCursor(score=item.score, id=match.id)
	return CreatedAtCursor(created_at=match.created_at, id=match.id)


def encode_cursor(cursor: Cursor) -> str:
	payload: dict[str, Any] = {"sort": cursor.sort.value}
	if isinstance(cursor, CreatedAtCursor):
		payload["createdAt"] = cursor.created_at.isoformat()
	elif isinstance(cursor, LatestCursor):
		payload["matchStartDateTime"] = cursor.match_start.isoformat()
	elif isinstance(cursor, DistanceCursor):
		payload["distance"] = cursor.distance
	else:
		payload["score"] = cursor.score
	payload["id"] = cursor.id
	blob = json.dumps(payload, separators=(",", ":"))
	return base64.urlsafe_b64encode(blob.encode("utf-8")).decode("ascii")


def _as_id(value: Any) -> int:
	if isinstance(value, bool) or not isinstance(value, int):
		raise TypeError("cursor id must be an integer")
	return value


def _as_float(value: Any) -> float:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise TypeError("cursor key must be numeric")
	number = float(value)
	if not math.isfinite(number):
		raise ValueError("cursor key must be finite")
	return number


def _as_datetime(value: Any) -> datetime:
	if not isinstance(value, str):
		raise TypeError("cursor timestamp must be a string")
	parsed = datetime.fromisoformat(value)
	if parsed.tzinfo is not None:
		raise ValueError("cursor timestamp must be a local date-time")
	return parsed


_DECODERS: dict[SortMode, Callable[[dict[str, Any]], Cursor]] = {
	SortMode.CREATED_AT: lambda data: CreatedAtCursor(created_at=_as_datetime(data["createdAt"]), id=_as_id(data["id"])),
	SortMode.LATEST: lambda data: LatestCursor(match_start=_as_datetime(data["matchStartDateTime"]), id=_as_id(data["id"])),
	SortMode.DISTANCE: lambda data: DistanceCursor(distance=_as_float(data["distance"]), id=_as_id(data["id"])),
	SortMode.RECOMMEND: lambda data: RecommendCursor(score=_as_float(data["score"]), id=_as_id(data["id"])),
}


def decode_cursor(value: str, sort: SortMode) -> Cursor:
	"""Decode a token issued by :func:`encode_cursor` for the given sort."""

	try:
		decoded = base64.urlsafe_b64decode(value.encode("ascii")).decode("utf-8")
		data = json.loads(decoded)
		if not isinstance(data, dict):
			raise TypeError("cursor payload must be an object")
		cursor = _DECODERS[SortMode(data["sort"])](data)
	except (ValueError, KeyError, TypeError) as exc:
		raise InvalidSearchParameter("malformed_cursor") from exc
	if cursor.sort is not sort:
		raise InvalidSearchParameter("cursor_sort_mismatch")
	return cursor

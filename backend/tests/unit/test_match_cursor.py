import base64
import json
from datetime import datetime

import pytest

from matchpoint.domain.matches import cursor as cursors
from matchpoint.domain.matches import models
from matchpoint.domain.matches.policy import InvalidSearchParameter


def _token(payload) -> str:
	return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def _match(match_id: int) -> models.MatchCandidate:
	return models.MatchCandidate(
		id=match_id,
		host_id=1,
		court_id=1,
		court_latitude=37.5,
		court_longitude=127.0,
		match_start=datetime(2030, 3, 2, 18, 0),
		match_end=datetime(2030, 3, 2, 20, 0),
		created_at=datetime(2030, 2, 1, 12, 30, 15),
		game_type=models.GameType.SINGLES,
		status=models.MatchStatus.RECRUITING,
	)


def test_cursor_for_item_uses_sort_specific_key():
	item = models.MatchWithMetrics(match=_match(7), distance_km=2.5, score=0.41)
	assert cursors.cursor_for(item, models.SortMode.CREATED_AT) == cursors.CreatedAtCursor(
		created_at=datetime(2030, 2, 1, 12, 30, 15), id=7
	)
	assert cursors.cursor_for(item, models.SortMode.LATEST).position() == (datetime(2030, 3, 2, 18, 0), 7)
	assert cursors.cursor_for(item, models.SortMode.DISTANCE).position() == (2.5, 7)
	assert cursors.cursor_for(item, models.SortMode.RECOMMEND).position() == (0.41, 7)


def test_token_carries_sort_and_key_fields():
	token = cursors.encode_cursor(cursors.DistanceCursor(distance=3.25, id=12))
	payload = json.loads(base64.urlsafe_b64decode(token))
	assert payload == {"sort": "distance", "distance": 3.25, "id": 12}
	assert cursors.decode_cursor(token, models.SortMode.DISTANCE) == cursors.DistanceCursor(distance=3.25, id=12)


def test_created_at_cursor_survives_encoding():
	original = cursors.CreatedAtCursor(created_at=datetime(2030, 2, 1, 12, 30, 15, 250000), id=3)
	decoded = cursors.decode_cursor(cursors.encode_cursor(original), models.SortMode.CREATED_AT)
	assert decoded == original


@pytest.mark.parametrize(
	"token",
	[
		"not-a-cursor",
		_token(["distance", 1.0, 2]),
		_token({"sort": "distance", "distance": 1.0}),
		_token({"sort": "distance", "distance": "far", "id": 2}),
		_token({"sort": "distance", "distance": 1.0, "id": True}),
		_token({"sort": "distance", "distance": float("nan"), "id": 2}),
		_token({"sort": "popular", "id": 2}),
		_token({"sort": "createdAt", "createdAt": "2030-02-01T12:00:00+09:00", "id": 2}),
	],
)
def test_malformed_tokens_are_rejected(token):
	with pytest.raises(InvalidSearchParameter) as excinfo:
		cursors.decode_cursor(token, models.SortMode.DISTANCE)
	assert excinfo.value.reason == "malformed_cursor"


def test_well_formed_token_for_other_sort_is_rejected():
	token = cursors.encode_cursor(cursors.RecommendCursor(score=0.2, id=4))
	with pytest.raises(InvalidSearchParameter) as excinfo:
		cursors.decode_cursor(token, models.SortMode.DISTANCE)
	assert excinfo.value.reason == "cursor_sort_mismatch"

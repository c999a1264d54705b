import base64
import json
import math
from datetime import datetime, timedelta

import pytest

from matchpoint.domain.matches import cursor as cursors
from matchpoint.domain.matches import models, policy, ranking, schemas
from matchpoint.domain.matches.service import MatchListService
from matchpoint.domain.matches.store import seed_memory_store
from matchpoint.settings import settings

NOW = datetime(2030, 3, 1, 9, 0)
HOME_LAT = 37.5
HOME_LON = 127.0


def _lat_offset(distance_km: float) -> float:
	return distance_km / (ranking.EARTH_RADIUS_KM * math.pi / 180.0)


def make_match(
	match_id: int,
	*,
	distance_km: float = 1.0,
	starts_in: timedelta = timedelta(days=1),
	created_offset: timedelta = timedelta(0),
	game_type: models.GameType = models.GameType.SINGLES,
	status: models.MatchStatus = models.MatchStatus.RECRUITING,
) -> models.MatchCandidate:
	start = NOW + starts_in
	return models.MatchCandidate(
		id=match_id,
		host_id=100 + match_id,
		court_id=200 + match_id,
		court_latitude=HOME_LAT + _lat_offset(distance_km),
		court_longitude=HOME_LON,
		match_start=start,
		match_end=start + timedelta(hours=2),
		created_at=datetime(2030, 2, 1, 12, 0) + created_offset,
		game_type=game_type,
		status=status,
		fee=10000,
		ages=frozenset({models.Age.THIRTY, models.Age.TWENTY}),
		periods=frozenset({models.Period.TWO_YEARS}),
		player_count_men=1,
		player_count_women=1,
	)


class SpyStore:
	def __init__(self, matches=()):
		self.calls = 0
		self.matches = list(matches)

	async def find_matches_for_search(self, window_from, window_to, game_type, statuses):
		self.calls += 1
		return list(self.matches)

	async def get_match(self, match_id):
		return None


async def _collect_pages(service: MatchListService, **filters) -> list[list[int]]:
	pages: list[list[int]] = []
	cursor = None
	while True:
		response = await service.search(schemas.MatchListQuery(cursor=cursor, **filters), now=NOW)
		pages.append([item.match_id for item in response.matches])
		if not response.has_next:
			assert response.cursor is None
			return pages
		assert response.cursor
		cursor = response.cursor


@pytest.mark.asyncio
async def test_distance_sort_filters_radius_and_orders_nearest_first():
	await seed_memory_store(
		[
			make_match(1, distance_km=6.1),
			make_match(2, distance_km=1.2),
			make_match(3, distance_km=8.0),
			make_match(4, distance_km=4.9),
			make_match(5, distance_km=3.0),
		]
	)
	response = await MatchListService().search(
		schemas.MatchListQuery(sort="distance", latitude=HOME_LAT, longitude=HOME_LON, radius=5),
		now=NOW,
	)
	assert [item.match_id for item in response.matches] == [2, 5, 4]
	assert response.size == 3
	assert response.has_next is False
	assert response.cursor is None


@pytest.mark.asyncio
async def test_distance_sort_pages_two_at_a_time_within_radius():
	seeded = [
		make_match(1, distance_km=6.1),
		make_match(2, distance_km=1.2),
		make_match(3, distance_km=8.0),
		make_match(4, distance_km=4.9),
		make_match(5, distance_km=3.0),
	]
	await seed_memory_store(seeded)
	service = MatchListService()
	filters = {"sort": "distance", "latitude": HOME_LAT, "longitude": HOME_LON, "radius": 5, "size": 2}

	first = await service.search(schemas.MatchListQuery(**filters), now=NOW)
	assert [item.match_id for item in first.matches] == [2, 5]
	assert first.size == 2
	assert first.has_next is True
	expected_distance = ranking.haversine_km(HOME_LAT, HOME_LON, seeded[4].court_latitude, seeded[4].court_longitude)
	assert json.loads(base64.urlsafe_b64decode(first.cursor)) == {
		"sort": "distance",
		"distance": expected_distance,
		"id": 5,
	}
	assert expected_distance == pytest.approx(3.0)

	second = await service.search(schemas.MatchListQuery(cursor=first.cursor, **filters), now=NOW)
	assert [item.match_id for item in second.matches] == [4]
	assert second.has_next is False
	assert second.cursor is None


@pytest.mark.asyncio
async def test_default_search_returns_recruiting_matches_by_creation_time():
	await seed_memory_store(
		[
			make_match(1, created_offset=timedelta(hours=3)),
			make_match(2, created_offset=timedelta(hours=1)),
			make_match(3, created_offset=timedelta(hours=2), status=models.MatchStatus.COMPLETED),
			make_match(4, created_offset=timedelta(hours=1)),
		]
	)
	response = await MatchListService().search(schemas.MatchListQuery(), now=NOW)
	assert [item.match_id for item in response.matches] == [2, 4, 1]
	first = response.matches[0]
	assert first.status == "OPEN"
	assert first.age_range == ["TWENTY", "THIRTY"]
	assert first.period == ["TWO_YEARS"]
	assert first.start_date_time == "2030-03-02T09:00:00"
	assert first.created_at == "2030-02-01T13:00:00"


@pytest.mark.asyncio
async def test_completed_status_is_reported_as_closed():
	await seed_memory_store([make_match(1, status=models.MatchStatus.COMPLETED)])
	response = await MatchListService().search(schemas.MatchListQuery(status="completed"), now=NOW)
	assert [item.status for item in response.matches] == ["CLOSED"]


@pytest.mark.asyncio
async def test_game_type_filter_is_case_insensitive():
	await seed_memory_store(
		[
			make_match(1, game_type=models.GameType.SINGLES),
			make_match(2, game_type=models.GameType.MIXED_DOUBLES),
		]
	)
	response = await MatchListService().search(schemas.MatchListQuery(game_type="mixed_doubles"), now=NOW)
	assert [item.match_id for item in response.matches] == [2]


@pytest.mark.asyncio
async def test_invalid_game_type_is_rejected_before_store_query():
	store = SpyStore([make_match(1)])
	with pytest.raises(policy.InvalidSearchParameter) as excinfo:
		await MatchListService(store=store).search(schemas.MatchListQuery(game_type="QUADRUPLES"), now=NOW)
	assert excinfo.value.reason == "invalid_game_type"
	assert store.calls == 0


@pytest.mark.asyncio
async def test_distance_sort_requires_coordinates():
	store = SpyStore([make_match(1)])
	with pytest.raises(policy.InvalidSearchParameter) as excinfo:
		await MatchListService(store=store).search(schemas.MatchListQuery(sort="distance"), now=NOW)
	assert excinfo.value.reason == "missing_coordinates"
	assert store.calls == 0


@pytest.mark.asyncio
async def test_malformed_cursor_is_rejected_before_store_query():
	store = SpyStore([make_match(1)])
	with pytest.raises(policy.InvalidSearchParameter) as excinfo:
		await MatchListService(store=store).search(schemas.MatchListQuery(cursor="not-a-cursor"), now=NOW)
	assert excinfo.value.reason == "malformed_cursor"
	assert store.calls == 0


@pytest.mark.asyncio
async def test_last_hour_window_is_valid_and_equal_hours_are_rejected():
	await seed_memory_store(
		[
			make_match(1, starts_in=timedelta(days=1, hours=14, minutes=30)),
			make_match(2, starts_in=timedelta(days=1, hours=5)),
		]
	)
	service = MatchListService()
	query = schemas.MatchListQuery(start_date="2030-03-02", end_date="2030-03-02", start_time=23, end_time=24)
	response = await service.search(query, now=NOW)
	assert [item.match_id for item in response.matches] == [1]

	with pytest.raises(policy.InvalidSearchParameter) as excinfo:
		await service.search(schemas.MatchListQuery(start_time=10, end_time=10), now=NOW)
	assert excinfo.value.reason == "invalid_hour_range"


@pytest.mark.asyncio
async def test_zero_longitude_is_a_real_coordinate():
	match = make_match(1)
	match.court_latitude = 0.0
	match.court_longitude = 0.01
	await seed_memory_store([match])
	response = await MatchListService().search(
		schemas.MatchListQuery(sort="distance", latitude=0.0, longitude=0.0, radius=5),
		now=NOW,
	)
	assert [item.match_id for item in response.matches] == [1]


@pytest.mark.asyncio
async def test_past_start_dates_are_clamped_to_now():
	await seed_memory_store(
		[
			make_match(1, starts_in=timedelta(hours=-1)),
			make_match(2, starts_in=timedelta(0)),
			make_match(3, starts_in=timedelta(minutes=1)),
		]
	)
	response = await MatchListService().search(schemas.MatchListQuery(start_date="2029-01-01"), now=NOW)
	assert [item.match_id for item in response.matches] == [3]


@pytest.mark.asyncio
async def test_recommend_sort_prefers_soon_and_near():
	await seed_memory_store(
		[
			make_match(1, distance_km=1.0, starts_in=timedelta(days=2)),
			make_match(2, distance_km=1.2, starts_in=timedelta(hours=1)),
			make_match(3, distance_km=20.0, starts_in=timedelta(hours=2)),
		]
	)
	response = await MatchListService().search(
		schemas.MatchListQuery(sort="recommend", latitude=HOME_LAT, longitude=HOME_LON),
		now=NOW,
	)
	assert [item.match_id for item in response.matches] == [2, 3, 1]


@pytest.mark.asyncio
@pytest.mark.parametrize("sort", ["createdAt", "latest", "distance", "recommend"])
async def test_cursor_walk_visits_every_match_once(sort):
	await seed_memory_store(
		[
			make_match(
				match_id,
				distance_km=1.0 + (match_id % 3),
				starts_in=timedelta(hours=match_id % 4 + 1),
				created_offset=timedelta(minutes=match_id % 2),
			)
			for match_id in range(1, 8)
		]
	)
	service = MatchListService()
	filters = {"sort": sort, "latitude": HOME_LAT, "longitude": HOME_LON}
	full = await service.search(schemas.MatchListQuery(size=50, **filters), now=NOW)
	pages = await _collect_pages(service, size=3, **filters)

	assert [len(page) for page in pages] == [3, 3, 1]
	walked = [match_id for page in pages for match_id in page]
	assert walked == [item.match_id for item in full.matches]
	assert sorted(walked) == list(range(1, 8))


@pytest.mark.asyncio
async def test_repeated_search_returns_identical_pages():
	await seed_memory_store([make_match(match_id, distance_km=match_id) for match_id in range(1, 5)])
	service = MatchListService()
	query = schemas.MatchListQuery(sort="distance", latitude=HOME_LAT, longitude=HOME_LON, size=2)
	first = await service.search(query, now=NOW)
	second = await service.search(query, now=NOW)
	assert first == second
	assert first.has_next is True


@pytest.mark.asyncio
async def test_cursor_from_other_sort_is_rejected():
	await seed_memory_store([make_match(match_id) for match_id in range(1, 4)])
	service = MatchListService()
	page = await service.search(
		schemas.MatchListQuery(sort="latest", latitude=HOME_LAT, longitude=HOME_LON, size=1),
		now=NOW,
	)
	with pytest.raises(policy.InvalidSearchParameter) as excinfo:
		await service.search(schemas.MatchListQuery(sort="createdAt", cursor=page.cursor), now=NOW)
	assert excinfo.value.reason == "cursor_sort_mismatch"


@pytest.mark.asyncio
async def test_exhausted_cursor_returns_empty_page():
	await seed_memory_store([make_match(1), make_match(2)])
	token = cursors.encode_cursor(cursors.CreatedAtCursor(created_at=datetime(2031, 1, 1), id=99))
	response = await MatchListService().search(schemas.MatchListQuery(cursor=token), now=NOW)
	assert response.matches == []
	assert response.size == 0
	assert response.has_next is False
	assert response.cursor is None


@pytest.mark.asyncio
async def test_exhausted_cursor_restarts_when_enabled():
	settings.match_cursor_exhausted_restart = True
	await seed_memory_store([make_match(1), make_match(2)])
	token = cursors.encode_cursor(cursors.CreatedAtCursor(created_at=datetime(2031, 1, 1), id=99))
	response = await MatchListService().search(schemas.MatchListQuery(cursor=token), now=NOW)
	assert [item.match_id for item in response.matches] == [1, 2]


@pytest.mark.asyncio
async def test_missing_coordinates_fall_back_to_default_point():
	match = make_match(1)
	match.court_latitude = settings.match_default_latitude
	match.court_longitude = settings.match_default_longitude
	await seed_memory_store([match, make_match(2, distance_km=100.0)])
	response = await MatchListService().search(schemas.MatchListQuery(sort="latest"), now=NOW)
	assert [item.match_id for item in response.matches] == [1]

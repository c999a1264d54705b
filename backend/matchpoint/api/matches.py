"""REST endpoints for match list search and match detail."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from matchpoint.domain.matches import policy, schemas
from matchpoint.domain.matches.service import MatchDetailService, MatchListService

router = APIRouter(prefix="/api/v1/matches", tags=["matches"])

_list_service = MatchListService()
_detail_service = MatchDetailService()


def _client_key(request: Request) -> str:
	return request.client.host if request.client else "anonymous"


@router.get("", response_model=schemas.MatchListResponse)
async def list_matches_endpoint(
	request: Request,
	sort: Optional[str] = Query(default=None),
	start_date: Optional[str] = Query(default=None, alias="startDate"),
	end_date: Optional[str] = Query(default=None, alias="endDate"),
	start_time: Optional[str] = Query(default=None, alias="startTime"),
	end_time: Optional[str] = Query(default=None, alias="endTime"),
	game_type: Optional[str] = Query(default=None, alias="gameType"),
	status: Optional[str] = Query(default=None),
	latitude: Optional[str] = Query(default=None),
	longitude: Optional[str] = Query(default=None),
	radius: Optional[str] = Query(default=None),
	size: Optional[str] = Query(default=None),
	cursor: Optional[str] = Query(default=None),
) -> schemas.MatchListResponse:
	await policy.enforce_rate_limit(_client_key(request), kind="matches")
	query = schemas.MatchListQuery(
		sort=sort,
		start_date=start_date,
		end_date=end_date,
		start_time=start_time,
		end_time=end_time,
		game_type=game_type,
		status=status,
		latitude=latitude,
		longitude=longitude,
		radius=radius,
		size=size,
		cursor=cursor,
	)
	return await _list_service.search(query)


@router.get("/{match_id}", response_model=schemas.MatchDetail)
async def match_detail_endpoint(match_id: int) -> schemas.MatchDetail:
	return await _detail_service.get(match_id)

"""REST endpoints for tennis court lookup and keyword search."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from matchpoint.domain.courts import schemas
from matchpoint.domain.courts.service import CourtService
from matchpoint.domain.matches import policy

router = APIRouter(prefix="/api/v1/tennis-courts", tags=["courts"])

_service = CourtService()


@router.get("/search", response_model=schemas.CourtSearchResponse)
async def search_courts_endpoint(
	request: Request,
	keyword: str = Query(..., max_length=100),
	cursor: Optional[int] = Query(default=None, ge=0),
	size: int = Query(default=10, ge=1, le=50),
) -> schemas.CourtSearchResponse:
	actor = request.client.host if request.client else "anonymous"
	await policy.enforce_rate_limit(actor, kind="courts")
	return await _service.search(keyword, cursor=cursor, size=size)


@router.get("/{court_id}", response_model=schemas.CourtResult)
async def court_detail_endpoint(court_id: int) -> schemas.CourtResult:
	return await _service.get(court_id)

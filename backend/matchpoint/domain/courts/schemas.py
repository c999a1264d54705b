"""Pydantic schemas for the court APIs."""

from __future__ import annotations

from typing import Optional

from matchpoint.domain.matches.schemas import CamelModel


class CourtResult(CamelModel):
	court_id: int
	name: str
	address: str
	latitude: float
	longitude: float
	thumbnail: Optional[str] = None


class CourtSearchResponse(CamelModel):
	courts: list[CourtResult]
	has_next: bool
	cursor: Optional[int] = None
	size: int

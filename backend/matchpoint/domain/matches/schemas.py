"""Pydantic schemas for the match APIs."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchListQuery(BaseModel):
	"""Raw match list filters exactly as the caller supplied them.

	Numeric filters stay strings here so the search policy owns every parse failure.
	"""

	model_config = ConfigDict(coerce_numbers_to_str=True)

	sort: Optional[str] = None
	start_date: Optional[str] = Field(default=None, description="YYYY-MM-DD, defaults to today")
	end_date: Optional[str] = Field(default=None, description="YYYY-MM-DD, defaults to no upper bound")
	start_time: Optional[str] = Field(default=None, description="Hour 0..23")
	end_time: Optional[str] = Field(default=None, description="Hour 1..24")
	game_type: Optional[str] = None
	status: Optional[str] = Field(default=None, description="Comma-separated statuses")
	latitude: Optional[str] = None
	longitude: Optional[str] = None
	radius: Optional[str] = Field(default=None, description="Radius in kilometers")
	size: Optional[str] = None
	cursor: Optional[str] = Field(default=None, description="Opaque cursor for pagination")


class MatchSummary(CamelModel):
	match_id: int
	host_id: int
	start_date_time: str
	end_date_time: str
	game_type: str
	court_id: int
	period: list[str]
	player_count_men: int
	player_count_women: int
	age_range: list[str]
	fee: int
	status: str
	created_at: str


class MatchDetail(MatchSummary):
	description: Optional[str] = None
	updated_at: Optional[str] = None


class MatchListResponse(CamelModel):
	matches: list[MatchSummary]
	size: int
	has_next: bool
	cursor: Optional[str] = None

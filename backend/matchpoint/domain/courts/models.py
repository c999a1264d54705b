"""Domain models for tennis courts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class Court:
	id: int
	name: str
	location: str
	latitude: float
	longitude: float
	img_url: Optional[str] = None

	def matches_keyword(self, keyword: str) -> bool:
		lowered = keyword.lower()
		return lowered in self.name.lower() or lowered in self.location.lower()

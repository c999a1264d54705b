"""Distance and recommendation scoring for match search."""

from __future__ import annotations

import math
from datetime import datetime

EARTH_RADIUS_KM = 6371.0
# Normalizers for the recommend sort; the distance one is fixed and ignores the request radius.
TIME_SCORE_HORIZON_MINUTES = 1440.0
DISTANCE_SCORE_HORIZON_KM = 25.0
TIME_WEIGHT = 0.7
DISTANCE_WEIGHT = 0.3


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""Return the great-circle distance between two points in kilometers."""

	phi1, phi2 = math.radians(lat1), math.radians(lat2)
	dphi = math.radians(lat2 - lat1)
	dlambda = math.radians(lon2 - lon1)
	a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def minutes_until(start: datetime, now: datetime) -> int:
	"""Whole minutes from now until start, never negative."""

	return max(0, int((start - now).total_seconds() // 60))


def recommendation_score(distance_km: float, start: datetime, now: datetime) -> float:
	"""Blend time-until-start and distance into a 0..1 score (lower ranks first)."""

	time_score = min(minutes_until(start, now) / TIME_SCORE_HORIZON_MINUTES, 1.0)
	distance_score = min(distance_km / DISTANCE_SCORE_HORIZON_KM, 1.0)
	return TIME_WEIGHT * time_score + DISTANCE_WEIGHT * distance_score

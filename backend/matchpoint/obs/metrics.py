"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary

REQUEST_COUNTER = Counter(
	"matchpoint_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"matchpoint_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

REDIS_UP = Gauge("matchpoint_redis_up", "Redis availability (1=up,0=down)")
REDIS_LATENCY = Summary("matchpoint_redis_latency_seconds", "Redis ping latency (seconds)")

POSTGRES_UP = Gauge("matchpoint_postgres_up", "Postgres availability (1=up,0=down)")
POSTGRES_LATENCY = Summary("matchpoint_postgres_latency_seconds", "Postgres ping latency (seconds)")

MATCH_SEARCH_QUERIES = Counter(
	"matchpoint_match_search_queries_total",
	"Match list searches executed",
	["sort"],
)

MATCH_SEARCH_LATENCY = Histogram(
	"matchpoint_match_search_latency_seconds",
	"Match list search latency in seconds",
	["sort"],
	buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0),
)

MATCH_SEARCH_CANDIDATES = Histogram(
	"matchpoint_match_search_candidates",
	"Candidates returned by the store before radius filtering",
	buckets=(0, 10, 50, 100, 250, 500, 1000, 5000),
)

MATCH_SEARCH_REJECTS = Counter(
	"matchpoint_match_search_rejects_total",
	"Match searches rejected during parameter validation",
	["reason"],
)

COURT_SEARCH_QUERIES = Counter(
	"matchpoint_court_search_queries_total",
	"Court keyword searches executed",
)

SEARCH_RATE_LIMITED = Counter(
	"matchpoint_search_rate_limited_total",
	"Search requests refused by the per-client budget",
	["kind"],
)


def observe_request(route: str, method: str, status: int, latency_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(latency_seconds)


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)


def inc_match_search(sort: str) -> None:
	MATCH_SEARCH_QUERIES.labels(sort=sort).inc()


def observe_match_search_latency(sort: str, latency_seconds: float) -> None:
	MATCH_SEARCH_LATENCY.labels(sort=sort).observe(latency_seconds)


def observe_match_candidates(count: int) -> None:
	MATCH_SEARCH_CANDIDATES.observe(count)


def inc_match_search_reject(reason: str) -> None:
	MATCH_SEARCH_REJECTS.labels(reason=reason).inc()


def inc_court_search() -> None:
	COURT_SEARCH_QUERIES.inc()


def inc_rate_limited(kind: str) -> None:
	SEARCH_RATE_LIMITED.labels(kind=kind).inc()

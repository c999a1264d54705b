import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from matchpoint.domain import courts, matches
from matchpoint.infra import postgres
from matchpoint.main import app
from matchpoint.settings import settings


# Ensure a selector-based event loop policy on Windows to avoid Proactor issues with async IO
if hasattr(asyncio, "WindowsSelectorEventLoopPolicy"):
	asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from matchpoint.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Run every test against the in-memory stores with library defaults."""
	original_env = settings.environment
	original_backend = settings.match_store_backend
	original_restart = settings.match_cursor_exhausted_restart
	original_limit = settings.search_rate_limit_per_minute
	settings.environment = "dev"
	settings.match_store_backend = "memory"
	settings.match_cursor_exhausted_restart = False
	settings.search_rate_limit_per_minute = 120
	try:
		yield
	finally:
		settings.environment = original_env
		settings.match_store_backend = original_backend
		settings.match_cursor_exhausted_restart = original_restart
		settings.search_rate_limit_per_minute = original_limit


@pytest_asyncio.fixture(autouse=True)
async def clear_memory_state():
	await matches.reset_memory_state()
	await courts.reset_memory_state()
	yield
	await matches.reset_memory_state()
	await courts.reset_memory_state()


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client

import pytest

from matchpoint.infra import rate_limit


@pytest.mark.asyncio
async def test_hits_within_budget_are_not_exceeded():
	first = await rate_limit.hit("matches", "10.0.0.5", limit=2, now=1_200.0)
	second = await rate_limit.hit("matches", "10.0.0.5", limit=2, now=1_210.0)
	assert (first.count, second.count) == (1, 2)
	assert not second.exceeded


@pytest.mark.asyncio
async def test_budget_is_exceeded_and_reports_retry_after():
	await rate_limit.hit("courts", "10.0.0.6", limit=1, now=1_200.0)
	window = await rate_limit.hit("courts", "10.0.0.6", limit=1, now=1_230.0)
	assert window.exceeded
	assert window.retry_after == 30


@pytest.mark.asyncio
async def test_window_rolls_over_and_keys_are_per_kind(fake_redis):
	await rate_limit.hit("matches", "10.0.0.7", limit=1, now=1_200.0)
	assert (await rate_limit.hit("matches", "10.0.0.7", limit=1, now=1_260.0)).count == 1
	assert (await rate_limit.hit("courts", "10.0.0.7", limit=1, now=1_260.0)).count == 1

	key = rate_limit.window_key("matches", "10.0.0.7", 1_260, 60)
	assert key == "matchpoint:rl:matches:60:1260:10.0.0.7"
	assert 0 < await fake_redis.ttl(key) <= 60

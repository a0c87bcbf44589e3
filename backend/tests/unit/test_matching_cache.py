import json

import pytest

from campuslink.domain.matching import cache


class ManualClock:
	def __init__(self):
		self.now = 0.0

	def __call__(self):
		return self.now


def test_cache_keys():
	assert cache.friend_key("u1", 20) == "friend_recs:u1:20"
	assert cache.project_key("u1", 10) == "project_recs:u1:10"
	assert cache.project_matches_key("p1", 10) == "project_matches:p1:10"
	assert cache.team_key("u1", 5) == "team_recs:u1:5"


@pytest.mark.asyncio
async def test_null_cache_never_hits():
	null = cache.NullCache()
	await null.set("k", [1], 60)
	assert await null.get("k") is None
	await null.delete("k")


@pytest.mark.asyncio
async def test_in_memory_cache_expires_on_injected_clock():
	clock = ManualClock()
	memory = cache.InMemoryTTLCache(clock=clock)
	await memory.set("k", {"v": 1}, 10)

	clock.now = 9.9
	assert await memory.get("k") == {"v": 1}
	clock.now = 10.0
	assert await memory.get("k") is None
	assert len(memory) == 0


@pytest.mark.asyncio
async def test_in_memory_cache_last_writer_wins_and_delete():
	memory = cache.InMemoryTTLCache()
	await memory.set("k", 1, 60)
	await memory.set("k", 2, 60)
	assert await memory.get("k") == 2
	await memory.delete("k")
	assert await memory.get("k") is None


@pytest.mark.asyncio
async def test_in_memory_cache_bounded():
	clock = ManualClock()
	memory = cache.InMemoryTTLCache(clock=clock, max_entries=2)
	await memory.set("a", 1, 10)
	await memory.set("b", 2, 20)
	await memory.set("c", 3, 30)
	assert len(memory) == 2
	assert await memory.get("a") is None
	assert await memory.get("c") == 3


@pytest.mark.asyncio
async def test_in_memory_cache_non_positive_ttl_is_not_stored():
	memory = cache.InMemoryTTLCache()
	await memory.set("k", 1, 0)
	assert await memory.get("k") is None


@pytest.mark.asyncio
async def test_redis_cache_stores_json_with_expiry(fake_redis):
	redis_cache = cache.RedisRecommendationCache(namespace="t:")
	await redis_cache.set("k", [{"id": "a"}], 120)

	assert json.loads(await fake_redis.get("t:k")) == [{"id": "a"}]
	assert 0 < await fake_redis.ttl("t:k") <= 120
	assert await redis_cache.get("k") == [{"id": "a"}]

	await redis_cache.delete("k")
	assert await redis_cache.get("k") is None


@pytest.mark.asyncio
async def test_redis_cache_ignores_garbage(fake_redis):
	await fake_redis.set("recs:bad", "{not json")
	assert await cache.RedisRecommendationCache().get("bad") is None

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from campuslink.domain.matching import InMemoryDirectory, Profile
from campuslink.infra import postgres
from campuslink.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from campuslink.infra.redis import redis_client, set_redis_client
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
	yield
	postgres.set_pool(None)


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
	"""Pin the tunable thresholds so a developer's .env cannot change outcomes."""
	monkeypatch.setattr(settings, "recs_min_composite", 0.10)
	monkeypatch.setattr(settings, "recs_min_individual", 0.05)
	monkeypatch.setattr(settings, "recs_friend_limit", 20)
	monkeypatch.setattr(settings, "recs_project_limit", 10)
	monkeypatch.setattr(settings, "recs_team_limit", 10)
	monkeypatch.setattr(settings, "recs_project_min_overall", 0.0)
	monkeypatch.setattr(settings, "recs_project_min_skill", 0.0)
	monkeypatch.setattr(settings, "recs_neutral_feedback", 0.5)
	monkeypatch.setattr(settings, "recs_cache_ttl_seconds", 3600)
	monkeypatch.setattr(settings, "recs_cache_namespace", "recs:")


@pytest.fixture
def friend_graph() -> InMemoryDirectory:
	"""A has friends B and C; B knows D; C knows D and E.

	D shares two of five distinct skills with A, E shares none.
	"""
	directory = InMemoryDirectory()
	directory.add_user(Profile(id="A", display_name="Ada", university="Tech University", department="CS", skills=("python", "sql", "react")))
	directory.add_user(Profile(id="B", display_name="Ben", university="Tech University", department="CS", skills=("java",)))
	directory.add_user(Profile(id="C", display_name="Cy", university="Tech University", department="Design", skills=("figma",)))
	directory.add_user(Profile(id="D", display_name="Dee", university="Tech University", department="CS", skills=("Python", "SQL", "docker", "go")))
	directory.add_user(Profile(id="E", display_name="Eve", university="Tech University", department="Business", skills=("marketing",)))
	directory.connect("A", "B")
	directory.connect("A", "C")
	directory.connect("B", "D")
	directory.connect("C", "D")
	directory.connect("C", "E")
	return directory

from unittest.mock import AsyncMock, MagicMock

import pytest

from campuslink.domain.matching.models import FriendshipStatus, ProjectStatus
from campuslink.domain.matching.providers import CandidateFilter
from campuslink.infra.directory import PostgresDirectory


def _pool_with(conn):
	pool = MagicMock()
	pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
	pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)
	return pool


@pytest.fixture
def conn():
	return AsyncMock()


@pytest.fixture
def directory(conn):
	return PostgresDirectory(_pool_with(conn))


@pytest.mark.asyncio
async def test_get_profile_normalizes_row(conn, directory):
	conn.fetchrow.return_value = {
		"id": "u1",
		"display_name": "Ada",
		"university": "Tech University",
		"department": "",
		"skills": '["Python", "python", "SQL"]',
		"interests": ["AI"],
		"friend_ids": ["u2", "u3"],
	}
	profile = await directory.get_profile("u1")

	assert profile.skills == ("Python", "SQL")
	assert profile.department is None
	assert profile.friend_ids == frozenset({"u2", "u3"})
	assert conn.fetchrow.await_args.args[1] == "u1"


@pytest.mark.asyncio
async def test_missing_profile_is_none(conn, directory):
	conn.fetchrow.return_value = None
	assert await directory.get_profile("ghost") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"rows, expected",
	[
		([], FriendshipStatus.NONE),
		([{"user_id": "a", "friend_id": "b", "status": "pending"}], FriendshipStatus.PENDING_SENT),
		([{"user_id": "b", "friend_id": "a", "status": "pending"}], FriendshipStatus.PENDING_RECEIVED),
		(
			[
				{"user_id": "a", "friend_id": "b", "status": "accepted"},
				{"user_id": "b", "friend_id": "a", "status": "accepted"},
			],
			FriendshipStatus.ACCEPTED,
		),
		(
			[
				{"user_id": "a", "friend_id": "b", "status": "pending"},
				{"user_id": "b", "friend_id": "a", "status": "blocked"},
			],
			FriendshipStatus.BLOCKED,
		),
		([{"user_id": "a", "friend_id": "b", "status": "mystery"}], FriendshipStatus.NONE),
	],
)
async def test_friend_request_status_from_edges(conn, directory, rows, expected):
	conn.fetch.return_value = rows
	assert await directory.get_friend_request_status("a", "b") is expected


@pytest.mark.asyncio
async def test_friend_degree(conn, directory):
	conn.fetchval.return_value = 7
	assert await directory.get_friend_degree("u1") == 7
	conn.fetchval.return_value = None
	assert await directory.get_friend_degree("u1") == 0


@pytest.mark.asyncio
async def test_user_candidate_pool_passes_filter(conn, directory):
	conn.fetch.return_value = [{"id": "u9", "skills": ["go"], "friend_ids": []}]
	pool = await directory.get_candidate_pool(
		CandidateFilter(university="Tech University", exclude_ids=frozenset({"z", "a"}), limit=50)
	)

	assert [p.id for p in pool] == ["u9"]
	assert conn.fetch.await_args.args[1:] == ("Tech University", ["a", "z"], 50)


@pytest.mark.asyncio
async def test_project_candidate_pool(conn, directory):
	conn.fetch.return_value = [
		{
			"id": "p1",
			"title": "Marketplace",
			"university": None,
			"category": "web-development",
			"required_skills": ["python"],
			"preferred_interests": None,
			"creator_id": "owner",
			"max_members": 4,
			"status": "recruiting",
			"current_member_ids": ["owner"],
		}
	]
	projects = await directory.get_candidate_pool(CandidateFilter(kind="projects", status=ProjectStatus.RECRUITING))

	assert projects[0].id == "p1"
	assert projects[0].open_slots == 3
	assert conn.fetch.await_args.args[1] == "recruiting"


@pytest.mark.asyncio
async def test_get_project(conn, directory):
	conn.fetchrow.return_value = {"id": "p1", "status": "in_progress", "current_member_ids": []}
	project = await directory.get_project("p1")
	assert project.status is ProjectStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_feedback_score_aggregates_rows(conn, directory):
	conn.fetch.return_value = [
		{"technical": 5, "communication": 5, "teamwork": 5, "reliability": 5},
		{"technical": 3, "communication": 3, "teamwork": 3, "reliability": 3},
	]
	assert await directory.get_feedback_score("u1") == pytest.approx(0.75)
	conn.fetch.return_value = []
	assert await directory.get_feedback_score("u1") == 0.5


@pytest.mark.asyncio
async def test_candidate_pool_skips_rows_that_fail_validation(conn, directory):
	conn.fetch.return_value = [
		{"id": "ok", "status": "recruiting", "max_members": 4, "current_member_ids": []},
		{"id": "zero", "status": "recruiting", "max_members": 0, "current_member_ids": []},
		{"id": "odd", "status": "archived", "current_member_ids": []},
	]
	projects = await directory.get_candidate_pool(CandidateFilter(kind="projects"))
	assert [p.id for p in projects] == ["ok"]


@pytest.mark.asyncio
async def test_candidate_pool_university_filter_is_case_insensitive(conn, directory):
	conn.fetch.return_value = []
	await directory.get_candidate_pool(CandidateFilter(university="Tech University"))
	assert "lower(btrim(u.university)) = lower(btrim($1))" in conn.fetch.await_args.args[0]

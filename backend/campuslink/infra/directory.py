"""asyncpg-backed collaborator for the recommenders.

Reads only. Schema assumptions:

- ``users(id, display_name, handle, university, department, skills, interests, deleted_at)``
  with ``skills``/``interests`` as ``text[]`` or JSON text.
- ``friendships(user_id, friend_id, status, created_at)``; accepted rows exist in
  both directions, a pending row is stored once with ``user_id`` = requester.
- ``projects(id, title, university, category, required_skills, preferred_interests,
  creator_id, max_members, status, created_at)`` and ``project_members(project_id, user_id)``.
- ``project_feedback(to_user_id, technical, communication, teamwork, reliability)``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

import asyncpg
from pydantic import ValidationError

from campuslink.domain.matching.adapters import profile_from_payload, project_from_payload
from campuslink.domain.matching.feedback import aggregate_feedback_score
from campuslink.domain.matching.models import (
	NEUTRAL_FEEDBACK_SCORE,
	EdgeStatus,
	FriendEdge,
	FriendshipStatus,
	Profile,
	Project,
)
from campuslink.domain.matching.providers import CandidateFilter
from campuslink.infra.postgres import get_pool
from campuslink.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PROFILE_COLUMNS = """
	u.id::text AS id,
	COALESCE(u.display_name, u.handle, '') AS display_name,
	u.university,
	u.department,
	u.skills,
	u.interests,
	ARRAY(
		SELECT fx.friend_id::text FROM friendships fx
		WHERE fx.user_id = u.id AND fx.status = 'accepted'
	) AS friend_ids
"""

_PROJECT_COLUMNS = """
	p.id::text AS id,
	p.title,
	p.university,
	p.category,
	p.required_skills,
	p.preferred_interests,
	p.creator_id::text AS creator_id,
	p.max_members,
	p.status,
	ARRAY(
		SELECT m.user_id::text FROM project_members m WHERE m.project_id = p.id
	) AS current_member_ids
"""


def _profile(record: asyncpg.Record) -> Profile:
	return profile_from_payload(dict(record))


def _project(record: asyncpg.Record) -> Project:
	return project_from_payload(dict(record))


def _valid_rows(rows: Sequence[asyncpg.Record], build: Callable[[asyncpg.Record], T]) -> list[T]:
	"""Build every row that validates; malformed rows are logged and skipped."""
	built: list[T] = []
	for row in rows:
		try:
			built.append(build(row))
		except ValidationError:
			logger.warning("skipping malformed candidate row", extra={"row_id": dict(row).get("id")}, exc_info=True)
			obs_metrics.inc_lookup_failure("pool")
	return built


class PostgresDirectory:
	"""Implements the friend-graph, candidate-pool and feedback protocols."""

	def __init__(self, pool: Optional[asyncpg.Pool] = None) -> None:
		self._pool = pool

	async def _get_pool(self) -> asyncpg.Pool:
		if self._pool is None:
			self._pool = await get_pool()
		return self._pool

	async def get_profile(self, user_id: str) -> Optional[Profile]:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				SELECT {_PROFILE_COLUMNS}
				FROM users u
				WHERE u.id::text = $1 AND u.deleted_at IS NULL
				""",
				str(user_id),
			)
		return _profile(row) if row else None

	async def get_accepted_friends(self, user_id: str) -> list[Profile]:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_PROFILE_COLUMNS}
				FROM friendships f
				JOIN users u ON u.id = f.friend_id
				WHERE f.user_id::text = $1 AND f.status = 'accepted' AND u.deleted_at IS NULL
				ORDER BY f.created_at ASC
				""",
				str(user_id),
			)
		return [_profile(row) for row in rows]

	async def get_friend_request_status(self, user_a: str, user_b: str) -> FriendshipStatus:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT user_id::text AS user_id, friend_id::text AS friend_id, status
				FROM friendships
				WHERE (user_id::text = $1 AND friend_id::text = $2)
				   OR (user_id::text = $2 AND friend_id::text = $1)
				""",
				str(user_a),
				str(user_b),
			)
		statuses = []
		for row in rows:
			try:
				edge_status = EdgeStatus(row["status"])
			except ValueError:
				logger.warning("unknown friendship status %s", row["status"])
				continue
			edge = FriendEdge(requester_id=row["user_id"], recipient_id=row["friend_id"], status=edge_status)
			statuses.append(edge.status_for(str(user_a)))
		for status in (FriendshipStatus.BLOCKED, FriendshipStatus.ACCEPTED, FriendshipStatus.PENDING_RECEIVED, FriendshipStatus.PENDING_SENT):
			if status in statuses:
				return status
		return FriendshipStatus.NONE

	async def get_friend_degree(self, user_id: str) -> int:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			degree = await conn.fetchval(
				"SELECT COUNT(*) FROM friendships WHERE user_id::text = $1 AND status = 'accepted'",
				str(user_id),
			)
		return int(degree or 0)

	async def get_candidate_pool(self, candidate_filter: CandidateFilter) -> Sequence[Union[Profile, Project]]:
		excluded = sorted(candidate_filter.exclude_ids)
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			if candidate_filter.kind == "projects":
				rows = await conn.fetch(
					f"""
					SELECT {_PROJECT_COLUMNS}
					FROM projects p
					WHERE ($1::text IS NULL OR p.status = $1)
					  AND ($2::text IS NULL OR lower(btrim(p.university)) = lower(btrim($2)))
					  AND NOT (p.id::text = ANY($3::text[]))
					ORDER BY p.created_at DESC
					LIMIT $4
					""",
					candidate_filter.status.value if candidate_filter.status else None,
					candidate_filter.university,
					excluded,
					candidate_filter.limit,
				)
				return _valid_rows(rows, _project)
			rows = await conn.fetch(
				f"""
				SELECT {_PROFILE_COLUMNS}
				FROM users u
				WHERE u.deleted_at IS NULL
				  AND ($1::text IS NULL OR lower(btrim(u.university)) = lower(btrim($1)))
				  AND NOT (u.id::text = ANY($2::text[]))
				ORDER BY u.created_at DESC
				LIMIT $3
				""",
				candidate_filter.university,
				excluded,
				candidate_filter.limit,
			)
		return _valid_rows(rows, _profile)

	async def get_project(self, project_id: str) -> Optional[Project]:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"SELECT {_PROJECT_COLUMNS} FROM projects p WHERE p.id::text = $1",
				str(project_id),
			)
		return _project(row) if row else None

	async def get_feedback_score(self, user_id: str) -> float:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT technical, communication, teamwork, reliability
				FROM project_feedback
				WHERE to_user_id::text = $1
				""",
				str(user_id),
			)
		reviews: list[dict[str, Any]] = [{"ratings": dict(row)} for row in rows]
		return aggregate_feedback_score(reviews, neutral=NEUTRAL_FEEDBACK_SCORE)

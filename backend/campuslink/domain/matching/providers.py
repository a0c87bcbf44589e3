"""Collaborator contracts the recommenders read from, plus an in-memory directory.

The recommenders never own storage: they take any object implementing these
protocols. ``InMemoryDirectory`` backs tests and the demo script;
``campuslink.infra.directory.PostgresDirectory`` backs production.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Sequence, Union

from campuslink.domain.matching.models import (
	NEUTRAL_FEEDBACK_SCORE,
	EdgeStatus,
	FriendEdge,
	FriendshipStatus,
	Profile,
	Project,
	ProjectStatus,
)


def _same_key(value: Optional[str], wanted: str) -> bool:
	return bool(value) and value.strip().casefold() == wanted.strip().casefold()


@dataclass(frozen=True, slots=True)
class CandidateFilter:
	"""Flat candidate pool query: users or projects matching university/status."""

	kind: Literal["users", "projects"] = "users"
	university: Optional[str] = None
	status: Optional[ProjectStatus] = None
	exclude_ids: frozenset[str] = field(default_factory=frozenset)
	limit: Optional[int] = None


class FriendGraphProvider(Protocol):
	async def get_profile(self, user_id: str) -> Optional[Profile]:
		...

	async def get_accepted_friends(self, user_id: str) -> Sequence[Profile]:
		...

	async def get_friend_request_status(self, user_a: str, user_b: str) -> FriendshipStatus:
		...

	async def get_friend_degree(self, user_id: str) -> int:
		...


class CandidatePoolProvider(Protocol):
	async def get_profile(self, user_id: str) -> Optional[Profile]:
		...

	async def get_candidate_pool(self, candidate_filter: CandidateFilter) -> Sequence[Union[Profile, Project]]:
		...

	async def get_project(self, project_id: str) -> Optional[Project]:
		...


class FeedbackProvider(Protocol):
	async def get_feedback_score(self, user_id: str) -> float:
		...


class InMemoryDirectory:
	"""Dictionary-backed implementation of every collaborator protocol.

	Profiles returned from here carry ``friend_ids`` derived from accepted edges,
	so callers never have to keep the two in sync.
	"""

	def __init__(self) -> None:
		self._profiles: dict[str, Profile] = {}
		self._edges: dict[frozenset[str], FriendEdge] = {}
		self._adjacency: dict[str, dict[str, None]] = {}
		self._projects: dict[str, Project] = {}
		self._feedback: dict[str, float] = {}

	# -- seeding --------------------------------------------------------

	def add_user(self, profile: Profile) -> Profile:
		self._profiles[profile.id] = profile
		self._adjacency.setdefault(profile.id, {})
		for friend_id in profile.friend_ids:
			self.connect(profile.id, friend_id)
		return profile

	def connect(
		self,
		requester_id: str,
		recipient_id: str,
		status: EdgeStatus = EdgeStatus.ACCEPTED,
	) -> FriendEdge:
		if requester_id == recipient_id:
			raise ValueError("cannot connect a user to themselves")
		key = frozenset((requester_id, recipient_id))
		edge = FriendEdge(requester_id=requester_id, recipient_id=recipient_id, status=status)
		self._edges[key] = edge
		if status is EdgeStatus.ACCEPTED:
			self._adjacency.setdefault(requester_id, {})[recipient_id] = None
			self._adjacency.setdefault(recipient_id, {})[requester_id] = None
		else:
			self._adjacency.get(requester_id, {}).pop(recipient_id, None)
			self._adjacency.get(recipient_id, {}).pop(requester_id, None)
		return edge

	def add_project(self, project: Project) -> Project:
		self._projects[project.id] = project
		return project

	def set_feedback(self, user_id: str, score: float) -> None:
		self._feedback[user_id] = score

	# -- FriendGraphProvider --------------------------------------------

	async def get_profile(self, user_id: str) -> Optional[Profile]:
		profile = self._profiles.get(user_id)
		if profile is None:
			return None
		return dataclasses.replace(profile, friend_ids=frozenset(self._adjacency.get(user_id, {})))

	async def get_accepted_friends(self, user_id: str) -> list[Profile]:
		friends: list[Profile] = []
		for friend_id in self._adjacency.get(user_id, {}):
			profile = await self.get_profile(friend_id)
			if profile is not None:
				friends.append(profile)
		return friends

	async def get_friend_request_status(self, user_a: str, user_b: str) -> FriendshipStatus:
		edge = self._edges.get(frozenset((user_a, user_b)))
		if edge is None:
			return FriendshipStatus.NONE
		return edge.status_for(user_a)

	async def get_friend_degree(self, user_id: str) -> int:
		return len(self._adjacency.get(user_id, {}))

	def edges_for(self, user_id: str) -> list[FriendEdge]:
		return [edge for edge in self._edges.values() if edge.touches(user_id)]

	# -- CandidatePoolProvider ------------------------------------------

	async def get_candidate_pool(self, candidate_filter: CandidateFilter) -> list[Union[Profile, Project]]:
		pool: list[Union[Profile, Project]] = []
		if candidate_filter.kind == "projects":
			for project in self._projects.values():
				if project.id in candidate_filter.exclude_ids:
					continue
				if candidate_filter.status is not None and project.status is not candidate_filter.status:
					continue
				if candidate_filter.university and not _same_key(project.university, candidate_filter.university):
					continue
				pool.append(project)
		else:
			for user_id, profile in self._profiles.items():
				if user_id in candidate_filter.exclude_ids:
					continue
				if candidate_filter.university and not _same_key(profile.university, candidate_filter.university):
					continue
				pool.append(await self.get_profile(user_id))
		if candidate_filter.limit is not None:
			pool = pool[: candidate_filter.limit]
		return pool

	async def get_project(self, project_id: str) -> Optional[Project]:
		return self._projects.get(project_id)

	# -- FeedbackProvider -----------------------------------------------

	async def get_feedback_score(self, user_id: str) -> float:
		return self._feedback.get(user_id, NEUTRAL_FEEDBACK_SCORE)

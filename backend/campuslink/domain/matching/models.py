"""Domain models for the recommendation and matching engine.

All of these are read-only views built per request from collaborator data.
Term collections (skills, interests) are ordered tuples with duplicates removed
case-insensitively; the similarity functions treat them as sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EdgeStatus(str, Enum):
	"""Stored status of an undirected friendship edge."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"
	BLOCKED = "blocked"


class FriendshipStatus(str, Enum):
	"""Relationship of a candidate as seen from the requesting user."""

	NONE = "none"
	PENDING_SENT = "pending_sent"
	PENDING_RECEIVED = "pending_received"
	BLOCKED = "blocked"
	ACCEPTED = "accepted"

	@property
	def is_pending(self) -> bool:
		return self in (FriendshipStatus.PENDING_SENT, FriendshipStatus.PENDING_RECEIVED)


class ProjectStatus(str, Enum):
	RECRUITING = "recruiting"
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	CANCELLED = "cancelled"


NEUTRAL_FEEDBACK_SCORE = 0.5


@dataclass(frozen=True, slots=True)
class Profile:
	"""Attributes of a user that the scorers read."""

	id: str
	display_name: str = ""
	university: Optional[str] = None
	department: Optional[str] = None
	skills: tuple[str, ...] = ()
	interests: tuple[str, ...] = ()
	friend_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class Project:
	"""A project posting that recruits members."""

	id: str
	title: str = ""
	university: Optional[str] = None
	category: Optional[str] = None
	required_skills: tuple[str, ...] = ()
	preferred_interests: tuple[str, ...] = ()
	creator_id: Optional[str] = None
	current_member_ids: frozenset[str] = field(default_factory=frozenset)
	max_members: int = 4
	status: ProjectStatus = ProjectStatus.RECRUITING

	@property
	def open_slots(self) -> int:
		return max(0, self.max_members - len(self.current_member_ids))

	@property
	def is_full(self) -> bool:
		return len(self.current_member_ids) >= self.max_members

	def involves(self, user_id: str) -> bool:
		return user_id == self.creator_id or user_id in self.current_member_ids


@dataclass(frozen=True, slots=True)
class FriendEdge:
	"""Undirected relation; `requester_id` records who initiated a pending edge."""

	requester_id: str
	recipient_id: str
	status: EdgeStatus

	def other(self, user_id: str) -> str:
		return self.recipient_id if self.requester_id == user_id else self.requester_id

	def touches(self, user_id: str) -> bool:
		return user_id in (self.requester_id, self.recipient_id)

	def status_for(self, user_id: str) -> FriendshipStatus:
		"""Status of `other(user_id)` from the point of view of `user_id`."""
		if self.status is EdgeStatus.BLOCKED:
			return FriendshipStatus.BLOCKED
		if self.status is EdgeStatus.ACCEPTED:
			return FriendshipStatus.ACCEPTED
		if self.status is EdgeStatus.PENDING:
			if self.requester_id == user_id:
				return FriendshipStatus.PENDING_SENT
			return FriendshipStatus.PENDING_RECEIVED
		return FriendshipStatus.NONE


@dataclass(frozen=True, slots=True)
class SimilarityMetrics:
	"""Raw metrics for one seed/candidate pair in the friend domain."""

	jaccard: float = 0.0
	adamic_adar: float = 0.0
	dept_score: float = 0.0
	skill_similarity: float = 0.0
	interest_similarity: float = 0.0

	def as_mapping(self) -> dict[str, float]:
		return {
			"jaccard": self.jaccard,
			"adamic_adar": self.adamic_adar,
			"dept_score": self.dept_score,
			"skill_similarity": self.skill_similarity,
			"interest_similarity": self.interest_similarity,
		}

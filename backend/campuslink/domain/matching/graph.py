"""Friend-of-friend expansion over the accepted-friend graph."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from campuslink.domain.matching.exceptions import TraversalLookupError
from campuslink.domain.matching.models import FriendshipStatus, Profile
from campuslink.domain.matching.providers import FriendGraphProvider
from campuslink.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SecondDegreeExpansion:
	"""Outcome of one expansion pass.

	``candidates`` holds second-hop users with no relationship to the seed, in
	first-seen order. ``pending`` holds second-hop users with an open request in
	either direction; they never appear in ``candidates``. ``excluded`` is every
	id that must not be recommended as a regular candidate.
	"""

	seed_id: str
	direct_friends: dict[str, Profile] = field(default_factory=dict)
	candidates: list[Profile] = field(default_factory=list)
	pending: list[tuple[Profile, FriendshipStatus]] = field(default_factory=list)
	excluded: set[str] = field(default_factory=set)
	via: dict[str, list[str]] = field(default_factory=dict)
	failed_lookups: list[str] = field(default_factory=list)

	def mutual_friend_ids(self, candidate_id: str) -> list[str]:
		"""Direct friends of the seed through which `candidate_id` was reached."""
		return list(self.via.get(candidate_id, ()))


def _raise_if_fatal(result: Any) -> None:
	if isinstance(result, BaseException) and not isinstance(result, Exception):
		raise result


async def _direct_friends(seed: Profile, provider: FriendGraphProvider) -> dict[str, Profile]:
	direct: dict[str, Profile] = {}
	try:
		for friend in await provider.get_accepted_friends(seed.id):
			if friend.id != seed.id:
				direct.setdefault(friend.id, friend)
	except Exception:
		error = TraversalLookupError(seed.id)
		logger.warning(
			"direct friend lookup failed; using seed friend ids",
			extra={"user_id": seed.id, "reason": error.reason},
			exc_info=True,
		)
		obs_metrics.inc_lookup_failure("friends")
	for friend_id in sorted(seed.friend_ids):
		if friend_id != seed.id and friend_id not in direct:
			direct[friend_id] = Profile(id=friend_id)
	return direct


async def expand_second_degree(seed: Profile, provider: FriendGraphProvider) -> SecondDegreeExpansion:
	"""Enumerate friends of friends of `seed`, deduplicated and classified.

	One accepted-friend lookup per direct friend and one status lookup per
	second-hop user are fanned out concurrently. A failed friend lookup skips
	that branch; a failed status lookup drops that candidate. Neither aborts the
	pass.
	"""
	expansion = SecondDegreeExpansion(seed_id=seed.id)
	expansion.direct_friends = await _direct_friends(seed, provider)
	expansion.excluded = {seed.id, *expansion.direct_friends}

	friend_ids = list(expansion.direct_friends)
	hops: Sequence[Any] = await asyncio.gather(
		*(provider.get_accepted_friends(friend_id) for friend_id in friend_ids),
		return_exceptions=True,
	)

	reached: dict[str, Profile] = {}
	for friend_id, result in zip(friend_ids, hops):
		_raise_if_fatal(result)
		if isinstance(result, Exception):
			error = TraversalLookupError(friend_id)
			logger.warning(
				"second-hop lookup failed; skipping branch",
				extra={"friend_id": friend_id, "reason": error.reason},
				exc_info=result,
			)
			obs_metrics.inc_lookup_failure("friends")
			expansion.failed_lookups.append(friend_id)
			continue
		for candidate in result or ():
			if candidate.id in expansion.excluded:
				continue
			expansion.via.setdefault(candidate.id, []).append(friend_id)
			reached.setdefault(candidate.id, candidate)

	candidate_ids = list(reached)
	statuses: Sequence[Any] = await asyncio.gather(
		*(provider.get_friend_request_status(seed.id, candidate_id) for candidate_id in candidate_ids),
		return_exceptions=True,
	)

	for candidate_id, status in zip(candidate_ids, statuses):
		_raise_if_fatal(status)
		candidate = reached[candidate_id]
		if isinstance(status, Exception):
			error = TraversalLookupError(candidate_id, kind="status")
			logger.warning(
				"friendship status lookup failed; dropping candidate",
				extra={"candidate_id": candidate_id, "reason": error.reason},
				exc_info=status,
			)
			obs_metrics.inc_lookup_failure("status")
			expansion.excluded.add(candidate_id)
			continue
		status = FriendshipStatus(status)
		if status is FriendshipStatus.NONE:
			expansion.candidates.append(candidate)
			continue
		expansion.excluded.add(candidate_id)
		if status.is_pending:
			expansion.pending.append((candidate, status))

	obs_metrics.inc_candidate("friends", "excluded", len(expansion.excluded) - 1 - len(expansion.direct_friends))
	return expansion

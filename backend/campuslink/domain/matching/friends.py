"""Friend recommendations: friend-of-friend expansion, five-metric composite, top-K."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from campuslink.domain.matching import cache as cache_keys
from campuslink.domain.matching import reasons, similarity
from campuslink.domain.matching.cache import RecommendationCache
from campuslink.domain.matching.graph import SecondDegreeExpansion, expand_second_degree
from campuslink.domain.matching.models import FriendshipStatus, Profile, SimilarityMetrics
from campuslink.domain.matching.pipeline import Recommender, guarded_metric, resolve_seed
from campuslink.domain.matching.providers import FriendGraphProvider
from campuslink.domain.matching.schemas import (
	FriendRecommendation,
	MutualFriend,
	PairSimilarity,
	ProfileCard,
	RecommendationResult,
	SimilarityScore,
)
from campuslink.domain.matching.scoring import FRIEND_WEIGHTS, composite_score, same_university, validate_weights
from campuslink.domain.matching.topk import TopKSelector
from campuslink.obs import metrics as obs_metrics
from campuslink.settings import settings

logger = logging.getLogger(__name__)

# Candidates scored concurrently per round.
SCORING_BATCH_SIZE = 64


def _different_university(seed: Profile, candidate: Profile) -> bool:
	if not seed.university or not candidate.university:
		return False
	return not same_university(seed.university, candidate.university)


class FriendRecommender(Recommender):
	"""Suggest second-degree connections.

	Pending requests (either direction) reachable through a friend are emitted
	first and are never capped or gated. Everyone else must clear the
	minimum-similarity gate and compete for the ``limit`` regular slots.
	"""

	domain = "friends"

	def __init__(
		self,
		graph: FriendGraphProvider,
		*,
		cache: Optional[RecommendationCache] = None,
		cache_ttl: Optional[int] = None,
		weights: Optional[Mapping[str, float]] = None,
		min_composite: Optional[float] = None,
		min_individual: Optional[float] = None,
		default_limit: Optional[int] = None,
		batch_size: int = SCORING_BATCH_SIZE,
	) -> None:
		if batch_size < 1:
			raise ValueError("batch_size must be positive")
		super().__init__(cache=cache, cache_ttl=cache_ttl)
		self.graph = graph
		self.batch_size = batch_size
		self.weights = validate_weights(weights if weights is not None else FRIEND_WEIGHTS, FRIEND_WEIGHTS)
		self.min_composite = settings.recs_min_composite if min_composite is None else min_composite
		self.min_individual = settings.recs_min_individual if min_individual is None else min_individual
		self.default_limit = settings.recs_friend_limit if default_limit is None else default_limit

	async def recommend(
		self,
		user_id: str,
		*,
		limit: Optional[int] = None,
		use_cache: bool = True,
	) -> RecommendationResult[FriendRecommendation]:
		limit = self.default_limit if limit is None else limit
		return await self._run(
			subject_id=user_id,
			model=FriendRecommendation,
			build=lambda: self._build(user_id, limit),
			cache_key=cache_keys.friend_key(user_id, limit) if use_cache else None,
		)

	async def invalidate(self, user_id: str, *, limit: Optional[int] = None) -> None:
		await self._cache_delete(cache_keys.friend_key(user_id, self.default_limit if limit is None else limit))

	def passes_gate(self, metrics: SimilarityMetrics, composite: float) -> bool:
		if composite >= self.min_composite:
			return True
		return any(value >= self.min_individual for value in metrics.as_mapping().values())

	async def compute_metrics(
		self,
		seed: Profile,
		candidate: Profile,
		*,
		seed_friend_ids: Optional[frozenset[str]] = None,
	) -> SimilarityMetrics:
		friends = seed.friend_ids if seed_friend_ids is None else seed_friend_ids
		cid = candidate.id
		return SimilarityMetrics(
			jaccard=await guarded_metric("jaccard", cid, lambda: similarity.id_jaccard(friends, candidate.friend_ids)),
			adamic_adar=await guarded_metric(
				"adamic_adar",
				cid,
				lambda: similarity.adamic_adar(friends, candidate.friend_ids, self.graph.get_friend_degree),
			),
			dept_score=await guarded_metric("dept_score", cid, lambda: similarity.dept_score(seed.department, candidate.department)),
			skill_similarity=await guarded_metric("skill_similarity", cid, lambda: similarity.jaccard(seed.skills, candidate.skills)),
			interest_similarity=await guarded_metric(
				"interest_similarity", cid, lambda: similarity.jaccard(seed.interests, candidate.interests)
			),
		)

	async def _build(self, user_id: str, limit: int) -> list[FriendRecommendation]:
		seed = await resolve_seed(self.graph, user_id)
		expansion = await expand_second_degree(seed, self.graph)

		entries: list[tuple[Profile, FriendshipStatus]] = list(expansion.pending)
		filtered = 0
		for candidate in expansion.candidates:
			if _different_university(seed, candidate):
				filtered += 1
				continue
			entries.append((candidate, FriendshipStatus.NONE))

		selector: TopKSelector[FriendRecommendation] = TopKSelector(limit)
		for start in range(0, len(entries), self.batch_size):
			batch = entries[start : start + self.batch_size]
			scored = await asyncio.gather(
				*(self._recommendation(seed, candidate, status, expansion) for candidate, status in batch)
			)
			for (_, status), (recommendation, metrics) in zip(batch, scored):
				if status is FriendshipStatus.NONE and not self.passes_gate(metrics, recommendation.composite):
					filtered += 1
					continue
				selector.push(recommendation, recommendation.composite, priority=status.is_pending)

		obs_metrics.inc_candidate(self.domain, "scored", len(entries))
		obs_metrics.inc_candidate(self.domain, "filtered", filtered)
		return selector.results()

	async def _recommendation(
		self,
		seed: Profile,
		candidate: Profile,
		status: FriendshipStatus,
		expansion: SecondDegreeExpansion,
	) -> tuple[FriendRecommendation, SimilarityMetrics]:
		seed_friend_ids = frozenset(expansion.direct_friends)
		metrics = await self.compute_metrics(seed, candidate, seed_friend_ids=seed_friend_ids)
		composite = composite_score(metrics, self.weights)
		reached_via = set(expansion.mutual_friend_ids(candidate.id))
		mutual = [
			MutualFriend(id=friend.id, display_name=friend.display_name)
			for friend_id, friend in expansion.direct_friends.items()
			if friend_id in reached_via or friend_id in candidate.friend_ids
		]
		recommendation = FriendRecommendation(
			candidate=ProfileCard.from_profile(candidate),
			metrics=SimilarityScore(**metrics.as_mapping()),
			composite=composite,
			mutual_friends=mutual,
			friendship_status=status.value,
			reasons=reasons.friend_reasons(
				metrics,
				mutual_count=len(mutual),
				same_university=same_university(seed.university, candidate.university),
				status=status,
			),
		)
		return recommendation, metrics

	async def mutual_friends(self, user_id: str, other_id: str) -> list[MutualFriend]:
		"""Accepted friends shared by both users, in `user_id`'s friend order."""
		try:
			mine, theirs = await asyncio.gather(
				self.graph.get_accepted_friends(user_id),
				self.graph.get_accepted_friends(other_id),
			)
		except Exception:
			logger.warning(
				"mutual friend lookup failed",
				extra={"user_id": user_id, "other_id": other_id},
				exc_info=True,
			)
			obs_metrics.inc_lookup_failure("friends")
			return []
		their_ids = {friend.id for friend in theirs}
		return [
			MutualFriend(id=friend.id, display_name=friend.display_name)
			for friend in mine
			if friend.id in their_ids and friend.id not in (user_id, other_id)
		]

	async def similarity_between(self, user_id: str, other_id: str) -> Optional[PairSimilarity]:
		"""All five metrics and the composite for an arbitrary pair; None if either is unknown."""
		profiles = await asyncio.gather(
			self.graph.get_profile(user_id),
			self.graph.get_profile(other_id),
			return_exceptions=True,
		)
		if any(isinstance(p, BaseException) or p is None for p in profiles):
			logger.info("similarity.pair missing profile user=%s other=%s", user_id, other_id)
			return None
		user, other = profiles
		metrics = await self.compute_metrics(user, other)
		return PairSimilarity(
			user_id=user_id,
			other_id=other_id,
			metrics=SimilarityScore(**metrics.as_mapping()),
			composite=composite_score(metrics, self.weights),
		)

"""Teammate suggestions and greedy team composition for a project."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping, Optional, Sequence

from campuslink.domain.matching import cache as cache_keys
from campuslink.domain.matching import reasons, similarity
from campuslink.domain.matching.cache import RecommendationCache
from campuslink.domain.matching.exceptions import MetricComputationError
from campuslink.domain.matching.models import Profile, Project
from campuslink.domain.matching.pipeline import Recommender, feedback_score, fetch_candidate_pool, resolve_seed
from campuslink.domain.matching.providers import CandidateFilter, CandidatePoolProvider, FeedbackProvider
from campuslink.domain.matching.schemas import (
	ProfileCard,
	ProjectMatchScore,
	RecommendationResult,
	TeamCompatibility,
	TeamComposition,
	TeammateRecommendation,
	TeamMemberPick,
)
from campuslink.domain.matching.scoring import (
	PROJECT_WEIGHTS,
	TEAM_WEIGHTS,
	in_same_pool,
	project_match_score,
	team_compatibility_score,
	validate_weights,
)
from campuslink.domain.matching.topk import TopKSelector
from campuslink.obs import metrics as obs_metrics
from campuslink.settings import settings

logger = logging.getLogger(__name__)

SKILL_COVERAGE_WEIGHT = 0.7
DIVERSITY_WEIGHT = 0.3
JOIN_THRESHOLD = 0.4


class TeamRecommender(Recommender):
	"""Same-university teammate suggestions and project team building."""

	domain = "teams"

	def __init__(
		self,
		directory: CandidatePoolProvider,
		feedback: Optional[FeedbackProvider] = None,
		*,
		cache: Optional[RecommendationCache] = None,
		cache_ttl: Optional[int] = None,
		weights: Optional[Mapping[str, float]] = None,
		project_weights: Optional[Mapping[str, float]] = None,
		default_limit: Optional[int] = None,
		neutral_feedback: Optional[float] = None,
	) -> None:
		super().__init__(cache=cache, cache_ttl=cache_ttl)
		self.directory = directory
		self.feedback = feedback
		self.weights = validate_weights(weights if weights is not None else TEAM_WEIGHTS, TEAM_WEIGHTS)
		self.project_weights = validate_weights(
			project_weights if project_weights is not None else PROJECT_WEIGHTS, PROJECT_WEIGHTS
		)
		self.default_limit = settings.recs_team_limit if default_limit is None else default_limit
		self.neutral_feedback = settings.recs_neutral_feedback if neutral_feedback is None else neutral_feedback

	def compatibility(self, user: Profile, candidate: Profile) -> Optional[TeamCompatibility]:
		try:
			return team_compatibility_score(user, candidate, weights=self.weights)
		except Exception:
			error = MetricComputationError("team_compatibility", candidate.id)
			logger.warning(
				"team compatibility scoring failed; skipping candidate",
				extra={"candidate_id": candidate.id, "reason": error.reason},
				exc_info=True,
			)
			obs_metrics.inc_metric_failure("team_compatibility")
			return None

	async def recommend_teammates(
		self,
		user_id: str,
		*,
		exclude_ids: Iterable[str] = (),
		limit: Optional[int] = None,
		use_cache: bool = True,
	) -> RecommendationResult[TeammateRecommendation]:
		"""Rank same-university users, skipping friends and anyone in `exclude_ids`.

		`exclude_ids` is typically the caller's current team. Cached results are
		keyed per user, so pass ``use_cache=False`` when the exclusions vary.
		"""
		limit = self.default_limit if limit is None else limit
		excluded = frozenset(exclude_ids)
		return await self._run(
			subject_id=user_id,
			model=TeammateRecommendation,
			build=lambda: self._build_teammates(user_id, excluded, limit),
			cache_key=cache_keys.team_key(user_id, limit) if use_cache else None,
		)

	async def _build_teammates(self, user_id: str, exclude_ids: frozenset[str], limit: int) -> list[TeammateRecommendation]:
		user = await resolve_seed(self.directory, user_id)
		excluded = {user.id, *user.friend_ids, *exclude_ids}
		pool = await fetch_candidate_pool(
			self.directory,
			CandidateFilter(kind="users", university=user.university, exclude_ids=frozenset(excluded)),
		)
		candidates = [
			c
			for c in pool
			if isinstance(c, Profile) and c.id not in excluded and in_same_pool(c.university, user.university)
		]

		selector: TopKSelector[TeammateRecommendation] = TopKSelector(limit)
		filtered = 0
		for candidate in candidates:
			score = self.compatibility(user, candidate)
			if score is None:
				filtered += 1
				continue
			recommendation = TeammateRecommendation(
				candidate=ProfileCard.from_profile(candidate),
				score=score,
				reasons=reasons.team_reasons(
					score,
					shared_skills=similarity.shared_terms(user.skills, candidate.skills),
					shared_interests=similarity.shared_terms(user.interests, candidate.interests),
				),
			)
			selector.push(recommendation, score.overall)

		obs_metrics.inc_candidate(self.domain, "scored", len(candidates))
		obs_metrics.inc_candidate(self.domain, "filtered", filtered)
		return selector.results()

	async def recommend_team_composition(
		self,
		project_id: str,
		*,
		candidate_ids: Optional[Sequence[str]] = None,
		max_team_size: Optional[int] = None,
	) -> TeamComposition:
		"""Greedily assemble a team for the project's open slots.

		Candidates default to same-university users who are not already on the
		project. Returns an empty composition for an unknown project.
		"""
		try:
			project = await self.directory.get_project(project_id)
		except Exception:
			logger.warning("project lookup failed", extra={"project_id": project_id}, exc_info=True)
			obs_metrics.inc_lookup_failure("project")
			project = None
		if project is None:
			logger.info("teams.composition project=%s not found", project_id)
			return TeamComposition()

		candidates = await self._composition_pool(project, candidate_ids)
		feedback = await asyncio.gather(
			*(feedback_score(self.feedback, c.id, neutral=self.neutral_feedback) for c in candidates)
		)
		scored: list[tuple[Profile, ProjectMatchScore]] = []
		for candidate, candidate_feedback in zip(candidates, feedback):
			try:
				score = project_match_score(candidate, project, feedback=candidate_feedback, weights=self.project_weights)
			except Exception:
				logger.warning(
					"project match scoring failed; skipping candidate",
					extra={"candidate_id": candidate.id, "project_id": project.id},
					exc_info=True,
				)
				obs_metrics.inc_metric_failure("project_match")
				continue
			scored.append((candidate, score))

		size = project.open_slots if max_team_size is None else max_team_size
		return self.compose(project, scored, max_team_size=size)

	async def _composition_pool(self, project: Project, candidate_ids: Optional[Sequence[str]]) -> list[Profile]:
		if candidate_ids is not None:
			profiles = await asyncio.gather(
				*(self.directory.get_profile(cid) for cid in candidate_ids),
				return_exceptions=True,
			)
			return [p for p in profiles if isinstance(p, Profile) and not project.involves(p.id)]
		excluded = set(project.current_member_ids)
		if project.creator_id:
			excluded.add(project.creator_id)
		pool = await fetch_candidate_pool(
			self.directory,
			CandidateFilter(kind="users", university=project.university, exclude_ids=frozenset(excluded)),
		)
		return [
			c
			for c in pool
			if isinstance(c, Profile) and c.id not in excluded and in_same_pool(c.university, project.university)
		]

	def compose(
		self,
		project: Project,
		scored: Sequence[tuple[Profile, ProjectMatchScore]],
		*,
		max_team_size: int,
	) -> TeamComposition:
		"""Greedy pass over candidates by individual score.

		Each candidate's value blends the required skills it newly covers, its own
		match score, and its mean compatibility with members already picked. It
		joins when that value exceeds the join threshold or the team is empty.
		"""
		required = similarity.normalize_terms(project.required_skills) or []
		required_set = set(required)
		ordered = sorted(enumerate(scored), key=lambda entry: (-entry[1][1].overall, entry[0]))

		members: list[TeamMemberPick] = []
		picked: list[Profile] = []
		covered: set[str] = set()
		for _, (candidate, score) in ordered:
			if len(members) >= max_team_size:
				break
			new_skills = [
				skill
				for skill in candidate.skills
				if similarity.normalize_term(skill) not in covered
				and (not required_set or similarity.normalize_term(skill) in required_set)
			]
			coverage_value = len(new_skills) / max(1, len(required_set))

			compatibility = 1.0
			if picked:
				pair_scores = [self.compatibility(candidate, member) for member in picked]
				compatibility = sum(s.overall for s in pair_scores if s is not None) / len(picked)

			value = (
				coverage_value * SKILL_COVERAGE_WEIGHT
				+ score.overall * (1 - SKILL_COVERAGE_WEIGHT)
				+ compatibility * DIVERSITY_WEIGHT
			)
			if value > JOIN_THRESHOLD or not members:
				members.append(
					TeamMemberPick(
						candidate=ProfileCard.from_profile(candidate),
						score=score,
						team_value=value,
						new_skills_added=new_skills,
						team_compatibility=compatibility,
					)
				)
				picked.append(candidate)
				covered.update(similarity.normalize_term(skill) for skill in new_skills)

		if required_set:
			coverage = len(covered & required_set) / len(required_set)
		else:
			coverage = 1.0 if members else 0.0
		if len(members) > 1:
			average = sum(m.team_compatibility for m in members) / len(members)
		else:
			average = 1.0 if members else 0.0
		return TeamComposition(
			members=members,
			team_size=len(members),
			skill_coverage=coverage,
			average_compatibility=average,
		)

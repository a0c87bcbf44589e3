"""User/project matching in both directions over flat candidate pools."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from campuslink.domain.matching import cache as cache_keys
from campuslink.domain.matching import reasons
from campuslink.domain.matching.cache import RecommendationCache
from campuslink.domain.matching.exceptions import InvalidSeedError, MetricComputationError
from campuslink.domain.matching.models import Profile, Project, ProjectStatus
from campuslink.domain.matching.pipeline import Recommender, feedback_score, fetch_candidate_pool, resolve_seed
from campuslink.domain.matching.providers import CandidateFilter, CandidatePoolProvider, FeedbackProvider
from campuslink.domain.matching.schemas import (
	CollaboratorMatch,
	ProfileCard,
	ProjectCard,
	ProjectMatchScore,
	ProjectSuggestion,
	RecommendationResult,
)
from campuslink.domain.matching.scoring import PROJECT_WEIGHTS, in_same_pool, project_match_score, validate_weights
from campuslink.domain.matching.topk import TopKSelector
from campuslink.obs import metrics as obs_metrics
from campuslink.settings import settings

logger = logging.getLogger(__name__)


def is_open_for(project: Project, user_id: str) -> bool:
	"""Recruiting, not full, and the user is neither creator nor member."""
	return project.status is ProjectStatus.RECRUITING and not project.is_full and not project.involves(user_id)


class ProjectMatcher(Recommender):
	domain = "projects"

	def __init__(
		self,
		directory: CandidatePoolProvider,
		feedback: Optional[FeedbackProvider] = None,
		*,
		cache: Optional[RecommendationCache] = None,
		cache_ttl: Optional[int] = None,
		weights: Optional[Mapping[str, float]] = None,
		min_overall: Optional[float] = None,
		min_skill: Optional[float] = None,
		default_limit: Optional[int] = None,
		neutral_feedback: Optional[float] = None,
	) -> None:
		super().__init__(cache=cache, cache_ttl=cache_ttl)
		self.directory = directory
		self.feedback = feedback
		self.weights = validate_weights(weights if weights is not None else PROJECT_WEIGHTS, PROJECT_WEIGHTS)
		self.min_overall = settings.recs_project_min_overall if min_overall is None else min_overall
		self.min_skill = settings.recs_project_min_skill if min_skill is None else min_skill
		self.default_limit = settings.recs_project_limit if default_limit is None else default_limit
		self.neutral_feedback = settings.recs_neutral_feedback if neutral_feedback is None else neutral_feedback

	def _keep(self, score: ProjectMatchScore) -> bool:
		return score.overall >= self.min_overall and score.skills >= self.min_skill

	def _score(self, profile: Profile, project: Project, feedback: float) -> Optional[ProjectMatchScore]:
		try:
			return project_match_score(profile, project, feedback=feedback, weights=self.weights)
		except Exception:
			error = MetricComputationError("project_match", profile.id)
			logger.warning(
				"project match scoring failed; skipping candidate",
				extra={"candidate_id": profile.id, "project_id": project.id, "reason": error.reason},
				exc_info=True,
			)
			obs_metrics.inc_metric_failure("project_match")
			return None

	async def _load_project(self, project_id: str) -> Project:
		try:
			project = await self.directory.get_project(project_id)
		except Exception as exc:
			logger.warning("project lookup failed", extra={"project_id": project_id}, exc_info=True)
			obs_metrics.inc_lookup_failure("project")
			raise InvalidSeedError("project_not_found") from exc
		if project is None:
			raise InvalidSeedError("project_not_found")
		return project

	async def score(self, user_id: str, project_id: str) -> Optional[ProjectMatchScore]:
		"""Match score for one user/project pair; None if either is unknown."""
		try:
			profile = await resolve_seed(self.directory, user_id)
			project = await self._load_project(project_id)
		except InvalidSeedError:
			return None
		feedback = await feedback_score(self.feedback, user_id, neutral=self.neutral_feedback)
		return self._score(profile, project, feedback)

	async def match_users_for_project(
		self,
		project_id: str,
		*,
		limit: Optional[int] = None,
		use_cache: bool = True,
	) -> RecommendationResult[CollaboratorMatch]:
		limit = self.default_limit if limit is None else limit
		return await self._run(
			subject_id=project_id,
			model=CollaboratorMatch,
			build=lambda: self._build_collaborators(project_id, limit),
			cache_key=cache_keys.project_matches_key(project_id, limit) if use_cache else None,
		)

	async def match_projects_for_user(
		self,
		user_id: str,
		*,
		limit: Optional[int] = None,
		use_cache: bool = True,
	) -> RecommendationResult[ProjectSuggestion]:
		limit = self.default_limit if limit is None else limit
		return await self._run(
			subject_id=user_id,
			model=ProjectSuggestion,
			build=lambda: self._build_suggestions(user_id, limit),
			cache_key=cache_keys.project_key(user_id, limit) if use_cache else None,
		)

	async def _build_collaborators(self, project_id: str, limit: int) -> list[CollaboratorMatch]:
		project = await self._load_project(project_id)
		excluded = set(project.current_member_ids)
		if project.creator_id:
			excluded.add(project.creator_id)
		pool = await fetch_candidate_pool(
			self.directory,
			CandidateFilter(kind="users", university=project.university, exclude_ids=frozenset(excluded)),
		)
		candidates = [
			c
			for c in pool
			if isinstance(c, Profile) and c.id not in excluded and in_same_pool(c.university, project.university)
		]
		feedback = await asyncio.gather(
			*(feedback_score(self.feedback, c.id, neutral=self.neutral_feedback) for c in candidates)
		)

		selector: TopKSelector[CollaboratorMatch] = TopKSelector(limit)
		filtered = 0
		for candidate, candidate_feedback in zip(candidates, feedback):
			score = self._score(candidate, project, candidate_feedback)
			if score is None or not self._keep(score):
				filtered += 1
				continue
			match = CollaboratorMatch(
				candidate=ProfileCard.from_profile(candidate),
				score=score,
				reasons=reasons.project_reasons(score),
			)
			selector.push(match, score.overall)

		obs_metrics.inc_candidate(self.domain, "scored", len(candidates))
		obs_metrics.inc_candidate(self.domain, "filtered", filtered)
		return selector.results()

	async def _build_suggestions(self, user_id: str, limit: int) -> list[ProjectSuggestion]:
		profile = await resolve_seed(self.directory, user_id)
		pool = await fetch_candidate_pool(self.directory, CandidateFilter(kind="projects", status=ProjectStatus.RECRUITING))
		projects = [p for p in pool if isinstance(p, Project) and is_open_for(p, user_id)]
		feedback = await feedback_score(self.feedback, user_id, neutral=self.neutral_feedback)

		selector: TopKSelector[ProjectSuggestion] = TopKSelector(limit)
		filtered = 0
		for project in projects:
			score = self._score(profile, project, feedback)
			if score is None or not self._keep(score):
				filtered += 1
				continue
			suggestion = ProjectSuggestion(
				project=ProjectCard.from_project(project),
				score=score,
				reasons=reasons.project_reasons(score),
			)
			selector.push(suggestion, score.overall)

		obs_metrics.inc_candidate(self.domain, "scored", len(projects))
		obs_metrics.inc_candidate(self.domain, "filtered", filtered)
		return selector.results()

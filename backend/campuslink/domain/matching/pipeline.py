"""Shared plumbing for the recommenders: cache wrap, timing, error isolation."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from campuslink.domain.matching.cache import NullCache, RecommendationCache
from campuslink.domain.matching.exceptions import InvalidSeedError, MetricComputationError
from campuslink.domain.matching.models import Profile
from campuslink.domain.matching.providers import CandidateFilter, CandidatePoolProvider, FeedbackProvider
from campuslink.domain.matching.schemas import RecommendationResult
from campuslink.domain.matching.scoring import clamp
from campuslink.obs import logging as obs_logging
from campuslink.obs import metrics as obs_metrics
from campuslink.settings import settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def guarded_metric(metric: str, candidate_id: str, compute: Callable[[], Any]) -> float:
	"""Run one metric; any failure is logged, counted and defaults to 0."""
	try:
		value = compute()
		if inspect.isawaitable(value):
			value = await value
		return float(value)
	except Exception:
		error = MetricComputationError(metric, candidate_id)
		logger.warning(
			"metric computation failed; defaulting to 0",
			extra={"metric": metric, "candidate_id": candidate_id, "reason": error.reason},
			exc_info=True,
		)
		obs_metrics.inc_metric_failure(metric)
		return 0.0


async def feedback_score(provider: Optional[FeedbackProvider], user_id: str, *, neutral: float) -> float:
	if provider is None:
		return neutral
	try:
		value = await provider.get_feedback_score(user_id)
	except Exception:
		logger.warning("feedback lookup failed; using neutral score", extra={"user_id": user_id}, exc_info=True)
		obs_metrics.inc_lookup_failure("feedback")
		return neutral
	if value is None:
		return neutral
	try:
		return clamp(float(value))
	except (TypeError, ValueError):
		return neutral


async def fetch_candidate_pool(provider: CandidatePoolProvider, candidate_filter: CandidateFilter) -> list[Any]:
	"""Candidate pool for one pass; a failed fetch degrades to an empty pool."""
	try:
		return list(await provider.get_candidate_pool(candidate_filter))
	except Exception:
		logger.warning(
			"candidate pool lookup failed; continuing with an empty pool",
			extra={"pool_kind": candidate_filter.kind, "university": candidate_filter.university},
			exc_info=True,
		)
		obs_metrics.inc_lookup_failure("pool")
		return []


async def resolve_seed(provider: Any, user_id: str) -> Profile:
	"""Load the requesting user's profile or raise InvalidSeedError."""
	try:
		seed = await provider.get_profile(user_id)
	except Exception as exc:
		logger.warning("seed profile lookup failed", extra={"user_id": user_id}, exc_info=True)
		obs_metrics.inc_lookup_failure("profile")
		raise InvalidSeedError() from exc
	if seed is None:
		raise InvalidSeedError()
	return seed


class Recommender:
	"""Base for the orchestrators: cache lookup, pass timing, empty-result shaping."""

	domain = "recs"

	def __init__(
		self,
		*,
		cache: Optional[RecommendationCache] = None,
		cache_ttl: Optional[int] = None,
	) -> None:
		self.cache: RecommendationCache = cache if cache is not None else NullCache()
		self.cache_ttl = settings.recs_cache_ttl_seconds if cache_ttl is None else cache_ttl

	async def _cache_get(self, key: str, model: Type[ModelT]) -> Optional[list[ModelT]]:
		try:
			raw = await self.cache.get(key)
		except Exception:
			logger.warning("recommendation cache read failed", extra={"cache_key": key}, exc_info=True)
			obs_metrics.inc_cache("error")
			return None
		if raw is None:
			obs_metrics.inc_cache("miss")
			return None
		try:
			items = [model.model_validate(item) for item in raw]
		except (TypeError, ValidationError):
			logger.warning("discarding malformed cache entry", extra={"cache_key": key}, exc_info=True)
			obs_metrics.inc_cache("error")
			return None
		obs_metrics.inc_cache("hit")
		return items

	async def _cache_set(self, key: str, items: Sequence[BaseModel]) -> None:
		try:
			await self.cache.set(key, [item.model_dump(mode="json") for item in items], self.cache_ttl)
		except Exception:
			logger.warning("recommendation cache write failed", extra={"cache_key": key}, exc_info=True)
			obs_metrics.inc_cache("error")

	async def _cache_delete(self, key: str) -> None:
		try:
			await self.cache.delete(key)
		except Exception:
			logger.warning("recommendation cache delete failed", extra={"cache_key": key}, exc_info=True)
			obs_metrics.inc_cache("error")

	async def _run(
		self,
		*,
		subject_id: str,
		model: Type[ModelT],
		build: Callable[[], Awaitable[list[ModelT]]],
		cache_key: Optional[str] = None,
	) -> RecommendationResult[ModelT]:
		result_type = RecommendationResult[model]
		tokens = obs_logging.bind_context(user_id=subject_id, domain=self.domain)
		start = time.perf_counter()
		source = "algorithm"
		count = 0
		try:
			if cache_key is not None:
				cached = await self._cache_get(cache_key, model)
				if cached is not None:
					source = "cache"
					count = len(cached)
					return result_type(count=count, data=cached, source="cache")
			try:
				items = await build()
			except InvalidSeedError as exc:
				source = "empty"
				return result_type(success=True, count=0, data=[], source="empty", message=exc.reason)
			if cache_key is not None:
				await self._cache_set(cache_key, items)
			count = len(items)
			return result_type(count=count, data=items, source="algorithm")
		finally:
			elapsed = time.perf_counter() - start
			obs_metrics.observe_pass(self.domain, source, elapsed)
			logger.info(
				"recs.%s subject=%s source=%s results=%d elapsed_ms=%.1f",
				self.domain,
				subject_id,
				source,
				count,
				elapsed * 1000,
			)
			obs_logging.reset_context(tokens)

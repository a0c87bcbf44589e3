"""Domain-level exceptions for the recommendation engine.

None of these reach callers of the recommenders: metric and lookup errors are
recovered where they happen, and an invalid seed turns into an empty result.
"""

from __future__ import annotations


class MatchingError(Exception):
	"""Base class for recommendation errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class MetricComputationError(MatchingError):
	reason = "metric_failed"

	def __init__(self, metric: str, candidate_id: str | None = None) -> None:
		super().__init__(f"{metric}_failed")
		self.metric = metric
		self.candidate_id = candidate_id


class TraversalLookupError(MatchingError):
	reason = "lookup_failed"

	def __init__(self, user_id: str, kind: str = "friends") -> None:
		super().__init__(f"{kind}_lookup_failed")
		self.user_id = user_id
		self.kind = kind


class InvalidSeedError(MatchingError):
	reason = "seed_not_found"

"""Peer-feedback aggregation into a single [0, 1] collaboration score."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional

from campuslink.domain.matching.models import NEUTRAL_FEEDBACK_SCORE

RATING_DIMENSIONS = ("technical", "communication", "teamwork", "reliability")
RATING_MIN = 1.0
RATING_MAX = 5.0


def _rating(value: Any) -> Optional[float]:
	if isinstance(value, bool):
		return None
	try:
		number = float(value)
	except (TypeError, ValueError):
		return None
	if math.isnan(number):
		return None
	return max(RATING_MIN, min(RATING_MAX, number))


def review_rating(review: Any) -> Optional[float]:
	"""Average 1-5 rating of one review, or None when it carries no usable number.

	A ``ratings`` document averages whichever of the four dimensions are
	present; otherwise a flat ``rating`` or ``overall`` field is used.
	"""
	if not isinstance(review, Mapping):
		return _rating(review)
	ratings = review.get("ratings")
	if isinstance(ratings, Mapping):
		values = [v for v in (_rating(ratings.get(dim)) for dim in RATING_DIMENSIONS) if v is not None]
		if values:
			return sum(values) / len(values)
	for key in ("rating", "overall"):
		value = _rating(review.get(key))
		if value is not None:
			return value
	return None


def aggregate_feedback_score(reviews: Optional[Iterable[Any]], *, neutral: float = NEUTRAL_FEEDBACK_SCORE) -> float:
	if reviews is None or isinstance(reviews, (str, bytes)):
		return neutral
	ratings = [r for r in (review_rating(review) for review in reviews) if r is not None]
	if not ratings:
		return neutral
	average = sum(ratings) / len(ratings)
	return (average - RATING_MIN) / (RATING_MAX - RATING_MIN)

"""Similarity metrics over skills, interests and friend sets.

Every function here returns a number for any input: malformed input (None, a
bare string, a non-iterable) yields the metric's default instead of raising, so
callers can run several metrics side by side without one failure masking the rest.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Optional, Union

from campuslink.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DegreeLookup = Callable[[str], Union[int, Awaitable[int]]]

SKILL_JACCARD_WEIGHT = 0.6
SKILL_COSINE_WEIGHT = 0.4


def normalize_term(value: Any) -> str:
	return str(value).strip().casefold()


def normalize_terms(values: Any) -> Optional[list[str]]:
	"""Trimmed, case-folded, de-duplicated terms in first-seen order.

	Returns None when `values` is not a collection at all, so callers can tell
	"malformed" apart from "empty".
	"""
	if values is None or isinstance(values, (str, bytes)):
		return None
	try:
		items = list(values)
	except TypeError:
		return None
	terms: dict[str, None] = {}
	for item in items:
		if item is None:
			continue
		term = normalize_term(item)
		if term:
			terms.setdefault(term, None)
	return list(terms)


def jaccard(a: Any, b: Any) -> float:
	"""Intersection over union of two term sets; 0 when either side is empty."""
	terms_a = normalize_terms(a)
	terms_b = normalize_terms(b)
	if not terms_a or not terms_b:
		return 0.0
	set_a, set_b = set(terms_a), set(terms_b)
	return len(set_a & set_b) / len(set_a | set_b)


def cosine(vec_a: Any, vec_b: Any) -> float:
	"""Dot product over norms; 0 for empty, mismatched, zero-norm or malformed vectors."""
	if vec_a is None or vec_b is None or isinstance(vec_a, (str, bytes)) or isinstance(vec_b, (str, bytes)):
		return 0.0
	try:
		a = [float(x) for x in vec_a]
		b = [float(x) for x in vec_b]
	except (TypeError, ValueError):
		return 0.0
	if not a or len(a) != len(b):
		return 0.0
	dot = sum(x * y for x, y in zip(a, b))
	norm_a = math.sqrt(sum(x * x for x in a))
	norm_b = math.sqrt(sum(y * y for y in b))
	if norm_a == 0 or norm_b == 0 or math.isnan(dot):
		return 0.0
	return dot / (norm_a * norm_b)


def binary_vectors(a: Any, b: Any) -> tuple[list[int], list[int]]:
	"""0/1 membership vectors of both term sets over their union."""
	terms_a = normalize_terms(a) or []
	terms_b = normalize_terms(b) or []
	universe = list(dict.fromkeys(terms_a + terms_b))
	set_a, set_b = set(terms_a), set(terms_b)
	return (
		[1 if term in set_a else 0 for term in universe],
		[1 if term in set_b else 0 for term in universe],
	)


def term_cosine(a: Any, b: Any) -> float:
	return cosine(*binary_vectors(a, b))


def blended_similarity(
	a: Any,
	b: Any,
	*,
	jaccard_weight: float = SKILL_JACCARD_WEIGHT,
	cosine_weight: float = SKILL_COSINE_WEIGHT,
) -> tuple[float, float, float]:
	"""Return (blend, jaccard, cosine) for two term sets."""
	j = jaccard(a, b)
	c = term_cosine(a, b)
	return j * jaccard_weight + c * cosine_weight, j, c


def shared_terms(a: Any, b: Any) -> list[str]:
	"""Items of `a` (original spelling, trimmed) that also appear in `b`."""
	terms_b = set(normalize_terms(b) or [])
	if not terms_b or normalize_terms(a) is None:
		return []
	shared: dict[str, str] = {}
	for item in a:
		if item is None:
			continue
		term = normalize_term(item)
		if term in terms_b and term not in shared:
			shared[term] = str(item).strip()
	return list(shared.values())


def dept_score(a: Any, b: Any) -> float:
	"""1 when both departments are present and equal, else 0."""
	if not isinstance(a, str) or not isinstance(b, str) or not a or not b:
		return 0.0
	return 1.0 if a == b else 0.0


def _id_index(values: Any) -> Optional[dict[str, Any]]:
	if values is None or isinstance(values, (str, bytes)):
		return None
	try:
		items = list(values)
	except TypeError:
		return None
	return {str(item).strip(): item for item in items if item is not None and str(item).strip()}


def id_jaccard(a: Any, b: Any) -> float:
	"""Jaccard over identifier sets. Ids are compared exactly, never case-folded."""
	index_a = _id_index(a)
	index_b = _id_index(b)
	if not index_a or not index_b:
		return 0.0
	set_a, set_b = set(index_a), set(index_b)
	return len(set_a & set_b) / len(set_a | set_b)


async def _lookup_degree(degree_of: DegreeLookup, friend_id: Any) -> int:
	try:
		result = degree_of(friend_id)
		if inspect.isawaitable(result):
			result = await result
		return int(result)
	except Exception:
		logger.warning("degree lookup failed; contributing 0", extra={"friend_id": str(friend_id)}, exc_info=True)
		obs_metrics.inc_lookup_failure("degree")
		return 0


async def adamic_adar(friends_a: Any, friends_b: Any, degree_of: Optional[DegreeLookup]) -> float:
	"""Sum of 1/ln(degree) over mutual friends, skipping degrees <= 1.

	Degree lookups for the mutual friends run concurrently; a failed lookup
	contributes 0 and is logged.
	"""
	index_a = _id_index(friends_a)
	index_b = _id_index(friends_b)
	if not index_a or not index_b or degree_of is None:
		return 0.0
	mutual = [raw for key, raw in index_a.items() if key in index_b]
	if not mutual:
		return 0.0
	degrees = await asyncio.gather(*(_lookup_degree(degree_of, friend_id) for friend_id in mutual))
	return sum(1.0 / math.log(degree) for degree in degrees if degree > 1)

"""Composite scoring for the three recommendation domains.

Weight profiles are plain ``{metric: weight}`` maps. The numeric constants here
(weights, bonuses, blend factors) are tuned heuristics; orchestrators accept
overrides rather than treating them as fixed.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Union

from campuslink.domain.matching import similarity
from campuslink.domain.matching.models import NEUTRAL_FEEDBACK_SCORE, Profile, Project, SimilarityMetrics
from campuslink.domain.matching.schemas import MatchBreakdown, ProjectMatchScore, TeamBreakdown, TeamCompatibility

FRIEND_WEIGHTS: Mapping[str, float] = {
	"jaccard": 0.3,
	"adamic_adar": 0.2,
	"dept_score": 0.1,
	"skill_similarity": 0.2,
	"interest_similarity": 0.2,
}

PROJECT_WEIGHTS: Mapping[str, float] = {
	"skills": 0.5,
	"interests": 0.3,
	"feedback": 0.2,
}

TEAM_WEIGHTS: Mapping[str, float] = {
	"skills": 0.5,
	"interests": 0.5,
}

UNIVERSITY_BONUS = 0.10
DEPARTMENT_RELEVANCE_BONUS = 0.05
DEPARTMENT_DIVERSITY_BONUS = 0.05
SAME_DEPARTMENT_BONUS = 0.03

# department -> category keywords that count as relevant
DEPARTMENT_KEYWORDS: Mapping[str, tuple[str, ...]] = {
	"computer science": ("web", "mobile", "ai", "machine learning", "software", "data", "app"),
	"information technology": ("web", "software", "network", "security", "cloud"),
	"engineering": ("hardware", "robotics", "iot", "embedded", "research"),
	"design": ("ui", "ux", "design", "graphics", "creative"),
	"business": ("startup", "marketing", "business", "finance", "entrepreneurship"),
	"mathematics": ("data", "research", "analytics", "finance"),
}


def validate_weights(weights: Mapping[str, float], expected: Iterable[str]) -> dict[str, float]:
	"""Return a float copy of `weights`, rejecting a metric set that differs from `expected`."""
	names = set(expected)
	given = set(weights)
	if given != names:
		missing = sorted(names - given)
		unknown = sorted(given - names)
		raise ValueError(f"weight profile mismatch: missing={missing} unknown={unknown}")
	return {name: float(weights[name]) for name in weights}


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
	if value != value:  # NaN
		return low
	return max(low, min(high, value))


def _number(value: Any) -> float:
	try:
		result = float(value)
	except (TypeError, ValueError):
		return 0.0
	if math.isnan(result) or math.isinf(result):
		return 0.0
	return result


def composite_score(
	metrics: Union[SimilarityMetrics, Mapping[str, float]],
	weights: Optional[Mapping[str, float]] = None,
) -> float:
	"""Weighted linear sum of `metrics`, clamped to [0, 1].

	A metric named in `weights` but absent from `metrics` contributes 0.
	"""
	values = metrics.as_mapping() if isinstance(metrics, SimilarityMetrics) else dict(metrics)
	profile = FRIEND_WEIGHTS if weights is None else weights
	total = 0.0
	for name, weight in profile.items():
		total += _number(weight) * _number(values.get(name, 0.0))
	return clamp(total)


def apply_bonuses(base: float, *bonuses: float) -> float:
	"""Add bonuses first, clamp once at the end; saturation at 1.0 is expected."""
	return clamp(_number(base) + sum(_number(bonus) for bonus in bonuses))


def same_university(a: Optional[str], b: Optional[str]) -> bool:
	if not a or not b:
		return False
	return similarity.normalize_term(a) == similarity.normalize_term(b)


def university_key(value: Optional[str]) -> Optional[str]:
	if not isinstance(value, str):
		return None
	return similarity.normalize_term(value) or None


def in_same_pool(a: Optional[str], b: Optional[str]) -> bool:
	"""Candidate-pool membership: a missing university only pools with another missing one."""
	return university_key(a) == university_key(b)


def department_relevant(department: Optional[str], category: Optional[str]) -> bool:
	"""Keyword map lookup first, then substring containment either way."""
	if not department or not category:
		return False
	dept = similarity.normalize_term(department)
	cat = similarity.normalize_term(category)
	if not dept or not cat:
		return False
	keywords = DEPARTMENT_KEYWORDS.get(dept, ())
	if any(keyword in cat for keyword in keywords):
		return True
	return cat in dept or dept in cat


def project_match_score(
	profile: Profile,
	project: Project,
	*,
	feedback: float = NEUTRAL_FEEDBACK_SCORE,
	weights: Optional[Mapping[str, float]] = None,
) -> ProjectMatchScore:
	profile_weights = PROJECT_WEIGHTS if weights is None else weights
	skills, skills_jaccard, skills_cosine = similarity.blended_similarity(profile.skills, project.required_skills)
	interests = similarity.jaccard(profile.interests, project.preferred_interests)
	feedback_value = clamp(_number(feedback))
	base = composite_score(
		{"skills": skills, "interests": interests, "feedback": feedback_value},
		profile_weights,
	)

	university_match = same_university(profile.university, project.university)
	relevance = department_relevant(profile.department, project.category)
	university_bonus = UNIVERSITY_BONUS if university_match else 0.0
	department_bonus = DEPARTMENT_RELEVANCE_BONUS if relevance else 0.0

	return ProjectMatchScore(
		overall=apply_bonuses(base, university_bonus, department_bonus),
		skills=skills,
		interests=interests,
		feedback=feedback_value,
		bonus=university_bonus + department_bonus,
		breakdown=MatchBreakdown(
			skills_jaccard=skills_jaccard,
			skills_cosine=skills_cosine,
			university_match=university_match,
			department_relevance=relevance,
			university_bonus=university_bonus,
			department_bonus=department_bonus,
		),
	)


def team_compatibility_score(
	user: Profile,
	candidate: Profile,
	*,
	weights: Optional[Mapping[str, float]] = None,
) -> TeamCompatibility:
	profile_weights = TEAM_WEIGHTS if weights is None else weights
	skills, skills_jaccard, skills_cosine = similarity.blended_similarity(user.skills, candidate.skills)
	interests, interests_jaccard, interests_cosine = similarity.blended_similarity(user.interests, candidate.interests)
	base = composite_score({"skills": skills, "interests": interests}, profile_weights)

	university_match = same_university(user.university, candidate.university)
	both_departments = bool(user.department) and bool(candidate.department)
	same_department = both_departments and user.department == candidate.department
	diverse = both_departments and not same_department

	university_bonus = UNIVERSITY_BONUS if university_match else 0.0
	diversity_bonus = DEPARTMENT_DIVERSITY_BONUS if diverse else 0.0
	same_department_bonus = SAME_DEPARTMENT_BONUS if same_department else 0.0

	return TeamCompatibility(
		overall=apply_bonuses(base, university_bonus, diversity_bonus, same_department_bonus),
		skills=skills,
		interests=interests,
		breakdown=TeamBreakdown(
			skills_jaccard=skills_jaccard,
			skills_cosine=skills_cosine,
			interests_jaccard=interests_jaccard,
			interests_cosine=interests_cosine,
			university_match=university_match,
			department_diversity=diverse,
			department_similarity=same_department,
			university_bonus=university_bonus,
			department_diversity_bonus=diversity_bonus,
			department_similarity_bonus=same_department_bonus,
		),
	)

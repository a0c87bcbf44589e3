"""Human-readable, deterministic explanations attached to every recommendation.

Each builder returns a non-empty list: when no band triggers a single fallback
line is emitted.
"""

from __future__ import annotations

from typing import Sequence

from campuslink.domain.matching.models import FriendshipStatus, SimilarityMetrics
from campuslink.domain.matching.schemas import ProjectMatchScore, TeamCompatibility

MAX_TEAM_REASONS = 4
NAMED_OVERLAP = 2


def _named(label: str, names: Sequence[str]) -> str:
	return f"{label}: {', '.join(names[:NAMED_OVERLAP])}"


def friend_reasons(
	metrics: SimilarityMetrics,
	*,
	mutual_count: int = 0,
	same_university: bool = False,
	status: FriendshipStatus = FriendshipStatus.NONE,
) -> list[str]:
	reasons: list[str] = []
	if status is FriendshipStatus.PENDING_RECEIVED:
		reasons.append("Sent you a friend request")
	elif status is FriendshipStatus.PENDING_SENT:
		reasons.append("Friend request pending")

	if mutual_count == 1:
		reasons.append("1 mutual friend")
	elif mutual_count > 1:
		reasons.append(f"{mutual_count} mutual friends")

	if metrics.skill_similarity > 0.6:
		reasons.append("Similar technical skills")
	elif metrics.skill_similarity > 0.3:
		reasons.append("Complementary skills")

	if metrics.interest_similarity > 0.5:
		reasons.append("Shared interests and passions")

	if same_university:
		reasons.append("Same university - easy to meet")

	if metrics.dept_score >= 1.0:
		reasons.append("Same department")

	if not reasons:
		reasons.append("Potential for meaningful connection")
	return reasons


def project_reasons(score: ProjectMatchScore) -> list[str]:
	reasons: list[str] = []
	if score.skills > 0.7:
		reasons.append("Strong skill match")
	elif score.skills > 0.4:
		reasons.append("Good skill compatibility")
	elif score.skills > 0.1:
		reasons.append("Some relevant skills")

	if score.interests > 0.5:
		reasons.append("Shared interests")
	elif score.interests > 0.2:
		reasons.append("Similar interests")

	if score.feedback > 0.7:
		reasons.append("Excellent peer ratings")
	elif score.feedback > 0.6:
		reasons.append("Good collaboration history")

	if score.breakdown.university_match:
		reasons.append("Same university")
	if score.breakdown.department_relevance:
		reasons.append("Relevant department")

	if not reasons:
		reasons.append("Potential for growth")
	return reasons


def team_reasons(
	score: TeamCompatibility,
	*,
	shared_skills: Sequence[str] = (),
	shared_interests: Sequence[str] = (),
) -> list[str]:
	reasons: list[str] = []
	if score.skills > 0.7:
		reasons.append("Excellent skill synergy")
	elif score.skills > 0.4:
		reasons.append("Good skill compatibility")
	elif score.skills > 0.1:
		reasons.append("Complementary skills")

	if score.interests > 0.6:
		reasons.append("Strong shared interests")
	elif score.interests > 0.3:
		reasons.append("Similar project interests")

	breakdown = score.breakdown
	if breakdown.university_match:
		reasons.append("Same university")
	if breakdown.department_diversity:
		reasons.append("Diverse expertise")
	if breakdown.department_similarity:
		reasons.append("Shared domain knowledge")

	if shared_skills:
		reasons.append(_named("Shared skills", shared_skills))
	if shared_interests:
		reasons.append(_named("Common interests", shared_interests))

	if not reasons:
		reasons.append("Potential for collaboration")
	return reasons[:MAX_TEAM_REASONS]

import pytest

from campuslink.domain.matching import scoring
from campuslink.domain.matching.models import Profile, Project, SimilarityMetrics


def test_friend_weights_sum_to_one():
	assert sum(scoring.FRIEND_WEIGHTS.values()) == pytest.approx(1.0)
	assert sum(scoring.PROJECT_WEIGHTS.values()) == pytest.approx(1.0)
	assert sum(scoring.TEAM_WEIGHTS.values()) == pytest.approx(1.0)


def test_composite_score_weighted_sum():
	metrics = SimilarityMetrics(jaccard=0.5, adamic_adar=0.0, dept_score=1.0, skill_similarity=0.25, interest_similarity=0.0)
	assert scoring.composite_score(metrics) == pytest.approx(0.3 * 0.5 + 0.1 * 1.0 + 0.2 * 0.25)


def test_composite_score_is_clamped():
	metrics = SimilarityMetrics(jaccard=1.0, adamic_adar=9.0, dept_score=1.0, skill_similarity=1.0, interest_similarity=1.0)
	assert scoring.composite_score(metrics) == 1.0
	assert scoring.composite_score(SimilarityMetrics()) == 0.0


def test_composite_score_accepts_custom_profile_and_mapping():
	weights = {"skills": 0.5, "interests": 0.5}
	assert scoring.composite_score({"skills": 1.0, "interests": 0.2}, weights) == pytest.approx(0.6)
	# missing or malformed metric contributes nothing
	assert scoring.composite_score({"skills": "n/a"}, weights) == 0.0


def test_validate_weights_rejects_a_different_metric_set():
	with pytest.raises(ValueError):
		scoring.validate_weights({"skills": 1.0}, scoring.PROJECT_WEIGHTS)
	assert scoring.validate_weights({"skills": 1, "interests": 0, "feedback": 0}, scoring.PROJECT_WEIGHTS)["skills"] == 1.0


def test_bonuses_added_before_clamp():
	assert scoring.apply_bonuses(0.95, 0.10, 0.05) == 1.0
	assert scoring.apply_bonuses(0.5, 0.10) == pytest.approx(0.6)


def test_department_relevance_keyword_and_substring():
	assert scoring.department_relevant("Computer Science", "web-development")
	assert scoring.department_relevant("Design", "design")
	assert scoring.department_relevant("Research Methods", "research")
	assert not scoring.department_relevant("Business", "robotics")
	assert not scoring.department_relevant(None, "web-development")


def _project(**overrides):
	fields = dict(
		id="p1",
		title="Campus Marketplace",
		university="Tech University",
		category="other",
		required_skills=("python", "sql"),
		preferred_interests=("startups",),
	)
	fields.update(overrides)
	return Project(**fields)


def test_project_skill_jaccard_is_case_insensitive():
	user = Profile(id="u1", skills=("Python", "React"))
	score = scoring.project_match_score(user, _project(university=None))
	assert score.breakdown.skills_jaccard == pytest.approx(1 / 3)
	assert score.breakdown.skills_cosine == pytest.approx(0.5)
	assert score.skills == pytest.approx(0.6 / 3 + 0.4 * 0.5)


def test_university_bonus_reflected_in_overall():
	same = Profile(id="u1", university="Tech University", skills=("python",), interests=("startups",))
	other = Profile(id="u2", university="Other College", skills=("python",), interests=("startups",))

	score_same = scoring.project_match_score(same, _project())
	score_other = scoring.project_match_score(other, _project())

	assert score_same.breakdown.university_match is True
	assert score_other.breakdown.university_match is False
	assert score_same.breakdown.university_bonus == pytest.approx(0.10)
	assert score_same.overall - score_other.overall == pytest.approx(0.10)


def test_project_score_saturates_at_one():
	user = Profile(
		id="u1",
		university="Tech University",
		department="Computer Science",
		skills=("python", "sql"),
		interests=("startups",),
	)
	score = scoring.project_match_score(user, _project(category="web-development"), feedback=1.0)
	assert score.breakdown.department_relevance is True
	assert score.bonus == pytest.approx(0.15)
	assert score.overall == 1.0


def test_project_score_uses_neutral_feedback_by_default():
	score = scoring.project_match_score(Profile(id="u1"), _project(university=None))
	assert score.feedback == 0.5
	assert score.overall == pytest.approx(0.2 * 0.5)


def test_team_department_bonuses_are_exclusive():
	base = dict(university=None, skills=("python",), interests=("ai",))
	diverse = scoring.team_compatibility_score(
		Profile(id="a", department="CS", **base), Profile(id="b", department="Design", **base)
	)
	same = scoring.team_compatibility_score(
		Profile(id="a", department="CS", **base), Profile(id="b", department="CS", **base)
	)
	missing = scoring.team_compatibility_score(Profile(id="a", department="CS", **base), Profile(id="b", **base))

	assert diverse.breakdown.department_diversity and not diverse.breakdown.department_similarity
	assert same.breakdown.department_similarity and not same.breakdown.department_diversity
	assert not missing.breakdown.department_diversity and not missing.breakdown.department_similarity
	assert diverse.overall == 1.0
	assert missing.overall == pytest.approx(1.0)


def test_team_score_blends_interests_too():
	score = scoring.team_compatibility_score(
		Profile(id="a", skills=("python",), interests=("AI", "Art")),
		Profile(id="b", skills=("go",), interests=("ai",)),
	)
	assert score.skills == 0.0
	assert score.breakdown.interests_jaccard == pytest.approx(0.5)
	assert score.overall == pytest.approx(0.5 * score.interests)

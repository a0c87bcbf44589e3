import pytest
from pydantic import ValidationError

from campuslink.domain.matching.adapters import coerce_terms, profile_from_payload, project_from_payload
from campuslink.domain.matching.models import ProjectStatus


def test_profile_accepts_alternate_field_names():
	profile = profile_from_payload(
		{
			"_id": 42,
			"name": " Ada ",
			"university": "Tech University",
			"major": "",
			"technicalSkills": ["Python", " python ", "SQL", ""],
			"areasOfInterest": "AI, Startups",
			"friends": [{"_id": "b"}, {"id": "c"}, "d", None, 42],
		}
	)

	assert profile.id == "42"
	assert profile.display_name == "Ada"
	assert profile.department is None
	assert profile.skills == ("Python", "SQL")
	assert profile.interests == ("AI", "Startups")
	assert profile.friend_ids == frozenset({"b", "c", "d"})


def test_profile_skills_as_json_string():
	profile = profile_from_payload({"id": "u1", "skills": '["Go", "Rust", "go"]'})
	assert profile.skills == ("Go", "Rust")


def test_profile_without_id_is_rejected():
	with pytest.raises(ValidationError):
		profile_from_payload({"name": "nobody"})


def test_project_accepts_skill_requirement_documents_and_member_objects():
	project = project_from_payload(
		{
			"_id": "p1",
			"title": "Marketplace",
			"university": "Tech University",
			"category": "web-development",
			"skillRequirements": [{"skill": "Python"}, {"skill": "SQL"}],
			"tags": ["Startups"],
			"creator": {"_id": "owner"},
			"currentMembers": [{"user": "owner"}, {"user": {"_id": "m1"}}, "m2"],
			"maxMembers": 6,
			"status": "in-progress",
		}
	)

	assert project.required_skills == ("Python", "SQL")
	assert project.preferred_interests == ("Startups",)
	assert project.creator_id == "owner"
	assert project.current_member_ids == frozenset({"owner", "m1", "m2"})
	assert project.max_members == 6
	assert project.status is ProjectStatus.IN_PROGRESS


def test_project_prefers_required_skills_over_generic_skills():
	project = project_from_payload({"id": "p", "requiredSkills": ["A"], "skills": ["B"]})
	assert project.required_skills == ("A",)
	assert project.status is ProjectStatus.RECRUITING
	assert project.max_members == 4


def test_project_rejects_unknown_status():
	with pytest.raises(ValidationError):
		project_from_payload({"id": "p", "status": "archived"})


@pytest.mark.parametrize(
	"raw, expected",
	[
		(None, ()),
		(17, ()),
		("", ()),
		(["a", None, "A", "b"], ("a", "b")),
		([{"name": "UX"}], ("UX",)),
		('["x", "y"', ("x", "y")),
	],
)
def test_coerce_terms(raw, expected):
	assert coerce_terms(raw) == expected

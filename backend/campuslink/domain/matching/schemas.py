"""Pydantic schemas for recommendation output.

Results are plain data: every model dumps to JSON without custom encoders so the
surrounding application can ship them over whatever transport it uses.
"""

from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from campuslink.domain.matching.models import Profile, Project

ItemT = TypeVar("ItemT")

FriendshipStatusLiteral = Literal["none", "pending_sent", "pending_received", "blocked", "accepted"]


class _Frozen(BaseModel):
	model_config = ConfigDict(frozen=True)


class ProfileCard(_Frozen):
	id: str
	display_name: str = ""
	university: Optional[str] = None
	department: Optional[str] = None
	skills: list[str] = Field(default_factory=list)
	interests: list[str] = Field(default_factory=list)

	@classmethod
	def from_profile(cls, profile: Profile) -> "ProfileCard":
		return cls(
			id=profile.id,
			display_name=profile.display_name,
			university=profile.university,
			department=profile.department,
			skills=list(profile.skills),
			interests=list(profile.interests),
		)


class ProjectCard(_Frozen):
	id: str
	title: str = ""
	university: Optional[str] = None
	category: Optional[str] = None
	required_skills: list[str] = Field(default_factory=list)
	preferred_interests: list[str] = Field(default_factory=list)
	status: str = "recruiting"
	open_slots: int = 0

	@classmethod
	def from_project(cls, project: Project) -> "ProjectCard":
		return cls(
			id=project.id,
			title=project.title,
			university=project.university,
			category=project.category,
			required_skills=list(project.required_skills),
			preferred_interests=list(project.preferred_interests),
			status=project.status.value,
			open_slots=project.open_slots,
		)


class MutualFriend(_Frozen):
	id: str
	display_name: str = ""


class SimilarityScore(_Frozen):
	jaccard: float = Field(default=0.0, ge=0.0, le=1.0)
	adamic_adar: float = Field(default=0.0, ge=0.0)
	dept_score: float = Field(default=0.0, ge=0.0, le=1.0)
	skill_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
	interest_similarity: float = Field(default=0.0, ge=0.0, le=1.0)


class PairSimilarity(_Frozen):
	user_id: str
	other_id: str
	metrics: SimilarityScore
	composite: float = Field(ge=0.0, le=1.0)


class FriendRecommendation(_Frozen):
	candidate: ProfileCard
	metrics: SimilarityScore
	composite: float = Field(ge=0.0, le=1.0)
	mutual_friends: list[MutualFriend] = Field(default_factory=list)
	friendship_status: FriendshipStatusLiteral = "none"
	reasons: list[str] = Field(min_length=1)


class MatchBreakdown(_Frozen):
	skills_jaccard: float = 0.0
	skills_cosine: float = 0.0
	university_match: bool = False
	department_relevance: bool = False
	university_bonus: float = 0.0
	department_bonus: float = 0.0


class ProjectMatchScore(_Frozen):
	overall: float = Field(default=0.0, ge=0.0, le=1.0)
	skills: float = 0.0
	interests: float = 0.0
	feedback: float = 0.0
	bonus: float = 0.0
	breakdown: MatchBreakdown = Field(default_factory=MatchBreakdown)


class CollaboratorMatch(_Frozen):
	candidate: ProfileCard
	score: ProjectMatchScore
	reasons: list[str] = Field(min_length=1)


class ProjectSuggestion(_Frozen):
	project: ProjectCard
	score: ProjectMatchScore
	reasons: list[str] = Field(min_length=1)


class TeamBreakdown(_Frozen):
	skills_jaccard: float = 0.0
	skills_cosine: float = 0.0
	interests_jaccard: float = 0.0
	interests_cosine: float = 0.0
	university_match: bool = False
	department_diversity: bool = False
	department_similarity: bool = False
	university_bonus: float = 0.0
	department_diversity_bonus: float = 0.0
	department_similarity_bonus: float = 0.0


class TeamCompatibility(_Frozen):
	overall: float = Field(default=0.0, ge=0.0, le=1.0)
	skills: float = 0.0
	interests: float = 0.0
	breakdown: TeamBreakdown = Field(default_factory=TeamBreakdown)


class TeammateRecommendation(_Frozen):
	candidate: ProfileCard
	score: TeamCompatibility
	reasons: list[str] = Field(min_length=1)


class TeamMemberPick(_Frozen):
	candidate: ProfileCard
	score: ProjectMatchScore
	team_value: float
	new_skills_added: list[str] = Field(default_factory=list)
	team_compatibility: float


class TeamComposition(_Frozen):
	members: list[TeamMemberPick] = Field(default_factory=list)
	team_size: int = 0
	skill_coverage: float = 0.0
	average_compatibility: float = 0.0


class RecommendationResult(BaseModel, Generic[ItemT]):
	success: bool = True
	count: int = 0
	data: list[ItemT] = Field(default_factory=list)
	source: Literal["cache", "algorithm", "empty"] = "algorithm"
	message: Optional[str] = None

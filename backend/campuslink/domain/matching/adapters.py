"""Boundary adapters: heterogeneous external payloads -> canonical Profile/Project.

Upstream stores disagree on field names (``skills`` vs ``technicalSkills``,
``requiredSkills`` vs ``skillRequirements[].skill``, friends as ids or embedded
documents). Everything is resolved here so the scorers only ever see one shape.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from campuslink.domain.matching.models import Profile, Project, ProjectStatus


def _id_of(value: Any) -> Optional[str]:
	if value is None:
		return None
	if isinstance(value, Mapping):
		for key in ("_id", "id", "user", "user_id", "userId"):
			if value.get(key) is not None:
				return _id_of(value[key])
		return None
	text = str(value).strip()
	return text or None


def coerce_terms(value: Any) -> tuple[str, ...]:
	"""Trimmed terms, first spelling kept, duplicates dropped case-insensitively.

	Accepts a list, a JSON-encoded list, a comma separated string, or a list of
	``{"skill": ...}`` / ``{"name": ...}`` documents.
	"""
	if value is None:
		return ()
	if isinstance(value, str):
		text = value.strip()
		if text.startswith("["):
			try:
				value = json.loads(text)
			except ValueError:
				value = text.strip("[]").split(",")
		else:
			value = text.split(",")
	elif isinstance(value, Mapping):
		value = [value]
	try:
		items = list(value)
	except TypeError:
		return ()
	terms: dict[str, str] = {}
	for item in items:
		if isinstance(item, Mapping):
			item = item.get("skill") or item.get("name") or item.get("interest")
		if item is None:
			continue
		text = str(item).strip().strip('"').strip()
		if text:
			terms.setdefault(text.casefold(), text)
	return tuple(terms.values())


def coerce_ids(value: Any) -> frozenset[str]:
	if value is None or isinstance(value, (str, bytes)):
		return frozenset()
	try:
		items = list(value)
	except TypeError:
		return frozenset()
	return frozenset(filter(None, (_id_of(item) for item in items)))


def _blank_to_none(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


class ProfilePayload(BaseModel):
	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: str = Field(validation_alias=AliasChoices("id", "_id", "userId", "user_id"))
	display_name: str = Field(default="", validation_alias=AliasChoices("display_name", "displayName", "name", "username"))
	university: Optional[str] = Field(default=None, validation_alias=AliasChoices("university", "school"))
	department: Optional[str] = Field(default=None, validation_alias=AliasChoices("department", "major"))
	skills: tuple[str, ...] = Field(default=(), validation_alias=AliasChoices("skills", "technicalSkills", "technical_skills"))
	interests: tuple[str, ...] = Field(
		default=(), validation_alias=AliasChoices("interests", "areasOfInterest", "areas_of_interest")
	)
	friends: frozenset[str] = Field(default=frozenset(), validation_alias=AliasChoices("friends", "friendIds", "friend_ids"))

	@field_validator("id", mode="before")
	@classmethod
	def _coerce_id(cls, value: Any) -> Any:
		return _id_of(value) or value

	@field_validator("display_name", mode="before")
	@classmethod
	def _coerce_name(cls, value: Any) -> str:
		return "" if value is None else str(value).strip()

	@field_validator("university", "department", mode="before")
	@classmethod
	def _coerce_optional(cls, value: Any) -> Optional[str]:
		return _blank_to_none(value)

	@field_validator("skills", "interests", mode="before")
	@classmethod
	def _coerce_terms(cls, value: Any) -> tuple[str, ...]:
		return coerce_terms(value)

	@field_validator("friends", mode="before")
	@classmethod
	def _coerce_friends(cls, value: Any) -> frozenset[str]:
		return coerce_ids(value)

	def to_profile(self) -> Profile:
		return Profile(
			id=self.id,
			display_name=self.display_name,
			university=self.university,
			department=self.department,
			skills=self.skills,
			interests=self.interests,
			friend_ids=self.friends - {self.id},
		)


class ProjectPayload(BaseModel):
	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: str = Field(validation_alias=AliasChoices("id", "_id", "projectId", "project_id"))
	title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
	university: Optional[str] = None
	category: Optional[str] = None
	required_skills: tuple[str, ...] = Field(
		default=(),
		validation_alias=AliasChoices("required_skills", "requiredSkills", "skills", "skillRequirements"),
	)
	preferred_interests: tuple[str, ...] = Field(
		default=(),
		validation_alias=AliasChoices("preferred_interests", "preferredInterests", "interests", "categories", "tags"),
	)
	creator_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("creator_id", "creator", "createdBy"))
	current_member_ids: frozenset[str] = Field(
		default=frozenset(),
		validation_alias=AliasChoices("current_member_ids", "currentMembers", "members"),
	)
	max_members: int = Field(default=4, ge=1, validation_alias=AliasChoices("max_members", "maxMembers"))
	status: ProjectStatus = ProjectStatus.RECRUITING

	@field_validator("id", mode="before")
	@classmethod
	def _coerce_id(cls, value: Any) -> Any:
		return _id_of(value) or value

	@field_validator("creator_id", mode="before")
	@classmethod
	def _coerce_creator(cls, value: Any) -> Optional[str]:
		return _id_of(value)

	@field_validator("title", mode="before")
	@classmethod
	def _coerce_title(cls, value: Any) -> str:
		return "" if value is None else str(value).strip()

	@field_validator("university", "category", mode="before")
	@classmethod
	def _coerce_optional(cls, value: Any) -> Optional[str]:
		return _blank_to_none(value)

	@field_validator("required_skills", "preferred_interests", mode="before")
	@classmethod
	def _coerce_terms(cls, value: Any) -> tuple[str, ...]:
		return coerce_terms(value)

	@field_validator("current_member_ids", mode="before")
	@classmethod
	def _coerce_members(cls, value: Any) -> frozenset[str]:
		return coerce_ids(value)

	@field_validator("status", mode="before")
	@classmethod
	def _coerce_status(cls, value: Any) -> Any:
		if value is None:
			return ProjectStatus.RECRUITING
		if isinstance(value, str):
			return value.strip().lower().replace("-", "_").replace(" ", "_")
		return value

	def to_project(self) -> Project:
		return Project(
			id=self.id,
			title=self.title,
			university=self.university,
			category=self.category,
			required_skills=self.required_skills,
			preferred_interests=self.preferred_interests,
			creator_id=self.creator_id,
			current_member_ids=self.current_member_ids,
			max_members=self.max_members,
			status=self.status,
		)


def profile_from_payload(payload: Mapping[str, Any]) -> Profile:
	"""Raises ``pydantic.ValidationError`` (a ``ValueError``) when no id is present."""
	return ProfilePayload.model_validate(payload).to_profile()


def project_from_payload(payload: Mapping[str, Any]) -> Project:
	return ProjectPayload.model_validate(payload).to_project()

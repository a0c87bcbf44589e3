import argparse
import asyncio
import json
import os
import sys

# Ensure backend path is in sys.path
if os.path.exists("backend"):
    sys.path.append(os.path.join(os.getcwd(), "backend"))
else:
    sys.path.append(os.getcwd())

from campuslink import obs
from campuslink.domain.matching import (
    FriendRecommender,
    InMemoryDirectory,
    InMemoryTTLCache,
    ProjectMatcher,
    TeamRecommender,
)
from campuslink.domain.matching.adapters import profile_from_payload, project_from_payload
from campuslink.domain.matching.models import EdgeStatus

USERS = [
    {"_id": "alice", "name": "Alice", "university": "Tech University", "department": "Computer Science",
     "skills": ["Python", "SQL", "React"], "interests": ["AI", "Startups"]},
    {"_id": "bob", "name": "Bob", "university": "Tech University", "department": "Computer Science",
     "technicalSkills": ["Java", "SQL"], "areasOfInterest": ["Gaming"]},
    {"_id": "carol", "name": "Carol", "university": "Tech University", "department": "Design",
     "skills": "[\"Figma\", \"UX\"]", "interests": ["AI", "Art"]},
    {"_id": "dave", "name": "Dave", "university": "Tech University", "department": "Computer Science",
     "skills": ["python", "Docker", "SQL"], "interests": ["ai"]},
    {"_id": "erin", "name": "Erin", "university": "Tech University", "department": "Business",
     "skills": ["Marketing"], "interests": ["Startups"]},
    {"_id": "frank", "name": "Frank", "university": "Tech University", "department": "Mathematics",
     "skills": ["R", "Statistics", "Python"], "interests": ["Data"]},
]

FRIENDSHIPS = [("alice", "bob"), ("alice", "carol"), ("bob", "dave"), ("carol", "dave"), ("carol", "erin")]

PROJECTS = [
    {"_id": "p1", "title": "Campus Marketplace", "university": "Tech University", "category": "web-development",
     "requiredSkills": ["Python", "React", "SQL"], "preferredInterests": ["Startups"], "creator": "erin",
     "currentMembers": [{"user": "erin"}], "maxMembers": 4, "status": "recruiting"},
    {"_id": "p2", "title": "Course Analytics", "university": "Tech University", "category": "data-science",
     "skillRequirements": [{"skill": "Statistics"}, {"skill": "Python"}], "tags": ["Data", "AI"],
     "creator": "frank", "currentMembers": ["frank"], "maxMembers": 3, "status": "in-progress"},
]


def build_directory() -> InMemoryDirectory:
    directory = InMemoryDirectory()
    for payload in USERS:
        directory.add_user(profile_from_payload(payload))
    for requester, recipient in FRIENDSHIPS:
        directory.connect(requester, recipient)
    directory.connect("frank", "alice", EdgeStatus.PENDING)
    directory.connect("bob", "frank")
    for payload in PROJECTS:
        directory.add_project(project_from_payload(payload))
    directory.set_feedback("dave", 0.9)
    return directory


async def main(user_id: str, limit: int) -> None:
    obs.init()
    directory = build_directory()
    cache = InMemoryTTLCache()

    friends = FriendRecommender(directory, cache=cache)
    matcher = ProjectMatcher(directory, directory, cache=cache)
    teams = TeamRecommender(directory, directory, cache=cache)

    sections = {
        "friends": await friends.recommend(user_id, limit=limit),
        "projects": await matcher.match_projects_for_user(user_id, limit=limit),
        "collaborators_p1": await matcher.match_users_for_project("p1", limit=limit),
        "teammates": await teams.recommend_teammates(user_id, limit=limit),
        "team_p1": await teams.recommend_team_composition("p1"),
    }
    for name, result in sections.items():
        print(f"== {name} ==")
        print(json.dumps(result.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print sample recommendations from an in-memory directory")
    parser.add_argument("--user", default="alice")
    parser.add_argument("--limit", type=int, default=5)
    args = parser.parse_args()
    asyncio.run(main(args.user, args.limit))

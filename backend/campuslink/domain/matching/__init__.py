"""Recommendation and matching engine: friends, projects and teammates."""

from campuslink.domain.matching.cache import InMemoryTTLCache, NullCache, RedisRecommendationCache
from campuslink.domain.matching.exceptions import (
	InvalidSeedError,
	MatchingError,
	MetricComputationError,
	TraversalLookupError,
)
from campuslink.domain.matching.friends import FriendRecommender
from campuslink.domain.matching.models import FriendshipStatus, Profile, Project, ProjectStatus, SimilarityMetrics
from campuslink.domain.matching.projects import ProjectMatcher
from campuslink.domain.matching.providers import CandidateFilter, InMemoryDirectory
from campuslink.domain.matching.teams import TeamRecommender
from campuslink.domain.matching.topk import TopKSelector

__all__ = [
	"CandidateFilter",
	"FriendRecommender",
	"FriendshipStatus",
	"InMemoryDirectory",
	"InMemoryTTLCache",
	"InvalidSeedError",
	"MatchingError",
	"MetricComputationError",
	"NullCache",
	"Profile",
	"Project",
	"ProjectMatcher",
	"ProjectStatus",
	"RedisRecommendationCache",
	"SimilarityMetrics",
	"TeamRecommender",
	"TopKSelector",
	"TraversalLookupError",
]

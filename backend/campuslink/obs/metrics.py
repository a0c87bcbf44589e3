"""Central registry for Prometheus metrics used by the recommendation engine."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

RECS_PASSES = Counter(
	"campuslink_recs_passes_total",
	"Recommendation passes served",
	["domain", "source"],
)

RECS_PASS_DURATION = Histogram(
	"campuslink_recs_pass_duration_seconds",
	"Wall time of a full recommendation pass",
	["domain"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

RECS_CANDIDATES = Counter(
	"campuslink_recs_candidates_total",
	"Candidates seen by the recommenders, by outcome",
	["domain", "outcome"],
)

RECS_LOOKUP_FAILURES = Counter(
	"campuslink_recs_lookup_failures_total",
	"Collaborator lookups that failed and were skipped",
	["kind"],
)

RECS_METRIC_FAILURES = Counter(
	"campuslink_recs_metric_failures_total",
	"Similarity metric computations that failed and defaulted to zero",
	["metric"],
)

RECS_CACHE = Counter(
	"campuslink_recs_cache_total",
	"Recommendation cache lookups",
	["result"],
)


def observe_pass(domain: str, source: str, elapsed_seconds: float) -> None:
	RECS_PASSES.labels(domain=domain, source=source).inc()
	RECS_PASS_DURATION.labels(domain=domain).observe(elapsed_seconds)


def inc_candidate(domain: str, outcome: str, amount: int = 1) -> None:
	if amount <= 0:
		return
	RECS_CANDIDATES.labels(domain=domain, outcome=outcome).inc(amount)


def inc_lookup_failure(kind: str) -> None:
	RECS_LOOKUP_FAILURES.labels(kind=kind).inc()


def inc_metric_failure(metric: str) -> None:
	RECS_METRIC_FAILURES.labels(metric=metric).inc()


def inc_cache(result: str) -> None:
	RECS_CACHE.labels(result=result).inc()

import random

import pytest

from campuslink.domain.matching.topk import TopKSelector


def _fill(scores, k):
	selector = TopKSelector(k)
	for name, score in scores:
		selector.push(name, score)
	return selector.results()


def test_keeps_exactly_the_k_highest_sorted_descending():
	scores = [(f"c{i}", i / 100) for i in range(50)]
	result = _fill(scores, 5)
	assert result == ["c49", "c48", "c47", "c46", "c45"]


def test_arrival_order_does_not_change_the_selected_set():
	scores = [(f"c{i}", (i * 37 % 101) / 101) for i in range(60)]
	shuffled = list(scores)
	random.Random(7).shuffle(shuffled)

	forward = _fill(scores, 8)
	backward = _fill(list(reversed(scores)), 8)
	mixed = _fill(shuffled, 8)

	assert forward == backward == mixed
	assert len(forward) == 8


def test_under_capacity_inserts_unconditionally():
	assert _fill([("a", 0.0), ("b", 0.3)], 5) == ["b", "a"]


def test_priority_items_are_never_dropped_and_come_first():
	selector = TopKSelector(2)
	selector.push("pending-low", 0.01, priority=True)
	for i in range(10):
		selector.push(f"r{i}", 0.5 + i / 100)
	selector.push("pending-high", 0.2, priority=True)

	result = selector.results()
	assert result[:2] == ["pending-high", "pending-low"]
	assert result[2:] == ["r9", "r8"]
	assert len(selector) == 4


def test_ties_preserve_insertion_order():
	selector = TopKSelector(3)
	for name in ("a", "b", "c"):
		selector.push(name, 0.5)
	assert selector.results() == ["a", "b", "c"]


def test_equal_score_does_not_evict_at_capacity():
	selector = TopKSelector(2)
	assert selector.push("a", 0.5)
	assert selector.push("b", 0.5)
	assert selector.push("c", 0.5) is False
	assert selector.results() == ["a", "b"]
	assert selector.dropped == 1


def test_later_tie_is_evicted_first():
	selector = TopKSelector(2)
	selector.push("a", 0.5)
	selector.push("b", 0.5)
	selector.push("c", 0.9)
	assert selector.results() == ["c", "a"]


def test_zero_capacity_keeps_only_priority():
	selector = TopKSelector(0)
	selector.push("r", 1.0)
	selector.push("p", 0.0, priority=True)
	assert selector.results() == ["p"]
	assert selector.floor is None


def test_floor_reports_lowest_held_score_once_full():
	selector = TopKSelector(2)
	selector.push("a", 0.4)
	assert selector.floor is None
	selector.push("b", 0.7)
	assert selector.floor == 0.4


def test_negative_capacity_rejected():
	with pytest.raises(ValueError):
		TopKSelector(-1)

"""Bounded top-K selection with an uncapped priority channel."""

from __future__ import annotations

import heapq
from typing import Generic, Optional, TypeVar

ItemT = TypeVar("ItemT")


class TopKSelector(Generic[ItemT]):
	"""Keep the K best regular items seen so far plus every priority item.

	The regular channel is a min-heap of at most ``k`` entries keyed on
	``(score, -seq)``, so among equal scores the most recently inserted entry sits
	at the root and is the one evicted. A new item replaces the root only when its
	score is strictly greater. Output is stable: equal scores keep insertion order.
	"""

	def __init__(self, k: int) -> None:
		if k < 0:
			raise ValueError("k must be non-negative")
		self.k = k
		self._heap: list[tuple[float, int, ItemT]] = []
		self._priority: list[tuple[float, int, ItemT]] = []
		self._seq = 0
		self.seen = 0
		self.dropped = 0

	def __len__(self) -> int:
		return len(self._heap) + len(self._priority)

	def push(self, item: ItemT, score: float, *, priority: bool = False) -> bool:
		"""Offer an item; return False when it was rejected or evicted straight away."""
		seq = self._seq
		self._seq += 1
		self.seen += 1
		if priority:
			self._priority.append((score, seq, item))
			return True
		if self.k == 0:
			self.dropped += 1
			return False
		entry = (score, -seq, item)
		if len(self._heap) < self.k:
			heapq.heappush(self._heap, entry)
			return True
		if score > self._heap[0][0]:
			heapq.heapreplace(self._heap, entry)
			self.dropped += 1
			return True
		self.dropped += 1
		return False

	@property
	def floor(self) -> Optional[float]:
		"""Lowest regular score currently held, once the channel is full."""
		if self.k and len(self._heap) >= self.k:
			return self._heap[0][0]
		return None

	def priority_results(self) -> list[ItemT]:
		ordered = sorted(self._priority, key=lambda entry: (-entry[0], entry[1]))
		return [item for _, _, item in ordered]

	def regular_results(self) -> list[ItemT]:
		ordered = sorted(self._heap, key=lambda entry: (-entry[0], -entry[1]))
		return [item for _, _, item in ordered]

	def results(self) -> list[ItemT]:
		"""Priority items first, then regular items, each by score descending."""
		return self.priority_results() + self.regular_results()

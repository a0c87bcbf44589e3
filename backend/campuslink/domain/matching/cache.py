"""Injectable best-effort caches for recommendation results.

Values are JSON-compatible payloads (``model_dump(mode="json")`` output). No
correctness property depends on a cache being present; ``NullCache`` is the
default everywhere.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Optional, Protocol

from campuslink.infra.redis import RedisProxy, redis_client
from campuslink.settings import cache_namespace

Clock = Callable[[], float]


def friend_key(user_id: str, limit: int) -> str:
	return f"friend_recs:{user_id}:{limit}"


def project_key(user_id: str, limit: int) -> str:
	return f"project_recs:{user_id}:{limit}"


def project_matches_key(project_id: str, limit: int) -> str:
	return f"project_matches:{project_id}:{limit}"


def team_key(user_id: str, limit: int) -> str:
	return f"team_recs:{user_id}:{limit}"


class RecommendationCache(Protocol):
	async def get(self, key: str) -> Optional[Any]:
		...

	async def set(self, key: str, value: Any, ttl: int) -> None:
		...

	async def delete(self, key: str) -> None:
		...


class NullCache:
	"""Never hits."""

	async def get(self, key: str) -> Optional[Any]:
		return None

	async def set(self, key: str, value: Any, ttl: int) -> None:
		return None

	async def delete(self, key: str) -> None:
		return None


class InMemoryTTLCache:
	"""Process-local map with per-entry expiry.

	The clock is injectable so expiry can be tested without sleeping. Writes are
	last-writer-wins; no locking.
	"""

	def __init__(self, *, clock: Clock = time.monotonic, max_entries: int = 1024) -> None:
		self._clock = clock
		self._max_entries = max_entries
		self._entries: dict[str, tuple[float, Any]] = {}

	def __len__(self) -> int:
		return len(self._entries)

	async def get(self, key: str) -> Optional[Any]:
		entry = self._entries.get(key)
		if entry is None:
			return None
		expires_at, value = entry
		if self._clock() >= expires_at:
			self._entries.pop(key, None)
			return None
		return value

	async def set(self, key: str, value: Any, ttl: int) -> None:
		if ttl <= 0:
			self._entries.pop(key, None)
			return
		if key not in self._entries and len(self._entries) >= self._max_entries:
			self._evict()
		self._entries[key] = (self._clock() + ttl, value)

	async def delete(self, key: str) -> None:
		self._entries.pop(key, None)

	def _evict(self) -> None:
		now = self._clock()
		for key in [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]:
			del self._entries[key]
		if len(self._entries) >= self._max_entries:
			oldest = min(self._entries, key=lambda k: self._entries[k][0])
			del self._entries[oldest]


class RedisRecommendationCache:
	"""JSON payloads in Redis under a namespace, expiring via ``EX``."""

	def __init__(self, redis: RedisProxy | None = None, *, namespace: Optional[str] = None) -> None:
		self.redis = redis or redis_client
		self.namespace = cache_namespace(namespace)

	def _key(self, suffix: str) -> str:
		return f"{self.namespace}{suffix}"

	async def get(self, key: str) -> Optional[Any]:
		raw = await self.redis.get(self._key(key))
		if not raw:
			return None
		try:
			if isinstance(raw, bytes):
				raw = raw.decode("utf-8")
			return json.loads(raw)
		except (UnicodeDecodeError, json.JSONDecodeError):
			return None

	async def set(self, key: str, value: Any, ttl: int) -> None:
		await self.redis.set(self._key(key), json.dumps(value), ex=ttl)

	async def delete(self, key: str) -> None:
		await self.redis.delete(self._key(key))

"""Persistent key/value store.

This module provides an abstract store interface and two implementations:
a Redis-backed one for persistence across sessions and an in-memory one for
development and tests.

The planner addresses the store with a handful of fixed logical keys
(favorites, route, image cache, layout preference). Values are JSON
documents; there is no expiry and no transactional grouping, so concurrent
writers of the same key resolve as last-writer-wins.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract base class for persistent stores."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the stored value for ``key``.

        Args:
            key: The logical key to look up.

        Returns:
            The deserialized value if present, None otherwise. A value that
            is not valid JSON is returned as the raw string; callers decide
            whether that counts as corrupt.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Args:
            key: The logical key to store under.
            value: The value to store (must be JSON serializable).
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if the key was deleted, False if it didn't exist.
        """
        pass

    async def close(self) -> None:
        """Release any underlying connection."""


def _decode(raw: str | None) -> Any | None:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. Values are kept serialized so that reads behave
    exactly like the Redis store (fresh objects, JSON round-trip)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Any | None:
        return _decode(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value if isinstance(value, str) else json.dumps(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def raw(self, key: str) -> str | None:
        """Serialized value as stored (for inspection)."""
        return self._data.get(key)


class RedisKeyValueStore(KeyValueStore):
    """Redis-based implementation of the store.

    Attributes:
        _client: The Redis async client instance.
        _namespace: Prefix applied to every logical key.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        namespace: str = "poi-planner",
    ) -> None:
        """Initialize the Redis store.

        Args:
            redis_url: Redis connection URL. Defaults to localhost:6379.
            namespace: Key prefix, so several deployments can share a server.
        """
        self._redis_url = redis_url
        self._namespace = namespace
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> Any | None:
        client = await self._ensure_connected()
        return _decode(await client.get(self._key(key)))

    async def set(self, key: str, value: Any) -> None:
        client = await self._ensure_connected()
        serialized = value if isinstance(value, str) else json.dumps(value)
        await client.set(self._key(key), serialized)

    async def delete(self, key: str) -> bool:
        client = await self._ensure_connected()
        return await client.delete(self._key(key)) > 0


def create_store(backend: str, redis_url: str) -> KeyValueStore:
    """Build the store selected by configuration."""
    if backend == "redis":
        logger.info(f"[STORE] Using Redis store at {redis_url}")
        return RedisKeyValueStore(redis_url)
    if backend == "memory":
        logger.info("[STORE] Using in-memory store (state is lost on restart)")
        return MemoryKeyValueStore()
    raise ValueError(f"Unknown store backend: {backend!r}")

"""Persistent key/value store service module."""

from .service import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore, create_store

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_store",
]

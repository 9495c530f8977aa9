"""POI walk planner services.

Service layer components:
- Storage: Redis-backed persistent key/value store with in-memory fallback
- Catalog: POI dataset loading, validation and filtering
- Image cache: persisted POI id -> resolved image
- Wikimedia: Wikipedia/Wikidata lookups for photos (no API key)
- Photo resolver: cached, fail-soft lookup cascade for one POI
- Resolution queue: bounded-concurrency scheduler for photo resolution
- Route sequencer: route edits and nearest-neighbour ordering

The planner state object (``services.planner``) composes these and is
imported from its own module.
"""

from .storage import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore, create_store
from .catalog import POICatalog, ValidationResult, validate_record
from .image_cache import ImageCache
from .wikimedia import EntityClaims, KnowledgeBaseLookup, PageThumbnail, WikimediaService
from .photo_resolver import PhotoResolver
from .resolution_queue import (
    ResolutionQueue,
    ResolutionResult,
    ResolutionTrigger,
    TriggerStrategy,
)
from .route_sequencer import RouteSequencer

__all__ = [
    # Storage
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_store",
    # Catalog
    "POICatalog",
    "ValidationResult",
    "validate_record",
    # Photos
    "ImageCache",
    "EntityClaims",
    "KnowledgeBaseLookup",
    "PageThumbnail",
    "WikimediaService",
    "PhotoResolver",
    "ResolutionQueue",
    "ResolutionResult",
    "ResolutionTrigger",
    "TriggerStrategy",
    # Route
    "RouteSequencer",
]

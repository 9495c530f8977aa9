"""Persistent POI-id -> resolved image cache.

Only successful resolutions are ever written, so a POI without an entry is
simply retried on its next resolution attempt. The whole map lives under one
store key and is rewritten on every ``put`` (last write wins).
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from poi_planner.models import ImageCacheEntry, ImageRef
from poi_planner.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


class ImageCache:
    """In-memory view of the persisted image cache."""

    STORAGE_KEY = "photo-cache:v1"

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._entries: dict[str, ImageCacheEntry] = {}

    async def load(self) -> int:
        """Load persisted entries, replacing the in-memory view.

        Corrupt or missing data yields an empty cache; individual corrupt
        entries are dropped. Never raises.

        Returns:
            Number of entries loaded.
        """
        self._entries = {}
        try:
            raw = await self._store.get(self.STORAGE_KEY)
        except Exception as e:
            logger.info(f"[CACHE] Could not read image cache: {type(e).__name__}: {e}")
            return 0

        if raw is None:
            return 0
        if not isinstance(raw, dict):
            logger.info("[CACHE] Persisted image cache is not a mapping, starting empty")
            return 0

        dropped = 0
        for poi_id, value in raw.items():
            try:
                self._entries[str(poi_id)] = ImageCacheEntry.model_validate(value)
            except ValidationError:
                dropped += 1
        if dropped:
            logger.info(f"[CACHE] Dropped {dropped} corrupt image cache entries")
        logger.info(f"[CACHE] Loaded {len(self._entries)} cached images")
        return len(self._entries)

    def get(self, poi_id: str) -> Optional[ImageRef]:
        entry = self._entries.get(poi_id)
        return entry.ref if entry else None

    def entry(self, poi_id: str) -> Optional[ImageCacheEntry]:
        return self._entries.get(poi_id)

    async def put(self, poi_id: str, ref: ImageRef) -> None:
        """Record a resolved image and persist the whole cache.

        The in-memory entry is updated before the write, so a failing store
        only costs persistence, not the current session's hit.
        """
        self._entries[poi_id] = ImageCacheEntry(
            ref=ref.model_copy(), resolved_at=datetime.now(timezone.utc)
        )
        await self._persist()

    async def _persist(self) -> None:
        payload = {
            poi_id: entry.model_dump(mode="json")
            for poi_id, entry in self._entries.items()
        }
        try:
            await self._store.set(self.STORAGE_KEY, payload)
        except Exception as e:
            logger.info(f"[CACHE] Could not persist image cache: {type(e).__name__}: {e}")

    def __contains__(self, poi_id: str) -> bool:
        return poi_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""Planner application state.

One explicit object owns the session state (POI catalog, favorites, route,
layout preference) and wires the photo pipeline and route sequencer to it.
Favorites, route and layout are persisted after every mutation; reads of
corrupt or missing persisted values fall back to empty defaults.
"""

import logging
from typing import Any, Iterable, Optional

from poi_planner.config import Settings
from poi_planner.models import POI, RouteSummary
from poi_planner.services.catalog import POICatalog
from poi_planner.services.image_cache import ImageCache
from poi_planner.services.photo_resolver import PhotoResolver
from poi_planner.services.resolution_queue import (
    ResolutionQueue,
    ResolutionTrigger,
    TriggerStrategy,
)
from poi_planner.services.route_sequencer import RouteSequencer, favorites_route
from poi_planner.services.storage import KeyValueStore, create_store
from poi_planner.services.wikimedia import KnowledgeBaseLookup, WikimediaService

logger = logging.getLogger(__name__)


def _string_list(raw: Any) -> list[str]:
    """Deduplicated list of strings, or [] if ``raw`` is not a list."""
    if not isinstance(raw, list):
        return []
    result: list[str] = []
    for item in raw:
        if isinstance(item, str) and item not in result:
            result.append(item)
    return result


class Planner:
    """Session state plus the operations the API exposes."""

    FAVORITES_KEY = "favorites:v1"
    ROUTE_KEY = "route:v1"
    SIDEBAR_WIDTH_KEY = "sidebar-width:v1"

    SIDEBAR_MIN_WIDTH = 280
    SIDEBAR_MAX_WIDTH = 820

    def __init__(
        self,
        catalog: POICatalog,
        store: KeyValueStore,
        lookup: KnowledgeBaseLookup,
        sequencer: RouteSequencer | None = None,
        trigger_strategy: TriggerStrategy = TriggerStrategy.VISIBILITY,
        photo_concurrency: Optional[int] = ResolutionQueue.DEFAULT_CONCURRENCY,
        origin_name: str | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.lookup = lookup
        self.image_cache = ImageCache(store)
        self.resolver = PhotoResolver(self.image_cache, lookup)
        self.queue = ResolutionQueue(self.resolver, catalog.get, concurrency=photo_concurrency)
        self.trigger = ResolutionTrigger(self.queue, catalog.get, trigger_strategy)
        self.sequencer = sequencer or RouteSequencer(catalog.by_id)
        self.origin_name = origin_name

        self.favorites: set[str] = set()
        self.route_ids: list[str] = []
        self.sidebar_width: Optional[int] = None

    # ─── Persistence ───

    async def load(self) -> None:
        """Restore persisted state. Never raises."""
        self.favorites = set(_string_list(await self._read(self.FAVORITES_KEY)))
        self.route_ids = _string_list(await self._read(self.ROUTE_KEY))

        width = await self._read(self.SIDEBAR_WIDTH_KEY)
        if isinstance(width, (int, float)) and not isinstance(width, bool) and width > 0:
            self.sidebar_width = self._clamp_width(width)

        await self.image_cache.load()
        logger.info(
            f"[PLANNER] Restored {len(self.favorites)} favorites, {len(self.route_ids)} route stops"
        )

    async def _read(self, key: str) -> Any | None:
        try:
            return await self.store.get(key)
        except Exception as e:
            logger.info(f"[STORE] Could not read {key}: {type(e).__name__}: {e}")
            return None

    async def _write(self, key: str, value: Any) -> None:
        try:
            await self.store.set(key, value)
        except Exception as e:
            logger.info(f"[STORE] Could not persist {key}: {type(e).__name__}: {e}")

    async def close(self) -> None:
        if isinstance(self.lookup, WikimediaService):
            await self.lookup.close()
        await self.store.close()

    # ─── Listing & photos ───

    def list_pois(self, theme: str | None = None, query: str | None = None) -> list[POI]:
        """Filtered listing; starts a new render cycle for photo triggering."""
        pois = self.catalog.filter(theme, query)
        self.trigger.begin_render_cycle(poi.id for poi in pois)
        return pois

    def mark_visible(self, poi_ids: Iterable[str]) -> int:
        return self.trigger.mark_visible(poi_ids)

    async def resolve_photo(self, poi_id: str) -> Optional[bool]:
        """Resolve a photo immediately (details view). None for unknown ids."""
        poi = self.catalog.get(poi_id)
        if poi is None:
            return None
        return await self.resolver.resolve(poi)

    # ─── Favorites ───

    def is_favorite(self, poi_id: str) -> bool:
        return poi_id in self.favorites

    async def toggle_favorite(self, poi_id: str) -> Optional[bool]:
        """Flip the favorite flag; returns the new state, None for unknown ids."""
        if poi_id not in self.catalog:
            return None
        if poi_id in self.favorites:
            self.favorites.discard(poi_id)
        else:
            self.favorites.add(poi_id)
        await self._write(self.FAVORITES_KEY, sorted(self.favorites))
        return poi_id in self.favorites

    # ─── Route ───

    def route_stops(self) -> list[POI]:
        return self.sequencer.stops(self.route_ids)

    def route_summary(self, start_at_origin: bool = True) -> Optional[RouteSummary]:
        return self.sequencer.summarize(self.route_ids, start_at_origin)

    async def _set_route(self, ids: list[str]) -> list[str]:
        self.route_ids = ids
        await self._write(self.ROUTE_KEY, ids)
        return ids

    async def add_stop(self, poi_id: str) -> list[str]:
        if poi_id not in self.catalog:
            return self.route_ids
        return await self._set_route(self.sequencer.add_stop(self.route_ids, poi_id))

    async def remove_stop(self, poi_id: str) -> list[str]:
        return await self._set_route(self.sequencer.remove_stop(self.route_ids, poi_id))

    async def move_stop(self, poi_id: str, direction: int) -> list[str]:
        return await self._set_route(self.sequencer.move_stop(self.route_ids, poi_id, direction))

    async def replace_route(self, poi_ids: Iterable[str]) -> list[str]:
        ids = [i for i in _string_list(list(poi_ids)) if i in self.catalog]
        return await self._set_route(ids)

    async def clear_route(self) -> list[str]:
        return await self._set_route([])

    async def optimize_route(self, start_at_origin: bool = True) -> list[str]:
        return await self._set_route(self.sequencer.optimize(self.route_ids, start_at_origin))

    async def route_from_favorites(
        self,
        theme: str | None = None,
        query: str | None = None,
        start_at_origin: bool = True,
    ) -> list[str]:
        """Replace the route with the favorites of the current listing, optimized."""
        listed = [poi.id for poi in self.catalog.filter(theme, query)]
        ids = favorites_route(listed, self.favorites)
        return await self._set_route(self.sequencer.optimize(ids, start_at_origin))

    # ─── Layout preference ───

    def _clamp_width(self, px: float) -> int:
        return int(max(self.SIDEBAR_MIN_WIDTH, min(self.SIDEBAR_MAX_WIDTH, px)))

    async def set_sidebar_width(self, px: float) -> int:
        self.sidebar_width = self._clamp_width(px)
        await self._write(self.SIDEBAR_WIDTH_KEY, self.sidebar_width)
        return self.sidebar_width


async def create_planner(settings: Settings) -> Planner:
    """Build and load the planner described by ``settings``."""
    catalog = POICatalog.load_file(settings.dataset_path)
    store = create_store(settings.store_backend, settings.redis_url)
    lookup = WikimediaService(timeout=settings.wiki_timeout, user_agent=settings.wiki_user_agent)
    sequencer = RouteSequencer(catalog.by_id, settings.origin, settings.walking_speed_kmh)

    planner = Planner(
        catalog,
        store,
        lookup,
        sequencer=sequencer,
        trigger_strategy=settings.trigger_strategy,
        photo_concurrency=settings.photo_concurrency,
        origin_name=settings.origin_name if settings.origin else None,
    )
    await planner.load()
    return planner

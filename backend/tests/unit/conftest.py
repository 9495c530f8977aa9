"""Shared fixtures for unit tests."""

import asyncio
from typing import Optional

import httpx
import pytest

from poi_planner.models import POI, POIInfo
from poi_planner.services.image_cache import ImageCache
from poi_planner.services.photo_resolver import PhotoResolver
from poi_planner.services.storage import MemoryKeyValueStore
from poi_planner.services.wikimedia import EntityClaims, KnowledgeBaseLookup, PageThumbnail


class FakeLookup(KnowledgeBaseLookup):
    """Scriptable stand-in for the Wikimedia lookups.

    ``failing`` holds method names that raise a transport error.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.qids: dict[tuple[str, str], str] = {}
        self.claims: dict[str, EntityClaims] = {}
        self.thumbnails: dict[tuple[str, str], PageThumbnail] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple] = []
        self.delay = delay

    async def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.failing:
            raise httpx.ConnectError(f"{name} unreachable")

    async def lookup_identifier(self, lang: str, title: str) -> Optional[str]:
        await self._call("lookup_identifier", lang, title)
        return self.qids.get((lang, title))

    async def fetch_claims(self, qid: str) -> Optional[EntityClaims]:
        await self._call("fetch_claims", qid)
        return self.claims.get(qid)

    async def fetch_page_thumbnail(self, lang: str, title: str) -> Optional[PageThumbnail]:
        await self._call("fetch_page_thumbnail", lang, title)
        return self.thumbnails.get((lang, title))


def build_poi(
    poi_id: str = "tor",
    title: str = "Brandenburger Tor",
    lat: float = 52.5163,
    lng: float = 13.3777,
    theme: str = "Monumenten",
    nl: Optional[str] = None,
    en: Optional[str] = None,
    **kwargs,
) -> POI:
    info = POIInfo(nl=nl, en=en) if (nl or en) else None
    return POI(id=poi_id, title=title, theme=theme, lat=lat, lng=lng, info=info, **kwargs)


@pytest.fixture
def make_poi():
    return build_poi


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def image_cache(store: MemoryKeyValueStore) -> ImageCache:
    return ImageCache(store)


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def resolver(image_cache: ImageCache, lookup: FakeLookup) -> PhotoResolver:
    return PhotoResolver(image_cache, lookup)

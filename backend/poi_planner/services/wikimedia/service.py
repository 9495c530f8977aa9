"""Wikipedia/Wikidata lookup clients for POI photos.

Three lookups feed the photo resolver:
- title -> Wikidata identifier (MediaWiki ``pageprops.wikibase_item``)
- identifier -> claims (Wikidata ``wbgetentities``: P18 image, P625 coordinates)
- title -> page thumbnail (MediaWiki ``pageimages``)

No API key required.

Architecture:
- Shared httpx client with connection pooling
- Semaphore-based rate limiting (max 3 concurrent requests)
- Retry with backoff on transient failures
- Every failure collapses to ``None`` so callers can fall through
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from poi_planner.models import Coordinates
from poi_planner.utils.cache import LRUCache

logger = logging.getLogger(__name__)


@dataclass
class EntityClaims:
    """The subset of a Wikidata entity's claims the planner uses."""
    qid: str
    commons_file: Optional[str] = None
    coordinates: Optional[Coordinates] = None


@dataclass
class PageThumbnail:
    """Lead image of a Wikipedia article."""
    thumbnail_url: Optional[str] = None
    filename: Optional[str] = None


class KnowledgeBaseLookup(ABC):
    """Lookups the photo resolver depends on.

    Implementations return ``None`` for "nothing found". They may also raise
    on transport or parse errors; the resolver treats that the same way.
    """

    @abstractmethod
    async def lookup_identifier(self, lang: str, title: str) -> Optional[str]:
        pass

    @abstractmethod
    async def fetch_claims(self, qid: str) -> Optional[EntityClaims]:
        pass

    @abstractmethod
    async def fetch_page_thumbnail(self, lang: str, title: str) -> Optional[PageThumbnail]:
        pass


def _first_page(data: dict | None) -> dict | None:
    pages = (data or {}).get("query", {}).get("pages")
    if not pages:
        return None
    if isinstance(pages, dict):
        return next(iter(pages.values()))
    return pages[0]


def _first_claim_value(entity: dict, prop: str):
    claims = entity.get("claims", {}).get(prop) or []
    if not claims:
        return None
    return claims[0].get("mainsnak", {}).get("datavalue", {}).get("value")


class WikimediaService(KnowledgeBaseLookup):
    """MediaWiki/Wikidata API client.

    Uses a shared httpx client with connection pooling.
    Semaphore limits concurrent requests to avoid rate-limiting.
    Retry logic handles transient failures.
    """

    WIKIPEDIA_ACTION_API = "https://{lang}.wikipedia.org/w/api.php"
    WIKIDATA_API = "https://www.wikidata.org/w/api.php"

    DEFAULT_USER_AGENT = "POIWalkPlanner/0.1 (https://github.com/; contact@example.com)"

    THUMBNAIL_SIZE = 640

    def __init__(
        self,
        timeout: float = 8.0,
        user_agent: str | None = None,
        max_concurrent_requests: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {
            "User-Agent": user_agent or self.DEFAULT_USER_AGENT,
            "Accept": "application/json",
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        # Title -> QID never changes within a session
        self._qid_cache: LRUCache[Optional[str]] = LRUCache(max_size=1024)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                limits=httpx.Limits(max_connections=8, max_keepalive_connections=4),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request_with_retry(
        self, url: str, params: dict, max_retries: int = 1
    ) -> dict | None:
        """Make a GET request with retry on transient failures.

        Only 1 retry to avoid long hangs when Wikimedia is unreachable.
        """
        client = self._get_client()
        for attempt in range(max_retries + 1):
            try:
                async with self._semaphore:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < max_retries:
                    logger.info(f"[WIKI] Retry {attempt+1}/{max_retries} for {url}: {type(e).__name__}")
                    await asyncio.sleep(1.5)
                else:
                    return None
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429 and attempt < max_retries:
                    await asyncio.sleep(2.0)
                else:
                    logger.info(f"[WIKI] HTTP {e.response.status_code} from {url}")
                    return None
            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers undecodable JSON bodies
                logger.info(f"[WIKI] Request to {url} failed: {type(e).__name__}")
                return None
        return None

    async def lookup_identifier(self, lang: str, title: str) -> Optional[str]:
        """Resolve a Wikipedia article title to its Wikidata QID."""
        key = (lang, title)
        if key in self._qid_cache:
            return self._qid_cache.get(key)

        params = {
            "action": "query",
            "format": "json",
            "prop": "pageprops",
            "ppprop": "wikibase_item",
            "redirects": 1,
            "titles": title,
        }
        data = await self._request_with_retry(self.WIKIPEDIA_ACTION_API.format(lang=lang), params)
        if data is None:
            # Transport failure: don't memoise, a later attempt may succeed
            return None

        page = _first_page(data)
        qid = (page or {}).get("pageprops", {}).get("wikibase_item") or None
        self._qid_cache.set(key, qid)
        return qid

    async def fetch_claims(self, qid: str) -> Optional[EntityClaims]:
        """Fetch the primary image (P18) and coordinates (P625) of an entity."""
        params = {
            "action": "wbgetentities",
            "format": "json",
            "ids": qid,
            "props": "claims",
        }
        data = await self._request_with_retry(self.WIKIDATA_API, params)
        if not data:
            return None

        entity = data.get("entities", {}).get(qid)
        if not entity or "missing" in entity:
            return None

        claims = EntityClaims(qid=qid)

        image = _first_claim_value(entity, "P18")
        if isinstance(image, str) and image:
            claims.commons_file = image

        coord = _first_claim_value(entity, "P625")
        if isinstance(coord, dict):
            lat, lng = coord.get("latitude"), coord.get("longitude")
            if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
                try:
                    claims.coordinates = Coordinates(lat=lat, lng=lng)
                except ValueError:
                    logger.info(f"[WIKI] {qid}: ignoring out-of-range coordinates")

        return claims

    async def fetch_page_thumbnail(self, lang: str, title: str) -> Optional[PageThumbnail]:
        """Get the lead image thumbnail of a Wikipedia article."""
        params = {
            "action": "query",
            "format": "json",
            "prop": "pageimages",
            "pithumbsize": self.THUMBNAIL_SIZE,
            "redirects": 1,
            "titles": title,
        }
        data = await self._request_with_retry(self.WIKIPEDIA_ACTION_API.format(lang=lang), params)
        page = _first_page(data)
        if not page or "missing" in page:
            return None

        thumb_url = page.get("thumbnail", {}).get("source")
        if not thumb_url:
            return None
        return PageThumbnail(thumbnail_url=thumb_url, filename=page.get("pageimage") or None)

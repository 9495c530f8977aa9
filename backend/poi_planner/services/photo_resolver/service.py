"""Photo resolution for POIs without a bundled image.

Cascade (each step only if the previous one found nothing):
1. POI already carries a Commons file -> done, no I/O
2. Image cache hit -> copy into the POI
3. Wikidata QID from the POI, or discovered from its nl/en Wikipedia link
4. QID claims -> P18 primary image (Commons file)
5. Wikipedia page thumbnail of the linked article (direct URL)

Every lookup is fail-soft: errors are logged and treated as "no result".
Only successes are cached, so a POI with no photo today is retried on a
later visit.
"""

import logging
from typing import Awaitable, Optional, TypeVar

from poi_planner.models import POI, CommonsFile, ExternalUrl, ImageRef
from poi_planner.services.image_cache import ImageCache
from poi_planner.services.wikimedia import KnowledgeBaseLookup
from poi_planner.utils.wikimedia import (
    WikipediaArticle,
    commons_file_page,
    parse_wikipedia_url,
    wikipedia_file_page,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def find_wikipedia_article(poi: POI) -> Optional[WikipediaArticle]:
    """First supported Wikipedia link among the POI's info links (nl, then en)."""
    if not poi.info:
        return None
    for url in (poi.info.nl, poi.info.en):
        article = parse_wikipedia_url(url) if url else None
        if article:
            return article
    return None


class PhotoResolver:
    """Finds a representative photo for a single POI."""

    def __init__(self, cache: ImageCache, lookup: KnowledgeBaseLookup) -> None:
        self._cache = cache
        self._lookup = lookup

    async def resolve(self, poi: POI) -> bool:
        """Populate ``poi.image`` if at all possible.

        Returns:
            True if ``poi.image`` now holds a usable reference. On False the
            POI is left as it was and nothing is cached.
        """
        if isinstance(poi.image, CommonsFile):
            return True

        if self._apply_cached(poi):
            return True

        article = find_wikipedia_article(poi)

        qid = await self._resolve_identifier(poi, article)
        if qid:
            filename = await self._primary_image(qid)
            if filename:
                ref = CommonsFile(filename=filename, source_page=commons_file_page(filename))
                await self._commit(poi, ref)
                logger.info(f"[PHOTO] {poi.id}: Commons file via {qid}")
                return True

        if article:
            ref = await self._article_thumbnail(article)
            if ref:
                await self._commit(poi, ref)
                logger.info(f"[PHOTO] {poi.id}: thumbnail from {article.lang}.wikipedia")
                return True

        logger.info(f"[PHOTO] {poi.id}: no image found")
        return False

    def _apply_cached(self, poi: POI) -> bool:
        cached = self._cache.get(poi.id)
        if cached is None:
            return False

        ref = cached.model_copy()
        if ref.source_page is None:
            if isinstance(ref, CommonsFile):
                ref.source_page = commons_file_page(ref.filename)
            else:
                ref.source_page = poi.info_url
        poi.image = ref
        return True

    async def _resolve_identifier(
        self, poi: POI, article: Optional[WikipediaArticle]
    ) -> Optional[str]:
        if poi.wikidata_id:
            return poi.wikidata_id
        if article is None:
            return None

        qid = await self._safely(
            self._lookup.lookup_identifier(article.lang, article.title),
            f"{poi.id}: identifier lookup",
        )
        if qid:
            # Skip discovery on the next attempt for this POI
            poi.wikidata_id = qid
        return qid

    async def _primary_image(self, qid: str) -> Optional[str]:
        claims = await self._safely(self._lookup.fetch_claims(qid), f"{qid}: claims")
        return claims.commons_file if claims else None

    async def _article_thumbnail(self, article: WikipediaArticle) -> Optional[ExternalUrl]:
        thumb = await self._safely(
            self._lookup.fetch_page_thumbnail(article.lang, article.title),
            f"{article.lang}:{article.title}: thumbnail",
        )
        if not thumb or not thumb.thumbnail_url:
            return None

        if thumb.filename:
            source_page = wikipedia_file_page(article.lang, thumb.filename)
        else:
            source_page = article.url
        return ExternalUrl(url=thumb.thumbnail_url, source_page=source_page)

    async def _commit(self, poi: POI, ref: ImageRef) -> None:
        poi.image = ref
        await self._cache.put(poi.id, ref)

    async def _safely(self, call: Awaitable[T], label: str) -> Optional[T]:
        try:
            return await call
        except Exception as e:
            logger.info(f"[PHOTO] {label} failed: {type(e).__name__}: {e}")
            return None

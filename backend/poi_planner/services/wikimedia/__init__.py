"""Wikimedia lookup service module.

Provides the knowledge-base lookups (Wikipedia title -> Wikidata QID,
QID -> claims, article -> thumbnail) used for POI photo resolution.
"""

from .service import (
    EntityClaims,
    KnowledgeBaseLookup,
    PageThumbnail,
    WikimediaService,
)

__all__ = [
    "EntityClaims",
    "KnowledgeBaseLookup",
    "PageThumbnail",
    "WikimediaService",
]

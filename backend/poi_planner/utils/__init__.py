"""Pure helpers: geodesy, Wikimedia URLs, in-process caching."""

from .cache import LRUCache
from .geo import distance_km, haversine_distance, haversine_distances, path_length_km
from .wikimedia import (
    SUPPORTED_LANGUAGES,
    WikipediaArticle,
    commons_file_page,
    commons_file_path,
    is_wikipedia_url,
    parse_wikipedia_url,
    wikipedia_file_page,
)

__all__ = [
    "LRUCache",
    "distance_km",
    "haversine_distance",
    "haversine_distances",
    "path_length_km",
    "SUPPORTED_LANGUAGES",
    "WikipediaArticle",
    "commons_file_page",
    "commons_file_path",
    "is_wikipedia_url",
    "parse_wikipedia_url",
    "wikipedia_file_page",
]

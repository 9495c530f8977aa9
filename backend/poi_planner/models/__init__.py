"""Data models for the POI walk planner."""

from .core import (
    POI,
    CommonsFile,
    Coordinates,
    ExternalUrl,
    ImageCacheEntry,
    ImageRef,
    POIInfo,
    RouteSummary,
)
from .errors import AppError, ErrorCode

__all__ = [
    "POI",
    "CommonsFile",
    "Coordinates",
    "ExternalUrl",
    "ImageCacheEntry",
    "ImageRef",
    "POIInfo",
    "RouteSummary",
    "AppError",
    "ErrorCode",
]

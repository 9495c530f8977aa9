"""Image cache service module."""

from .service import ImageCache

__all__ = ["ImageCache"]

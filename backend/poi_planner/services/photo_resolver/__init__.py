"""Photo resolver service module."""

from .service import PhotoResolver, find_wikipedia_article

__all__ = ["PhotoResolver", "find_wikipedia_article"]

"""Photo resolution queue service module."""

from .service import (
    QueueStats,
    ResolutionQueue,
    ResolutionResult,
    ResolutionTrigger,
    TriggerStrategy,
    has_usable_image,
)

__all__ = [
    "QueueStats",
    "ResolutionQueue",
    "ResolutionResult",
    "ResolutionTrigger",
    "TriggerStrategy",
    "has_usable_image",
]

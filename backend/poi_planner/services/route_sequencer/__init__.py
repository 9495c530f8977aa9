"""Route sequencer service module."""

from .service import (
    DEFAULT_WALKING_SPEED_KMH,
    RouteSequencer,
    add_stop,
    favorites_route,
    move_stop,
    optimize,
    remove_stop,
    resolve_stops,
    summarize,
)

__all__ = [
    "DEFAULT_WALKING_SPEED_KMH",
    "RouteSequencer",
    "add_stop",
    "favorites_route",
    "move_stop",
    "optimize",
    "remove_stop",
    "resolve_stops",
    "summarize",
]

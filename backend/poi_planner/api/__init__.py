"""HTTP API."""

from .routes import get_planner, router, set_planner

__all__ = ["get_planner", "router", "set_planner"]

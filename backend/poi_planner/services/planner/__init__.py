"""Planner application-state service module."""

from .service import Planner, create_planner

__all__ = ["Planner", "create_planner"]

"""Route sequencing over selected POIs.

Edits (add/remove/move) are pure functions over the ordered id list and
never fail: unknown ids are no-ops. ``optimize`` builds a greedy
nearest-neighbour tour from an optional origin. It never backtracks, so the
result can be longer than the optimal tour; for the handful of stops of a
walking day it is instant and deterministic.
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np

from poi_planner.models import POI, Coordinates, RouteSummary
from poi_planner.utils.geo import haversine_distances, path_length_km

logger = logging.getLogger(__name__)

DEFAULT_WALKING_SPEED_KMH = 4.5


def add_stop(ids: Sequence[str], poi_id: str) -> list[str]:
    """Append ``poi_id`` unless it is already on the route."""
    if poi_id in ids:
        return list(ids)
    return [*ids, poi_id]


def remove_stop(ids: Sequence[str], poi_id: str) -> list[str]:
    return [i for i in ids if i != poi_id]


def move_stop(ids: Sequence[str], poi_id: str, direction: int) -> list[str]:
    """Swap ``poi_id`` with its neighbour (-1 = earlier, +1 = later).

    No-op when the id is absent or the move would leave the list.
    """
    if direction not in (-1, 1):
        raise ValueError(f"direction must be -1 or +1, got {direction!r}")
    result = list(ids)
    if poi_id not in result:
        return result
    idx = result.index(poi_id)
    new_idx = idx + direction
    if new_idx < 0 or new_idx >= len(result):
        return result
    result[idx], result[new_idx] = result[new_idx], result[idx]
    return result


def resolve_stops(ids: Iterable[str], pois_by_id: Mapping[str, POI]) -> list[POI]:
    """POIs for ``ids`` in order; stale ids are dropped."""
    return [pois_by_id[i] for i in ids if i in pois_by_id]


def optimize(
    ids: Sequence[str],
    pois_by_id: Mapping[str, POI],
    origin: Optional[Coordinates] = None,
) -> list[str]:
    """Nearest-neighbour ordering of the route's stops.

    Starts at ``origin`` if given, else at the first resolvable stop. Ties go
    to the earliest stop in input order. Ids that do not resolve to a POI
    keep their relative order at the end, so the result is always a
    permutation of ``ids``.
    """
    stops = [(i, pois_by_id[i]) for i in ids if i in pois_by_id]
    if len(stops) < 2:
        return list(ids)
    stale = [i for i in ids if i not in pois_by_id]

    lats = np.array([poi.lat for _, poi in stops], dtype=np.float64)
    lngs = np.array([poi.lng for _, poi in stops], dtype=np.float64)

    current = origin if origin is not None else stops[0][1]
    remaining = list(range(len(stops)))
    ordered: list[str] = []

    while remaining:
        distances = haversine_distances(current, lats[remaining], lngs[remaining])
        # argmin returns the first minimum: ties resolve in input order
        nearest = remaining.pop(int(np.argmin(distances)))
        poi_id, poi = stops[nearest]
        ordered.append(poi_id)
        current = poi

    return ordered + stale


def favorites_route(candidate_ids: Iterable[str], favorites: Iterable[str]) -> list[str]:
    """Favorite ids in candidate (listing) order, without duplicates."""
    favorite_set = set(favorites)
    result: list[str] = []
    for poi_id in candidate_ids:
        if poi_id in favorite_set and poi_id not in result:
            result.append(poi_id)
    return result


def summarize(
    ids: Sequence[str],
    pois_by_id: Mapping[str, POI],
    origin: Optional[Coordinates] = None,
    walking_speed_kmh: float = DEFAULT_WALKING_SPEED_KMH,
) -> Optional[RouteSummary]:
    """Straight-line distance and walking time along the route.

    Returns None when fewer than two stops resolve (no route to show).
    """
    stops = resolve_stops(ids, pois_by_id)
    if len(stops) < 2:
        return None

    points = [origin, *stops] if origin is not None else stops
    km = path_length_km(points)
    return RouteSummary(
        stop_count=len(stops),
        distance_km=round(km, 3),
        walking_minutes=round(km / walking_speed_kmh * 60),
        starts_at_origin=origin is not None,
    )


class RouteSequencer:
    """Route operations bound to one POI collection and origin point."""

    def __init__(
        self,
        pois_by_id: Mapping[str, POI],
        origin: Optional[Coordinates] = None,
        walking_speed_kmh: float = DEFAULT_WALKING_SPEED_KMH,
    ) -> None:
        self._pois_by_id = pois_by_id
        self._origin = origin
        self._walking_speed_kmh = walking_speed_kmh

    @property
    def origin(self) -> Optional[Coordinates]:
        return self._origin

    def add_stop(self, ids: Sequence[str], poi_id: str) -> list[str]:
        return add_stop(ids, poi_id)

    def remove_stop(self, ids: Sequence[str], poi_id: str) -> list[str]:
        return remove_stop(ids, poi_id)

    def move_stop(self, ids: Sequence[str], poi_id: str, direction: int) -> list[str]:
        return move_stop(ids, poi_id, direction)

    def stops(self, ids: Sequence[str]) -> list[POI]:
        return resolve_stops(ids, self._pois_by_id)

    def _start(self, start_at_origin: bool) -> Optional[Coordinates]:
        return self._origin if start_at_origin else None

    def optimize(self, ids: Sequence[str], start_at_origin: bool = True) -> list[str]:
        order = optimize(ids, self._pois_by_id, self._start(start_at_origin))
        logger.info(f"[ROUTE] Optimized {len(ids)} stops (from origin: {start_at_origin and self._origin is not None})")
        return order

    def summarize(self, ids: Sequence[str], start_at_origin: bool = True) -> Optional[RouteSummary]:
        return summarize(ids, self._pois_by_id, self._start(start_at_origin), self._walking_speed_kmh)

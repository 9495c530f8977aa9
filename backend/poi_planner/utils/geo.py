"""Great-circle distance helpers (haversine, spherical Earth)."""

import math
from typing import Iterable, Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray

EARTH_RADIUS_KM = 6371.0


class LatLng(Protocol):
    lat: float
    lng: float


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in kilometres between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    s = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push s marginally above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, s)))


def distance_km(a: LatLng, b: LatLng) -> float:
    """Haversine distance between two ``{lat, lng}`` points."""
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def haversine_distances(origin: LatLng, lats: ArrayLike, lngs: ArrayLike) -> NDArray[np.float64]:
    """Vectorised distances from ``origin`` to every ``(lats[i], lngs[i])``."""
    lat2 = np.radians(np.asarray(lats, dtype=np.float64))
    lng2 = np.radians(np.asarray(lngs, dtype=np.float64))
    lat1 = math.radians(origin.lat)
    lng1 = math.radians(origin.lng)

    s = (
        np.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.minimum(1.0, s)))


def path_length_km(points: Iterable[LatLng]) -> float:
    """Sum of the straight-line legs along ``points`` in order."""
    total = 0.0
    previous = None
    for point in points:
        if previous is not None:
            total += distance_km(previous, point)
        previous = point
    return total

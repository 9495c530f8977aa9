"""Unit tests for the haversine helpers."""

import numpy as np
import pytest

from poi_planner.models import Coordinates
from poi_planner.utils.geo import (
    distance_km,
    haversine_distance,
    haversine_distances,
    path_length_km,
)

BERLIN = Coordinates(lat=52.520, lng=13.405)
PARIS = Coordinates(lat=48.8566, lng=2.3522)


class TestDistanceKm:
    def test_same_point_is_zero(self) -> None:
        assert distance_km(BERLIN, BERLIN) == 0
        assert distance_km(PARIS, PARIS) == 0

    def test_symmetric(self) -> None:
        assert distance_km(BERLIN, PARIS) == pytest.approx(distance_km(PARIS, BERLIN))

    def test_known_distance(self) -> None:
        # Berlin - Paris is roughly 878 km great-circle
        assert distance_km(BERLIN, PARIS) == pytest.approx(878, abs=5)

    def test_antipodes_bounded_by_half_circumference(self) -> None:
        a = Coordinates(lat=0.0, lng=0.0)
        b = Coordinates(lat=0.0, lng=180.0)
        d = distance_km(a, b)
        assert d == pytest.approx(20015, abs=1)
        assert d <= 20016

    def test_poles(self) -> None:
        north = Coordinates(lat=90.0, lng=0.0)
        south = Coordinates(lat=-90.0, lng=45.0)
        assert 0 <= distance_km(north, south) <= 20016

    def test_scalar_form_matches(self) -> None:
        assert haversine_distance(BERLIN.lat, BERLIN.lng, PARIS.lat, PARIS.lng) == pytest.approx(
            distance_km(BERLIN, PARIS)
        )


class TestVectorised:
    def test_matches_scalar(self) -> None:
        lats = [52.521, 52.530, 48.8566]
        lngs = [13.406, 13.420, 2.3522]
        result = haversine_distances(BERLIN, lats, lngs)
        expected = [haversine_distance(BERLIN.lat, BERLIN.lng, la, ln) for la, ln in zip(lats, lngs)]
        assert np.allclose(result, expected)

    def test_zero_for_origin(self) -> None:
        result = haversine_distances(BERLIN, [BERLIN.lat], [BERLIN.lng])
        assert result[0] == pytest.approx(0.0)


class TestPathLength:
    def test_empty_and_single(self) -> None:
        assert path_length_km([]) == 0.0
        assert path_length_km([BERLIN]) == 0.0

    def test_sum_of_legs(self) -> None:
        mid = Coordinates(lat=50.0, lng=8.0)
        expected = distance_km(BERLIN, mid) + distance_km(mid, PARIS)
        assert path_length_km([BERLIN, mid, PARIS]) == pytest.approx(expected)

"""Tests for geodesy: distances, bearings and lat/lon conversion."""

import math
import unittest

import numpy as np
import pytest

from hopper import constants as C
from hopper.geodesy import (
    GeoPoint, bearing, geo_to_vector, move_by_meters, normalize_angle,
    normalize_longitude, surface_distance, vector_to_geo,
)


class TestNormalize(unittest.TestCase):

    def test_angle_wraps_into_range(self):
        self.assertAlmostEqual(normalize_angle(370.0), 10.0)
        self.assertAlmostEqual(normalize_angle(-90.0), 270.0)
        self.assertEqual(normalize_angle(360.0), 0.0)

    def test_tiny_negative_angle_stays_below_360(self):
        self.assertLess(normalize_angle(-1e-17), 360.0)

    def test_longitude_wraps_into_range(self):
        self.assertAlmostEqual(normalize_longitude(190.0), -170.0)
        self.assertAlmostEqual(normalize_longitude(-190.0), 170.0)
        self.assertAlmostEqual(normalize_longitude(180.0), -180.0)


class TestGeoPoint(unittest.TestCase):

    def test_longitude_normalized_on_construction(self):
        p = GeoPoint(10.0, 350.0)
        self.assertAlmostEqual(p.longitude, -10.0)

    def test_latitude_out_of_range_rejected(self):
        with self.assertRaises(ValueError):
            GeoPoint(91.0, 0.0)

    def test_non_finite_rejected(self):
        with self.assertRaises(ValueError):
            GeoPoint(float('nan'), 0.0)
        with self.assertRaises(ValueError):
            GeoPoint(0.0, float('inf'))

    def test_frozen(self):
        p = GeoPoint(0.0, 0.0)
        with self.assertRaises(Exception):
            p.latitude = 5.0


class TestSurfaceDistance(unittest.TestCase):

    def test_one_degree_along_equator(self):
        """One degree of longitude on the equator of a 600 km body."""
        d = surface_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), 600000.0)
        self.assertAlmostEqual(d, 10471.98, places=1)

    def test_zero_for_same_point(self):
        p = GeoPoint(12.0, -45.0)
        self.assertEqual(surface_distance(p, p), 0.0)

    def test_symmetric(self):
        a = GeoPoint(10.0, 20.0)
        b = GeoPoint(-5.0, 33.0)
        self.assertAlmostEqual(surface_distance(a, b), surface_distance(b, a), places=6)

    def test_antipodes_half_circumference(self):
        d = surface_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0), 600000.0)
        self.assertAlmostEqual(d, math.pi * 600000.0, places=3)

    def test_across_dateline(self):
        d = surface_distance(GeoPoint(0.0, 179.5), GeoPoint(0.0, -179.5), 600000.0)
        self.assertAlmostEqual(d, 10471.98, places=1)


class TestBearing(unittest.TestCase):

    def test_east(self):
        self.assertAlmostEqual(bearing(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)), 90.0, places=6)

    def test_cardinal_directions(self):
        origin = GeoPoint(0.0, 0.0)
        self.assertAlmostEqual(bearing(origin, GeoPoint(1.0, 0.0)), 0.0, places=6)
        self.assertAlmostEqual(bearing(origin, GeoPoint(-1.0, 0.0)), 180.0, places=6)
        self.assertAlmostEqual(bearing(origin, GeoPoint(0.0, -1.0)), 270.0, places=6)

    def test_range(self):
        for lat, lon in [(10, 10), (-10, 10), (-10, -10), (10, -10), (45, 170)]:
            b = bearing(GeoPoint(0.0, 0.0), GeoPoint(lat, lon))
            self.assertGreaterEqual(b, 0.0)
            self.assertLess(b, 360.0)

    def test_not_reciprocal_at_high_latitude(self):
        a = GeoPoint(60.0, 0.0)
        b = GeoPoint(60.0, 20.0)
        forward = bearing(a, b)
        back = bearing(b, a)
        self.assertGreater(abs(normalize_angle(back - forward) - 180.0), 1.0)


class TestVectorConversion(unittest.TestCase):

    def test_equator_prime_meridian_on_x_axis(self):
        np.testing.assert_array_almost_equal(
            geo_to_vector(GeoPoint(0.0, 0.0), 600000.0), [600000.0, 0.0, 0.0])

    def test_north_pole_on_rotation_axis(self):
        r = geo_to_vector(GeoPoint(90.0, 0.0), 1.0)
        np.testing.assert_array_almost_equal(r, [0.0, 0.0, 1.0])

    def test_round_trip(self):
        p = GeoPoint(-33.3, 151.2)
        q = vector_to_geo(geo_to_vector(p, 123.0))
        self.assertAlmostEqual(q.latitude, p.latitude, places=9)
        self.assertAlmostEqual(q.longitude, p.longitude, places=9)

    def test_vector_to_geo_ignores_magnitude(self):
        p = vector_to_geo(np.array([0.0, 5.0, 0.0]))
        self.assertAlmostEqual(p.latitude, 0.0)
        self.assertAlmostEqual(p.longitude, 90.0)

    def test_zero_vector_rejected(self):
        with self.assertRaises(ValueError):
            vector_to_geo(np.zeros(3))


def test_move_by_meters_east_matches_distance():
    start = GeoPoint(0.0, 0.0)
    moved = move_by_meters(start, east=100.0)
    assert moved.latitude == pytest.approx(0.0)
    assert surface_distance(start, moved) == pytest.approx(100.0, rel=1e-6)
    assert bearing(start, moved) == pytest.approx(90.0, abs=1e-6)


def test_move_by_meters_north():
    start = GeoPoint(10.0, 20.0)
    moved = move_by_meters(start, north=50.0)
    assert moved.longitude == pytest.approx(20.0)
    assert surface_distance(start, moved) == pytest.approx(50.0, rel=1e-6)


def test_move_by_meters_saturates_at_pole():
    moved = move_by_meters(GeoPoint(89.9999, 0.0), north=C.BODY_RADIUS)
    assert moved.latitude == 90.0


def _random_points(rng, count):
    lats = rng.uniform(-89.0, 89.0, count)
    lons = rng.uniform(-180.0, 180.0, count)
    return [GeoPoint(float(lat), float(lon)) for lat, lon in zip(lats, lons)]


@pytest.mark.parametrize("seed", [0, 1, 7, 42, 2024])
def test_distance_triangle_inequality(seed):
    rng = np.random.default_rng(seed)
    for _ in range(50):
        a, b, c = _random_points(rng, 3)
        direct = surface_distance(a, c)
        assert direct <= surface_distance(a, b) + surface_distance(b, c) + 1e-6


@pytest.mark.parametrize("seed", [3, 11, 99])
def test_distance_bounds_for_distinct_points(seed):
    rng = np.random.default_rng(seed)
    for _ in range(100):
        a, b = _random_points(rng, 2)
        d = surface_distance(a, b)
        assert 0.0 < d <= math.pi * C.BODY_RADIUS + 1e-6

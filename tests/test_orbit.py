"""Tests for Keplerian apsides timing and the hop apoapsis estimate."""

import math
import unittest

import numpy as np

from hopper import constants as C
from hopper.orbit import estimate_hop_apoapsis, time_to_apsides


class TestTimeToApsides(unittest.TestCase):

    def setUp(self):
        self.r = np.array([C.BODY_RADIUS + 1000.0, 0.0, 0.0])

    def test_climbing_arc_apoapsis_first(self):
        v = np.array([100.0, 150.0, 0.0])   # outward and eastward, suborbital
        t_ap, t_pe = time_to_apsides(self.r, v, C.BODY_MU)
        self.assertLess(t_ap, t_pe)
        self.assertGreater(t_ap, 0.0)

    def test_falling_arc_periapsis_first(self):
        v = np.array([-100.0, 150.0, 0.0])
        t_ap, t_pe = time_to_apsides(self.r, v, C.BODY_MU)
        self.assertGreater(t_ap, t_pe)

    def test_time_to_apex_matches_flat_ground_estimate(self):
        """Climbing at 100 m/s, the apex comes after roughly v_up / g."""
        v = np.array([100.0, 150.0, 0.0])
        t_ap, _ = time_to_apsides(self.r, v, C.BODY_MU)
        g = C.BODY_MU / self.r[0] ** 2
        self.assertAlmostEqual(t_ap, 100.0 / g, delta=0.5)

    def test_escape_trajectory(self):
        v_escape = math.sqrt(2.0 * C.BODY_MU / self.r[0])
        t_ap, t_pe = time_to_apsides(self.r, np.array([0.0, 1.1 * v_escape, 0.0]), C.BODY_MU)
        self.assertEqual(t_ap, math.inf)
        self.assertEqual(t_pe, 0.0)

    def test_circular_orbit(self):
        v_circ = math.sqrt(C.BODY_MU / self.r[0])
        t_ap, t_pe = time_to_apsides(self.r, np.array([0.0, v_circ, 0.0]), C.BODY_MU)
        self.assertEqual((t_ap, t_pe), (0.0, 0.0))


class TestHopApoapsis(unittest.TestCase):

    def test_positive_and_increasing(self):
        short = estimate_hop_apoapsis(C.BODY_MU, C.BODY_RADIUS, 1000.0)
        long = estimate_hop_apoapsis(C.BODY_MU, C.BODY_RADIUS, 20000.0)
        self.assertGreater(short, 0.0)
        self.assertGreater(long, short)

    def test_zero_distance(self):
        self.assertAlmostEqual(estimate_hop_apoapsis(C.BODY_MU, C.BODY_RADIUS, 0.0), 0.0, places=3)

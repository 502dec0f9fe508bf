"""
Hopper - Orbit Utilities

Two-body helpers used by the reference host's OrbitInfo and by telemetry:
- Keplerian time to apoapsis / periapsis from inertial state vectors
- Apoapsis needed for a hop of a given surface distance
"""

import math
from typing import NamedTuple

import numpy as np


class Apsides(NamedTuple):
    """Times (s) until the next apoapsis and periapsis passage."""
    time_to_apoapsis: float
    time_to_periapsis: float


def time_to_apsides(r: np.ndarray, v: np.ndarray, mu: float) -> Apsides:
    """
    Time until the next apoapsis and periapsis of an elliptical orbit.

    On a suborbital hop the periapsis lies deep inside the body: while
    climbing the apoapsis comes first, and once past the apex the next
    apoapsis is almost a full period away.

    Open (parabolic/hyperbolic) trajectories have no apoapsis:
    returns (inf, 0). A circular orbit returns (0, 0).
    """
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    r_mag = float(np.linalg.norm(r))
    v_mag = float(np.linalg.norm(v))

    energy = 0.5 * v_mag * v_mag - mu / r_mag
    if energy >= 0.0:
        return Apsides(math.inf, 0.0)

    h = np.cross(r, v)
    e_vec = np.cross(v, h) / mu - r / r_mag
    ecc = float(np.linalg.norm(e_vec))
    if ecc < 1e-9:
        return Apsides(0.0, 0.0)

    a = -mu / (2.0 * energy)
    n = math.sqrt(mu / a ** 3)

    cos_nu = float(np.clip(np.dot(e_vec, r) / (ecc * r_mag), -1.0, 1.0))
    nu = math.acos(cos_nu)
    if np.dot(r, v) < 0.0:
        nu = 2.0 * math.pi - nu

    ecc_anomaly = 2.0 * math.atan2(math.sqrt(1.0 - ecc) * math.sin(nu / 2.0),
                                   math.sqrt(1.0 + ecc) * math.cos(nu / 2.0))
    mean_anomaly = (ecc_anomaly - ecc * math.sin(ecc_anomaly)) % (2.0 * math.pi)

    time_to_pe = ((2.0 * math.pi - mean_anomaly) % (2.0 * math.pi)) / n
    time_to_ap = ((math.pi - mean_anomaly) % (2.0 * math.pi)) / n
    return Apsides(time_to_ap, time_to_pe)


def estimate_hop_apoapsis(mu: float, radius: float, distance: float) -> float:
    """
    Apoapsis altitude (m) needed for a hop of the given surface distance.

    The hop speed is the circular speed scaled by the square root of the
    fraction of the circumference to cover.

    Args:
        mu: Gravitational parameter (m^3/s^2)
        radius: Launch radius, body radius plus altitude (m)
        distance: Distance to the target (m)
    """
    hop_velocity = math.sqrt(mu / radius) * math.sqrt(distance / (2.0 * math.pi * radius))
    semi_major_axis = 1.0 / (2.0 / radius - hop_velocity ** 2 / mu)
    return semi_major_axis * 2.0 - radius

"""
Hopper - Rotation Compensator

Predicts where the target will be, relative to the vehicle, by the time a
hop arrives, so the launch heading can aim at the future rather than the
current target location.

The body keeps turning under a vehicle in ballistic flight. Over the
estimated time of flight it sweeps

    theta = 360 deg * tof / rotation_period

about its rotation axis. The current-to-target offset, rotated by that
sweep, is added to the unrotated target:

    adjusted = target + (R(theta) target - R(theta) current)

With no rotation the adjusted target is 2 target - current, which lies on
the great circle through current and target, so the corrected heading
then equals the plain bearing to the target.
"""

import math

import numpy as np

from . import constants as C
from .frames import rotate_about_axis
from .geodesy import GeoPoint, bearing, vector_to_geo


def estimate_time_of_flight(surface_gravity: float, distance: float) -> float:
    """
    Flight time of a 45 deg ballistic arc covering a surface distance.

    v = sqrt(g d), t = 2 v / (g sqrt(2)). Deliberately independent of the
    launch angle actually flown.

    Args:
        surface_gravity: Local surface gravity (m/s^2)
        distance: Great-circle distance to cover (m)

    Returns:
        Estimated time of flight (s); 0 for non-positive inputs
    """
    if surface_gravity <= 0.0 or distance <= 0.0:
        return 0.0
    velocity = math.sqrt(surface_gravity * distance)
    return 2.0 * velocity / (surface_gravity * math.sqrt(2.0))


def estimate_time_of_flight_kepler(mu: float, body_radius: float, altitude: float,
                                   distance: float, launch_angle_deg: float) -> float:
    """
    Half-period estimate of the hop ellipse.

    Periapsis is the current radius, apoapsis is raised by
    distance * tan(launch_angle).
    """
    periapsis = body_radius + altitude
    apoapsis = periapsis + distance * math.tan(math.radians(launch_angle_deg))
    semi_major_axis = 0.5 * (periapsis + apoapsis)
    return math.pi * math.sqrt(semi_major_axis ** 3 / mu)


def rotation_angle(time_of_flight: float, rotation_period: float) -> float:
    """
    Angle (deg) the body sweeps during time_of_flight.

    A non-positive or non-finite period means a non-rotating body.
    """
    if not math.isfinite(rotation_period) or rotation_period <= 0.0:
        return 0.0
    return 360.0 * time_of_flight / rotation_period


def adjusted_target(current_radial: np.ndarray, target_radial: np.ndarray,
                    rotation_period: float, time_of_flight: float,
                    rotation_axis: np.ndarray = C.BODY_ROTATION_AXIS) -> np.ndarray:
    """
    Rotation-compensated target position.

    Args:
        current_radial: Body-centred vehicle position (m)
        target_radial: Body-centred target position (m)
        rotation_period: Sidereal rotation period (s)
        time_of_flight: Estimated flight time (s)
        rotation_axis: Body rotation axis

    Returns:
        Body-centred adjusted target position (m)
    """
    current_radial = np.asarray(current_radial, dtype=float)
    target_radial = np.asarray(target_radial, dtype=float)

    angle = rotation_angle(time_of_flight, rotation_period)
    current_rotated = rotate_about_axis(current_radial, rotation_axis, angle)
    target_rotated = rotate_about_axis(target_radial, rotation_axis, angle)

    relative_movement = target_rotated - current_rotated
    return target_radial + relative_movement


def corrected_heading(current: GeoPoint, adjusted: np.ndarray) -> float:
    """Bearing (deg, [0, 360)) from the current point to an adjusted target."""
    return bearing(current, vector_to_geo(adjusted))

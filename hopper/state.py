"""
Hopper - Snapshot Value Types

The guidance core only reads snapshots: the body description, the vehicle
state handed in every tick, the target, and the latest impact prediction.
All are owned and refreshed by the host; nothing here is mutated by the
core.

Positions are body-centred and body-fixed (they rotate with the body).
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from . import constants as C
from .geodesy import GeoPoint, geo_to_vector, vector_to_geo


@dataclass(frozen=True)
class BodyInfo:
    """
    Description of the body being hopped on.

    Attributes:
        radius: Mean radius (m)
        mu: Gravitational parameter (m^3/s^2)
        rotation_period: Sidereal rotation period (s); <= 0 or inf for none
        rotation_axis: Rotation axis in the body-fixed frame
    """
    radius: float = C.BODY_RADIUS
    mu: float = C.BODY_MU
    rotation_period: float = C.BODY_ROTATION_PERIOD
    rotation_axis: np.ndarray = field(default_factory=lambda: C.BODY_ROTATION_AXIS.copy())

    @property
    def surface_gravity(self) -> float:
        """Gravitational acceleration at the mean radius (m/s^2)."""
        return self.mu / self.radius ** 2

    @property
    def angular_velocity(self) -> np.ndarray:
        """Rotation vector (rad/s); zero for a non-rotating body."""
        if not np.isfinite(self.rotation_period) or self.rotation_period <= 0.0:
            return np.zeros(3)
        axis = np.asarray(self.rotation_axis, dtype=float)
        return 2.0 * np.pi / self.rotation_period * axis / np.linalg.norm(axis)


@dataclass
class VehicleState:
    """
    Vehicle snapshot read by the guidance core each tick.

    Attributes:
        position: Body-fixed position (m) [3]
        altitude: Altitude above the surface (m)
        mass: Total mass (kg)
        available_thrust: Thrust at full throttle (N)
        landed: True when landed or splashed down
        time: Universal time of the snapshot (s)
    """
    position: np.ndarray = field(default_factory=lambda: np.array([C.BODY_RADIUS, 0.0, 0.0]))
    altitude: float = 0.0
    mass: float = 0.0
    available_thrust: float = 0.0
    landed: bool = False
    time: float = 0.0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)

    @property
    def geo(self) -> GeoPoint:
        """Latitude/longitude under the vehicle."""
        return vector_to_geo(self.position)

    def __str__(self) -> str:
        return (
            f"VehicleState(t={self.time:.2f}s, "
            f"pos={self.geo}, "
            f"alt={self.altitude:.1f}m, "
            f"m={self.mass:.1f}kg, "
            f"landed={self.landed})"
        )


@dataclass
class TargetState:
    """
    Hop target, set by target selection and read-only to the core.

    Attributes:
        position: Body-fixed position (m) [3]
        altitude: Altitude above the surface (m)
    """
    position: np.ndarray
    altitude: float = 0.0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)

    @classmethod
    def from_geo(cls, point: GeoPoint, body: BodyInfo, altitude: float = 0.0) -> 'TargetState':
        """Target on the surface at a latitude/longitude."""
        return cls(position=geo_to_vector(point, body.radius + altitude), altitude=altitude)

    @property
    def geo(self) -> GeoPoint:
        return vector_to_geo(self.position)


@dataclass(frozen=True)
class ImpactPrediction:
    """
    Latest predicted landing point.

    Attributes:
        end_position: Where the vehicle would come down if thrust ceased now
        end_time: Universal time of that impact (s)
    """
    end_position: GeoPoint
    end_time: float


def impact_or_current(prediction: Optional[ImpactPrediction], vehicle: VehicleState) -> GeoPoint:
    """The predicted impact point, or the vehicle's own position without one."""
    if prediction is not None:
        return prediction.end_position
    return vehicle.geo

"""
Hopper - External Collaborator Interfaces

The guidance core consumes these capabilities from its host. They are
structural protocols: any object with matching members will do (the
reference host in hopper.simulation and the test fakes implement them).

All calls are non-blocking queries or commands.
"""

from enum import Enum, auto
from typing import Any, Optional, Protocol

import numpy as np

from .state import ImpactPrediction, VehicleState


class AttitudeReference(Enum):
    """Frame an attitude target is expressed in."""
    SURFACE_NORTH = auto()   # local east-north-up frame; target is a quaternion
    INERTIAL = auto()        # inertial axes; target is a unit direction


class AttitudeController(Protocol):
    def set_target(self, orientation: np.ndarray, reference: AttitudeReference,
                   requester: Any, roll_lock: bool = False, pitch_lock: bool = True,
                   yaw_lock: bool = True) -> None:
        """Point the vehicle. Locks select which axes are actively controlled."""
        ...

    def deactivate(self) -> None:
        """Release attitude command authority."""
        ...

    def angle_error_to_target(self) -> float:
        """Angle (deg) between the current and the commanded attitude."""
        ...


class ThrustController(Protocol):
    target_throttle: float

    def thrust_off(self) -> None:
        ...

    def thrust_for_delta_v(self, delta_v: float, time_constant: float) -> None:
        """Throttle to deliver delta_v (m/s) over roughly time_constant (s)."""
        ...

    def add_user(self, user: Any) -> None:
        ...

    def remove_user(self, user: Any) -> None:
        ...


class ImpactPredictionProvider(Protocol):
    def current_prediction(self) -> Optional[ImpactPrediction]:
        """Latest prediction, possibly stale, or None before the first one."""
        ...

    def add_dependent(self, dependent: Any) -> None:
        ...

    def remove_dependent(self, dependent: Any) -> None:
        ...


class TrajectoryCorrectionService(Protocol):
    def compute_course_correction(self, aggressive: bool) -> np.ndarray:
        """Delta-v vector (m/s, inertial) that removes the predicted miss."""
        ...


class TimeWarpController(Protocol):
    def warp_at_rate(self, rate: float) -> None:
        ...

    def minimum_warp(self) -> None:
        ...


class OrbitInfo(Protocol):
    """Refreshed by the host every physics tick."""
    time_to_apoapsis: float
    time_to_periapsis: float


class DescentController(Protocol):
    status: str

    def drive(self, vehicle: VehicleState) -> None:
        """Issue one tick of terminal descent commands."""
        ...

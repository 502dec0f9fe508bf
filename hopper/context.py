"""
Hopper - Guidance Context

A GuidanceContext is built once per tick from the vehicle and target
snapshots. It exposes the collaborators the current step may command and
the derived quantities every step reasons about (distances, headings,
predicted impact, along-track delta), each computed at most once per tick.

Without an impact prediction the vehicle's own position stands in for the
predicted impact.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Optional

import numpy as np

from . import constants as C
from .config import HopConfig
from .frames import local_enu_basis
from .geodesy import GeoPoint, bearing, geo_to_vector, surface_distance, vector_to_geo
from .interfaces import (
    AttitudeController, DescentController, OrbitInfo, ThrustController,
    TimeWarpController, TrajectoryCorrectionService,
)
from .orbit import estimate_hop_apoapsis
from .rotation import (
    adjusted_target, corrected_heading, estimate_time_of_flight, estimate_time_of_flight_kepler,
)
from .state import BodyInfo, ImpactPrediction, TargetState, VehicleState, impact_or_current


@dataclass
class GuidanceContext:
    """Everything a guidance step sees during one tick."""
    config: HopConfig
    body: BodyInfo
    vehicle: VehicleState
    target: TargetState
    prediction: Optional[ImpactPrediction]
    attitude: AttitudeController
    thrust: ThrustController
    requester: Any = None
    correction: Optional[TrajectoryCorrectionService] = None
    warp: Optional[TimeWarpController] = None
    orbit: Optional[OrbitInfo] = None
    descent: Optional[DescentController] = None
    # written by the step, picked up by the pilot after the tick
    status: Optional[str] = None

    # -------------------------------------------------------------- geodesy

    @cached_property
    def current_geo(self) -> GeoPoint:
        return self.vehicle.geo

    @cached_property
    def target_geo(self) -> GeoPoint:
        return self.target.geo

    @cached_property
    def predicted_impact(self) -> GeoPoint:
        return impact_or_current(self.prediction, self.vehicle)

    @cached_property
    def distance_to_target(self) -> float:
        """Great-circle distance vehicle -> target (m)."""
        return surface_distance(self.current_geo, self.target_geo, self.body.radius)

    @cached_property
    def impact_distance_to_target(self) -> float:
        """Great-circle distance predicted impact -> target (m)."""
        return surface_distance(self.predicted_impact, self.target_geo, self.body.radius)

    @cached_property
    def heading(self) -> float:
        """Bearing to the target (deg); 0 when already on top of it."""
        if self.distance_to_target < C.MIN_BEARING_DISTANCE:
            return 0.0
        return bearing(self.current_geo, self.target_geo)

    # ------------------------------------------------------ rotation aware

    @cached_property
    def time_of_flight(self) -> float:
        return estimate_time_of_flight(self.body.surface_gravity, self.distance_to_target)

    @cached_property
    def time_of_flight_kepler(self) -> float:
        return estimate_time_of_flight_kepler(
            self.body.mu, self.body.radius, self.vehicle.altitude,
            self.distance_to_target, self.config.launch_angle,
        )

    @cached_property
    def adjusted_target(self) -> np.ndarray:
        return adjusted_target(
            self.vehicle.position, self.target.position,
            self.body.rotation_period, self.time_of_flight, self.body.rotation_axis,
        )

    @cached_property
    def adjusted_target_geo(self) -> GeoPoint:
        return vector_to_geo(self.adjusted_target)

    @cached_property
    def corrected_heading(self) -> float:
        """Bearing to the rotation-adjusted target (deg)."""
        if surface_distance(self.current_geo, self.adjusted_target_geo,
                            self.body.radius) < C.MIN_BEARING_DISTANCE:
            return self.heading
        return corrected_heading(self.current_geo, self.adjusted_target)

    @property
    def wanted_heading(self) -> float:
        return self.corrected_heading if self.config.use_corrected_heading else self.heading

    # ------------------------------------------------------- impact delta

    @cached_property
    def relative_distance_to_impact_delta(self) -> float:
        """
        Signed along-track distance still separating impact and target.

        Current, target and impact are placed on the reference sphere; the
        approach direction is the tangent-plane component of
        (target - current) at the vehicle, and the delta is the projection
        of (target - impact) onto it. Positive while the predicted impact
        falls short of the target, <= 0 once it has reached or passed it.
        """
        radius = self.body.radius
        current = geo_to_vector(self.current_geo, radius)
        target = geo_to_vector(self.target_geo, radius)
        impact = geo_to_vector(self.predicted_impact, radius)

        _, _, up = local_enu_basis(current, self.body.rotation_axis)
        approach = target - current
        approach = approach - np.dot(approach, up) * up
        approach_norm = float(np.linalg.norm(approach))
        if approach_norm < C.MIN_BEARING_DISTANCE:
            return 0.0
        return float(np.dot(target - impact, approach / approach_norm))

    # -------------------------------------------------------------- vehicle

    @cached_property
    def thrust_to_weight(self) -> float:
        weight = self.vehicle.mass * self.body.surface_gravity
        if weight <= 0.0:
            return 0.0
        return self.vehicle.available_thrust / weight

    @property
    def time_to_land(self) -> float:
        if self.prediction is None:
            return 0.0
        return self.prediction.end_time - self.vehicle.time

    @cached_property
    def hop_apoapsis(self) -> float:
        """Apoapsis altitude needed to reach the target (m)."""
        return estimate_hop_apoapsis(
            self.body.mu, self.body.radius + self.vehicle.altitude, self.distance_to_target,
        )

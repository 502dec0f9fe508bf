"""
Hopper - Reference Simulation Host

A minimal host that flies the hop pilot against point-mass dynamics on a
rotating spherical body, implementing every collaborator interface:

  - SimAttitudeController:  rate-limited slew of the thrust direction
  - SimThrustController:    throttle channel with delta-v burns
  - SimImpactPredictor:     ballistic propagation to the surface, refreshed
                            every prediction_interval (stale in between)
  - SimCourseCorrector:     delta-v that removes the predicted miss
  - SimTimeWarp:            records warp requests
  - SimOrbitInfo:           Keplerian apsides from the inertial state
  - SimDescentController:   suicide-burn terminal descent

Coordinate Frames:
- Vehicle dynamics: body-centred inertial frame
- Guidance snapshots: body-fixed frame, which rotates about the body axis
  at 2*pi/rotation_period; both frames coincide at t = 0

Execution order per drive tick:
  1. Refresh impact prediction (when due)
  2. pilot.drive()
  3. Every fixed_update_every ticks: refresh orbit, pilot.fixed_update()
  4. Log
  5. Slew attitude, integrate dynamics
"""

import csv
from dataclasses import dataclass, field
import logging
import math
import os
from typing import Any, List, Optional

import numpy as np

from . import constants as C
from .config import HopConfig, SimulationConfig, create_default_config, create_simulation_config
from .frames import (
    angle_between, attitude_forward_vector, rotate_about_axis, rotate_toward,
    surface_to_body_fixed,
)
from .geodesy import GeoPoint, geo_to_vector, surface_distance, vector_to_geo
from .integrators import integrate
from .interfaces import AttitudeReference
from .orbit import time_to_apsides
from .pilot import HopPilot
from .state import BodyInfo, ImpactPrediction, TargetState, VehicleState

logger = logging.getLogger(__name__)


# =============================================================================
# World: vehicle dynamics on a rotating body
# =============================================================================

def _gravity(r: np.ndarray, mu: float) -> np.ndarray:
    r_mag = np.linalg.norm(r)
    return -mu * r / r_mag ** 3


@dataclass
class SimVehicle:
    """
    Inertial vehicle state.

    Attributes:
        r: Position (m) [3]
        v: Velocity (m/s) [3]
        m: Mass (kg)
        direction: Unit thrust direction [3]
        throttle: Applied throttle [0, 1]
        t: Time (s)
        landed: Resting on the surface, co-rotating with it
        touchdown_speed: Surface-relative speed at the last touchdown (m/s)
    """
    r: np.ndarray
    v: np.ndarray
    m: float
    direction: np.ndarray
    throttle: float = 0.0
    t: float = 0.0
    landed: bool = True
    touchdown_speed: Optional[float] = None


class SimWorld:
    """Rotating body plus one vehicle."""

    def __init__(self, body: BodyInfo, config: SimulationConfig, start: GeoPoint):
        self.body = body
        self.config = config
        self.axis = np.asarray(body.rotation_axis, dtype=float)
        self.axis = self.axis / np.linalg.norm(self.axis)
        self.omega = body.angular_velocity

        r0 = geo_to_vector(start, body.radius)
        self.vehicle = SimVehicle(
            r=r0,
            v=np.cross(self.omega, r0),
            m=config.initial_mass,
            direction=r0 / np.linalg.norm(r0),
        )

    # ------------------------------------------------------------ frames

    def rotation_angle_deg(self, t: float) -> float:
        """Angle the body has turned through since t = 0 (deg)."""
        return math.degrees(float(np.linalg.norm(self.omega)) * t)

    def to_body_fixed(self, vec: np.ndarray, t: float) -> np.ndarray:
        return rotate_about_axis(vec, self.axis, -self.rotation_angle_deg(t))

    def to_inertial(self, vec: np.ndarray, t: float) -> np.ndarray:
        return rotate_about_axis(vec, self.axis, self.rotation_angle_deg(t))

    # ------------------------------------------------------------ vehicle

    @property
    def max_acceleration(self) -> float:
        """Full-throttle acceleration (m/s^2); zero once dry."""
        if self.vehicle.m <= self.config.dry_mass:
            return 0.0
        return self.config.max_thrust / self.vehicle.m

    def altitude(self) -> float:
        return float(np.linalg.norm(self.vehicle.r)) - self.body.radius

    def surface_velocity(self) -> np.ndarray:
        """Velocity relative to the rotating surface, inertial axes (m/s)."""
        return self.vehicle.v - np.cross(self.omega, self.vehicle.r)

    def snapshot(self) -> VehicleState:
        veh = self.vehicle
        return VehicleState(
            position=self.to_body_fixed(veh.r, veh.t),
            altitude=self.altitude(),
            mass=veh.m,
            available_thrust=self.config.max_thrust if veh.m > self.config.dry_mass else 0.0,
            landed=veh.landed,
            time=veh.t,
        )

    # ------------------------------------------------------------ dynamics

    def _derivative(self, t: float, y: np.ndarray) -> np.ndarray:
        r, v, m = y[0:3], y[3:6], y[6]
        thrust = self.config.max_thrust * self.vehicle.throttle if m > self.config.dry_mass else 0.0
        a = _gravity(r, self.body.mu) + (thrust / m) * self.vehicle.direction
        m_dot = -thrust / (self.config.isp * C.G0)
        return np.concatenate([v, a, [m_dot]])

    def step(self, dt: float) -> None:
        """Advance the vehicle by dt."""
        veh = self.vehicle
        if veh.landed:
            up = veh.r / np.linalg.norm(veh.r)
            lift = self.max_acceleration * veh.throttle * float(np.dot(veh.direction, up))
            g_local = self.body.mu / float(np.dot(veh.r, veh.r))
            if lift <= g_local:
                # resting: co-rotate with the surface, burn propellant in place
                veh.r = rotate_about_axis(veh.r, self.axis, self.rotation_angle_deg(dt))
                veh.v = np.cross(self.omega, veh.r)
                if veh.m > self.config.dry_mass:
                    m_dot = self.config.max_thrust * veh.throttle / (self.config.isp * C.G0)
                    veh.m = max(self.config.dry_mass, veh.m - m_dot * dt)
                veh.t += dt
                return
            veh.landed = False
            logger.debug(f"Liftoff at t={veh.t:.2f}s")

        y = np.concatenate([veh.r, veh.v, [veh.m]])
        y = integrate(self._derivative, y, veh.t, dt)
        veh.r, veh.v, veh.m = y[0:3], y[3:6], max(float(y[6]), self.config.dry_mass)
        veh.t += dt

        r_mag = float(np.linalg.norm(veh.r))
        if r_mag <= self.body.radius:
            veh.touchdown_speed = float(np.linalg.norm(self.surface_velocity()))
            veh.r = veh.r / r_mag * self.body.radius
            veh.v = np.cross(self.omega, veh.r)
            veh.landed = True
            logger.info(f"Touchdown at t={veh.t:.2f}s, {veh.touchdown_speed:.2f} m/s")


# =============================================================================
# Collaborators
# =============================================================================

class SimAttitudeController:
    """Slews the vehicle's thrust direction toward the commanded attitude."""

    def __init__(self, world: SimWorld):
        self.world = world
        self.target_direction: Optional[np.ndarray] = None
        self.requester: Any = None

    @property
    def active(self) -> bool:
        return self.target_direction is not None

    def set_target(self, orientation: np.ndarray, reference: AttitudeReference,
                   requester: Any, roll_lock: bool = False, pitch_lock: bool = True,
                   yaw_lock: bool = True) -> None:
        veh = self.world.vehicle
        if reference is AttitudeReference.SURFACE_NORTH:
            r_fixed = self.world.to_body_fixed(veh.r, veh.t)
            forward = surface_to_body_fixed(attitude_forward_vector(orientation), r_fixed,
                                            self.world.axis)
            direction = self.world.to_inertial(forward, veh.t)
        else:
            direction = np.asarray(orientation, dtype=float)
        self.target_direction = direction / np.linalg.norm(direction)
        self.requester = requester

    def deactivate(self) -> None:
        self.target_direction = None
        self.requester = None

    def angle_error_to_target(self) -> float:
        if self.target_direction is None:
            return 0.0
        return angle_between(self.world.vehicle.direction, self.target_direction)

    def update(self, dt: float) -> None:
        if self.target_direction is None:
            return
        veh = self.world.vehicle
        veh.direction = rotate_toward(veh.direction, self.target_direction,
                                      self.world.config.slew_rate * dt)


class SimThrustController:
    """Throttle channel shared by the pilot and the descent controller."""

    def __init__(self, world: SimWorld):
        self.world = world
        self.users: List[Any] = []

    @property
    def target_throttle(self) -> float:
        return self.world.vehicle.throttle

    @target_throttle.setter
    def target_throttle(self, value: float) -> None:
        self.world.vehicle.throttle = float(np.clip(value, 0.0, 1.0))

    def thrust_off(self) -> None:
        self.target_throttle = 0.0

    def thrust_for_delta_v(self, delta_v: float, time_constant: float) -> None:
        a_max = self.world.max_acceleration
        if a_max <= 0.0 or time_constant <= 0.0:
            self.target_throttle = 0.0
            return
        self.target_throttle = delta_v / time_constant / a_max

    def add_user(self, user: Any) -> None:
        if user not in self.users:
            self.users.append(user)

    def remove_user(self, user: Any) -> None:
        if user in self.users:
            self.users.remove(user)


class SimImpactPredictor:
    """
    Ballistic impact prediction.

    Propagates the current inertial state under gravity alone until it
    crosses the reference sphere, then expresses the crossing point in the
    body-fixed frame at the impact time. No prediction while landed or if
    the trajectory does not come down within prediction_horizon.
    """

    def __init__(self, world: SimWorld):
        self.world = world
        self.dependents: List[Any] = []
        self._prediction: Optional[ImpactPrediction] = None
        self._last_update = -math.inf

    def current_prediction(self) -> Optional[ImpactPrediction]:
        return self._prediction

    def add_dependent(self, dependent: Any) -> None:
        if dependent not in self.dependents:
            self.dependents.append(dependent)

    def remove_dependent(self, dependent: Any) -> None:
        if dependent in self.dependents:
            self.dependents.remove(dependent)

    def update(self, force: bool = False) -> None:
        now = self.world.vehicle.t
        if not force and now - self._last_update < self.world.config.prediction_interval:
            return
        self._last_update = now
        self._prediction = self.predict()

    def predict(self) -> Optional[ImpactPrediction]:
        veh = self.world.vehicle
        if veh.landed:
            return None

        mu = self.world.body.mu
        radius = self.world.body.radius
        h = self.world.config.prediction_step

        def ballistic(t: float, y: np.ndarray) -> np.ndarray:
            return np.concatenate([y[3:6], _gravity(y[0:3], mu)])

        y = np.concatenate([veh.r, veh.v])
        elapsed = 0.0
        while elapsed < self.world.config.prediction_horizon:
            y_next = integrate(ballistic, y, veh.t + elapsed, h)
            r_prev = float(np.linalg.norm(y[0:3]))
            r_next = float(np.linalg.norm(y_next[0:3]))
            if r_next <= radius:
                frac = (r_prev - radius) / (r_prev - r_next) if r_prev > r_next else 0.0
                frac = float(np.clip(frac, 0.0, 1.0))
                hit = y[0:3] + frac * (y_next[0:3] - y[0:3])
                t_hit = veh.t + elapsed + frac * h
                return ImpactPrediction(
                    end_position=vector_to_geo(self.world.to_body_fixed(hit, t_hit)),
                    end_time=t_hit,
                )
            y = y_next
            elapsed += h
        return None


class SimCourseCorrector:
    """Delta-v that moves the predicted impact onto the target."""

    def __init__(self, world: SimWorld, predictor: SimImpactPredictor, target: TargetState):
        self.world = world
        self.predictor = predictor
        self.target = target

    def compute_course_correction(self, aggressive: bool) -> np.ndarray:
        prediction = self.predictor.current_prediction()
        if prediction is None:
            return np.zeros(3)

        radius = self.world.body.radius
        impact = geo_to_vector(prediction.end_position, radius)
        target = geo_to_vector(self.target.geo, radius)
        miss = target - impact
        up = impact / radius
        miss = miss - np.dot(miss, up) * up

        time_to_go = max(prediction.end_time - self.world.vehicle.t, 1.0)
        gain = 1.0 if aggressive else 0.5
        return self.world.to_inertial(gain * miss / time_to_go, self.world.vehicle.t)


@dataclass
class SimTimeWarp:
    """Records warp requests; the simulation itself always runs at 1x."""
    rate: float = 1.0
    requests: List[float] = field(default_factory=list)

    def warp_at_rate(self, rate: float) -> None:
        self.rate = rate
        self.requests.append(rate)

    def minimum_warp(self) -> None:
        self.rate = 1.0
        self.requests.append(1.0)


class SimOrbitInfo:
    """Keplerian apsides times, refreshed by the host every physics tick."""

    def __init__(self, world: SimWorld):
        self.world = world
        self.time_to_apoapsis = 0.0
        self.time_to_periapsis = 0.0

    def refresh(self) -> None:
        veh = self.world.vehicle
        self.time_to_apoapsis, self.time_to_periapsis = time_to_apsides(
            veh.r, veh.v, self.world.body.mu
        )


class SimDescentController:
    """
    Suicide-burn terminal descent.

    Points retrograde to the surface velocity and lights the engine once
    the stopping distance at full thrust reaches the height above the
    touchdown margin; then throttles for the deceleration that stops the
    vehicle at that margin, and settles gently below it.
    """

    def __init__(self, world: SimWorld, attitude: SimAttitudeController,
                 thrust: SimThrustController, safety_factor: float = 1.3,
                 settle_speed: float = 2.0):
        self.world = world
        self.attitude = attitude
        self.thrust = thrust
        self.safety_factor = safety_factor
        self.settle_speed = settle_speed
        self.burning = False
        self.status = ""

    def drive(self, vehicle: VehicleState) -> None:
        world = self.world
        if vehicle.landed:
            self.thrust.thrust_off()
            self.status = "Landed"
            return

        r = world.vehicle.r
        up = r / np.linalg.norm(r)
        v_srf = world.surface_velocity()
        speed = float(np.linalg.norm(v_srf))
        height = vehicle.altitude - world.config.touchdown_margin
        g_local = world.body.mu / float(np.dot(r, r))
        a_max = world.max_acceleration

        direction = -v_srf / speed if speed > 1.0 else up
        self.attitude.set_target(direction, AttitudeReference.INERTIAL, self)

        net_decel = max(a_max - g_local, 0.1)
        stop_distance = speed * speed / (2.0 * net_decel)
        if not self.burning and height <= self.safety_factor * stop_distance:
            self.burning = True
            logger.info(f"Descent burn started at {vehicle.altitude:.0f} m, {speed:.1f} m/s")

        if not self.burning or a_max <= 0.0:
            throttle = 0.0
        elif height <= 0.0 or speed < self.settle_speed:
            # sink slowly instead of hovering
            throttle = 0.8 * g_local / a_max
        else:
            throttle = (speed * speed / (2.0 * height) + g_local) / a_max
        self.thrust.target_throttle = throttle
        self.status = f"Final descent: {vehicle.altitude:.0f} m at {speed:.1f} m/s"


# =============================================================================
# Run loop
# =============================================================================

@dataclass
class HopLog:
    """Container for logged hop data, one entry per drive tick."""
    time: List[float] = field(default_factory=list)
    altitude: List[float] = field(default_factory=list)
    latitude: List[float] = field(default_factory=list)
    longitude: List[float] = field(default_factory=list)
    throttle: List[float] = field(default_factory=list)
    speed: List[float] = field(default_factory=list)
    step: List[str] = field(default_factory=list)
    impact_distance: List[float] = field(default_factory=list)
    relative_delta: List[float] = field(default_factory=list)

    def append(self, world: SimWorld, pilot: HopPilot, target: TargetState) -> None:
        snapshot = world.snapshot()
        geo = snapshot.geo
        self.time.append(snapshot.time)
        self.altitude.append(snapshot.altitude)
        self.latitude.append(geo.latitude)
        self.longitude.append(geo.longitude)
        self.throttle.append(world.vehicle.throttle)
        self.speed.append(float(np.linalg.norm(world.surface_velocity())))
        self.step.append(pilot.session.step_name)
        impact = pilot.session.last_impact_distance
        delta = pilot.session.last_relative_delta
        self.impact_distance.append(float('nan') if impact is None else impact)
        self.relative_delta.append(float('nan') if delta is None else delta)

    def __len__(self) -> int:
        return len(self.time)

    def to_csv(self, filename: str) -> None:
        """Write the log to CSV for offline analysis."""
        os.makedirs(os.path.dirname(filename) or '.', exist_ok=True)
        header = ['time', 'altitude_m', 'latitude_deg', 'longitude_deg', 'throttle',
                  'speed_mps', 'step', 'impact_distance_m', 'relative_delta_m']
        with open(filename, 'w', newline='') as fh:
            writer = csv.writer(fh)
            writer.writerow(header)
            for row in zip(self.time, self.altitude, self.latitude, self.longitude,
                           self.throttle, self.speed, self.step, self.impact_distance,
                           self.relative_delta):
                writer.writerow(row)


@dataclass
class HopResult:
    """
    Outcome of a simulated hop.

    Attributes:
        log: Per-tick log
        final_state: Vehicle snapshot at the end of the run
        reason: Why the run stopped (the pilot's final status)
        landing_error: Surface distance final position -> target (m)
        touchdown_speed: Surface-relative speed at touchdown, None if the
            vehicle never came down
        steps: Distinct steps flown, in order
    """
    log: HopLog
    final_state: VehicleState
    reason: str
    landing_error: float
    touchdown_speed: Optional[float]
    steps: List[str]


def _step_sequence(log: HopLog) -> List[str]:
    seq: List[str] = []
    for name in log.step:
        if name != "N/A" and (not seq or seq[-1] != name):
            seq.append(name)
    return seq


def run_hop(start: GeoPoint, target: GeoPoint,
            hop_config: Optional[HopConfig] = None,
            sim_config: Optional[SimulationConfig] = None,
            body: Optional[BodyInfo] = None) -> HopResult:
    """
    Fly one hop in the reference simulation.

    Args:
        start: Launch site
        target: Hop target (on the surface)
        hop_config: Pilot configuration (default config if None)
        sim_config: Host configuration (defaults if None)
        body: Body description (reference body if None)

    Returns:
        HopResult
    """
    hop_config = hop_config or create_default_config()
    sim_config = sim_config or create_simulation_config()
    body = body or BodyInfo()

    world = SimWorld(body, sim_config, start)
    attitude = SimAttitudeController(world)
    thrust = SimThrustController(world)
    predictor = SimImpactPredictor(world)
    target_state = TargetState.from_geo(target, body)
    correction = SimCourseCorrector(world, predictor, target_state)
    warp = SimTimeWarp()
    orbit = SimOrbitInfo(world)
    descent = SimDescentController(world, attitude, thrust)

    pilot = HopPilot(body, attitude, thrust, predictor,
                     correction=correction, warp=warp, orbit=orbit, descent=descent,
                     config=hop_config, clock=lambda: world.vehicle.t)

    dt = sim_config.dt
    log = HopLog()

    logger.info(f"Starting hop simulation: {start} -> {target}, "
                f"dt={dt}s, max_time={sim_config.max_time}s")
    if sim_config.verbose:
        print("\n" + "=" * 72)
        print(f"HOP SIMULATION    | {start} -> {target} | dt={dt}s")
        print("=" * 72)
        print(f"{'Time (s)':^10} | {'Alt (m)':^10} | {'Speed (m/s)':^12} | {'Step':<20}")
        print("-" * 72)

    pilot.hop("simulation", world.snapshot(), target_state)

    tick = 0
    last_print_time = -math.inf
    while True:
        if world.vehicle.t >= sim_config.max_time:
            pilot.end_hop("Maximum simulation time reached")
            reason = pilot.status
            break

        predictor.update()
        pilot.drive(world.snapshot(), target_state)
        if tick % sim_config.fixed_update_every == 0:
            orbit.refresh()
            pilot.fixed_update(world.snapshot(), target_state)

        log.append(world, pilot, target_state)

        if not pilot.active:
            reason = pilot.status
            break

        if sim_config.verbose and world.vehicle.t - last_print_time >= 5.0:
            last_print_time = world.vehicle.t
            print(f"{world.vehicle.t:^10.1f} | {world.altitude():^10.1f} | "
                  f"{log.speed[-1]:^12.1f} | {pilot.session.step_name:<20}")

        attitude.update(dt)
        world.step(dt)
        tick += 1

    final_state = world.snapshot()
    landing_error = surface_distance(final_state.geo, target, body.radius)
    logger.info(f"Hop simulation finished at t={final_state.time:.1f}s: {reason}")
    if sim_config.verbose:
        print(f"\nTermination: {reason}")

    return HopResult(
        log=log,
        final_state=final_state,
        reason=reason,
        landing_error=landing_error,
        touchdown_speed=world.vehicle.touchdown_speed,
        steps=_step_sequence(log),
    )

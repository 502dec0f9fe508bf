"""
Hopper - Hop Pilot (control loop)

The host calls HopPilot at two independent rates:
  - drive():        high rate, the current step issues attitude/throttle
  - fixed_update(): physics rate, the current step checks its transitions

Each call builds a GuidanceContext from the vehicle/target snapshots,
delegates to guidance.advance() and swaps in the returned step before the
next tick. A terminal result ends the hop through end_hop(), which is the
single cancellation point and is safe to call from inside a tick.

The attitude and throttle channels belong to the current step while a hop
runs; end_hop() and disable() release them so no stale command stays
latched once guidance stops driving.
"""

import logging
import time
from typing import Any, Callable, Optional

from .config import HopConfig, create_default_config
from .context import GuidanceContext
from .guidance import AscendStep, GuidanceStep, TickKind, advance
from .interfaces import (
    AttitudeController, DescentController, ImpactPredictionProvider, OrbitInfo,
    ThrustController, TimeWarpController, TrajectoryCorrectionService,
)
from .session import HopSession
from .state import BodyInfo, TargetState, VehicleState
from .types import HopTelemetry
from .validation import check_body, check_position_vector, check_required_collaborators

logger = logging.getLogger(__name__)


class HopPilot:
    """
    Drives a hop from the current position to a surface target.

    Args:
        body: Body being hopped on
        attitude: Attitude controller (required)
        thrust: Thrust controller (required)
        predictor: Impact prediction provider (required)
        correction: Trajectory correction service; course correction is
            skipped without one
        warp: Time warp controller; no warp requests without one
        orbit: Orbit information; coast hands straight to final descent
            without one
        descent: Descent controller driven during final descent
        config: Initial hop configuration
        clock: Monotonic clock for the hop timer (s)

    Raises:
        ConfigurationError: If a required collaborator is missing or the
            body is invalid
    """

    def __init__(self, body: BodyInfo,
                 attitude: AttitudeController,
                 thrust: ThrustController,
                 predictor: ImpactPredictionProvider,
                 correction: Optional[TrajectoryCorrectionService] = None,
                 warp: Optional[TimeWarpController] = None,
                 orbit: Optional[OrbitInfo] = None,
                 descent: Optional[DescentController] = None,
                 config: Optional[HopConfig] = None,
                 clock: Optional[Callable[[], float]] = None):
        check_body(body)
        check_required_collaborators(attitude=attitude, thrust=thrust, predictor=predictor)

        self.body = body
        self.attitude = attitude
        self.thrust = thrust
        self.predictor = predictor
        self.correction = correction
        self.warp = warp
        self.orbit = orbit
        self.descent = descent
        self.session = HopSession(config=config or create_default_config())
        self.enabled = False
        self._clock = clock or time.monotonic

        for name, obj in (('correction', correction), ('warp', warp),
                          ('orbit', orbit), ('descent', descent)):
            if obj is None:
                logger.debug(f"Optional collaborator '{name}' not provided")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> HopConfig:
        return self.session.config

    def update_config(self, **changes) -> HopConfig:
        """Replace the configuration with a validated, updated copy."""
        self.session.config = self.session.config.with_updates(**changes)
        return self.session.config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def enable(self) -> None:
        if self.enabled:
            return
        self.thrust.add_user(self)
        self.predictor.add_dependent(self)
        self.enabled = True

    def disable(self) -> None:
        """Module disable: cut thrust, release attitude, unregister."""
        if not self.enabled:
            return
        self._release_controls()
        self.thrust.remove_user(self)
        self.predictor.remove_dependent(self)
        self.enabled = False

    def _release_controls(self) -> None:
        self.thrust.thrust_off()
        self.attitude.deactivate()

    @property
    def active(self) -> bool:
        return self.session.active

    @property
    def status(self) -> str:
        return self.session.status

    @property
    def current_step(self) -> Optional[GuidanceStep]:
        return self.session.current_step

    def hop(self, requester: Any, vehicle: VehicleState, target: TargetState) -> GuidanceStep:
        """
        Start a hop toward target.

        Calling this while a hop is running restarts it: the current step
        is replaced by a fresh ascent and the timer restarts.

        Args:
            requester: Party requesting the hop, recorded as a dependent
            vehicle: Current vehicle snapshot
            target: Hop target

        Returns:
            The initial ascend step

        Raises:
            ValueError: If the vehicle or target position is not a finite 3-vector
        """
        check_position_vector(vehicle.position, "vehicle position")
        check_position_vector(target.position, "target position")
        if self.session.active:
            logger.warning(f"Hop requested while {self.session.step_name} is active; restarting")

        ctx = self._context(vehicle, target)
        step = AscendStep.enter(ctx)
        self.enable()
        self.session.start(step, self._clock(), requester)
        self.session.status = "Hop started"
        logger.info(f"Hop started toward {ctx.target_geo}: distance {ctx.distance_to_target:.1f} m, "
                    f"heading {step.target_heading:.1f}°, start close={step.start_close}")
        return step

    def end_hop(self, reason: Optional[str] = None) -> bool:
        """
        End the hop and release the controls.

        Idempotent: returns False and changes nothing if no hop is active.
        """
        if not self.session.stop(self._clock()):
            return False
        if reason:
            self.session.status = reason
        self._release_controls()
        self.disable()
        logger.info(f"Hop ended after {self.time_since_hop():.1f}s: {self.session.status}")
        return True

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def drive(self, vehicle: VehicleState, target: TargetState) -> Optional[GuidanceStep]:
        """High-rate command tick."""
        return self._tick(TickKind.DRIVE, vehicle, target)

    def fixed_update(self, vehicle: VehicleState, target: TargetState) -> Optional[GuidanceStep]:
        """Physics-rate decision tick."""
        return self._tick(TickKind.FIXED, vehicle, target)

    def _tick(self, kind: TickKind, vehicle: VehicleState,
              target: TargetState) -> Optional[GuidanceStep]:
        step = self.session.current_step
        if step is None:
            return None

        ctx = self._context(vehicle, target)
        try:
            next_step = advance(step, kind, ctx)
            if kind is TickKind.FIXED:
                self.session.last_impact_distance = ctx.impact_distance_to_target
                self.session.last_relative_delta = ctx.relative_distance_to_impact_delta
        except Exception as e:
            logger.warning(f"Hop aborted during {step.kind.name} {kind.name} tick: {e}",
                           exc_info=True)
            self.end_hop(f"Hop aborted: {e}")
            return None

        if self.session.current_step is not step:
            # end_hop() or hop() ran during the tick; its outcome and status win
            return self.session.current_step

        if ctx.status:
            self.session.status = ctx.status

        if next_step is None:
            self.end_hop()
            return None

        if next_step is not step:
            logger.info(f"Step transition: {step.kind.name} -> {next_step.kind.name} "
                        f"at t+{self.time_since_hop():.1f}s")
            self.session.current_step = next_step
        return next_step

    def _context(self, vehicle: VehicleState, target: TargetState) -> GuidanceContext:
        return GuidanceContext(
            config=self.session.config,
            body=self.body,
            vehicle=vehicle,
            target=target,
            prediction=self.predictor.current_prediction(),
            attitude=self.attitude,
            thrust=self.thrust,
            requester=self,
            correction=self.correction,
            warp=self.warp,
            orbit=self.orbit,
            descent=self.descent,
        )

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def time_since_hop(self) -> float:
        return self.session.time_since_hop(self._clock())

    def telemetry(self, vehicle: VehicleState, target: TargetState) -> HopTelemetry:
        """Everything the pilot knows about the hop, for display."""
        ctx = self._context(vehicle, target)
        return HopTelemetry(
            current_latitude=ctx.current_geo.latitude,
            current_longitude=ctx.current_geo.longitude,
            target_latitude=ctx.target_geo.latitude,
            target_longitude=ctx.target_geo.longitude,
            adjusted_target_latitude=ctx.adjusted_target_geo.latitude,
            adjusted_target_longitude=ctx.adjusted_target_geo.longitude,
            heading=ctx.heading,
            corrected_heading=ctx.corrected_heading,
            impact_latitude=ctx.predicted_impact.latitude,
            impact_longitude=ctx.predicted_impact.longitude,
            has_prediction=ctx.prediction is not None,
            distance_to_target=ctx.distance_to_target,
            impact_distance_to_target=ctx.impact_distance_to_target,
            relative_distance_to_impact_delta=ctx.relative_distance_to_impact_delta,
            time_of_flight=ctx.time_of_flight,
            time_of_flight_kepler=ctx.time_of_flight_kepler,
            hop_apoapsis=ctx.hop_apoapsis,
            thrust_to_weight=ctx.thrust_to_weight,
            time_since_hop=self.time_since_hop(),
            time_to_land=ctx.time_to_land,
            step=self.session.step_name,
            status=self.session.status,
            enabled=self.enabled,
            last_relative_delta=self.session.last_relative_delta,
        )

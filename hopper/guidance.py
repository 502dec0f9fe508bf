"""
Hopper - Guidance State Machine

The hop is flown as four steps:

    ASCEND -> [COURSE_CORRECTION] -> COAST_TO_APOAPSIS -> FINAL_DESCENT -> (end)
           +-> (end)  when ascend_only

Each step is a small dataclass tagged with its StepKind. advance() is the
single transition function: given the current step, the kind of tick and
the tick's GuidanceContext it issues that step's commands and returns the
step for the next tick. Returning the same instance means "stay",
returning a new instance is a transition, returning None ends the hop.

Two tick kinds exist:
  - DRIVE:  high rate, issues attitude/throttle commands
  - FIXED:  physics rate, evaluates transition conditions only
No fixed ratio between them is assumed.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
import logging
from typing import ClassVar, Optional, Union

import numpy as np

from . import constants as C
from .context import GuidanceContext
from .frames import heading_pitch_to_quaternion
from .interfaces import AttitudeReference

logger = logging.getLogger(__name__)


class StepKind(Enum):
    ASCEND = auto()
    COURSE_CORRECTION = auto()
    COAST_TO_APOAPSIS = auto()
    FINAL_DESCENT = auto()


class TickKind(Enum):
    DRIVE = auto()
    FIXED = auto()


# =============================================================================
# Throttle law and burn gate
# =============================================================================

def ascend_throttle(relative_delta: float, close_distance: float = C.CLOSE_DISTANCE,
                    min_throttle: float = C.MIN_ASCEND_THROTTLE) -> float:
    """
    Far-target ascent throttle.

    Linear in the along-track delta: full throttle at or beyond
    close_distance, min_throttle at or below zero.
    """
    fraction = float(np.clip(relative_delta / close_distance, 0.0, 1.0))
    return min_throttle + (1.0 - min_throttle) * fraction


def close_throttle(thrust_to_weight: float,
                   max_acceleration: float = C.MAX_CLOSE_ACCELERATION) -> float:
    """Throttle capping acceleration near max_acceleration g for close hops."""
    if thrust_to_weight <= 0.0:
        return 1.0
    return min(1.0, max_acceleration / thrust_to_weight)


@dataclass
class BurnGate:
    """
    Hysteresis on the course-correction burn.

    Burning starts once the attitude error drops below start_angle and
    stops only when it exceeds stop_angle; in between the previous state
    holds.
    """
    start_angle: float = C.BURN_START_ANGLE
    stop_angle: float = C.BURN_STOP_ANGLE
    burning: bool = False

    def update(self, angle_error: float) -> bool:
        if angle_error < self.start_angle:
            self.burning = True
        elif angle_error > self.stop_angle:
            self.burning = False
        return self.burning


# =============================================================================
# Steps
# =============================================================================

@dataclass
class AscendStep:
    """
    Powered ascent toward the target.

    Attributes:
        target_heading: Heading flown (deg); refreshed each drive tick
            when adaptive heading is on
        start_close: Hop began with the impact near the target; selects
            the acceleration-capped throttle for the whole step
    """
    kind: ClassVar[StepKind] = StepKind.ASCEND
    target_heading: float
    start_close: bool

    @classmethod
    def enter(cls, ctx: GuidanceContext) -> 'AscendStep':
        start_close = (ctx.impact_distance_to_target
                       <= C.CLOSE_START_FACTOR * ctx.config.close_distance)
        return cls(target_heading=ctx.wanted_heading, start_close=start_close)


@dataclass
class CourseCorrectionStep:
    """Burn the corrective delta-v until the predicted miss is acceptable."""
    kind: ClassVar[StepKind] = StepKind.COURSE_CORRECTION
    gate: BurnGate = field(default_factory=BurnGate)

    @classmethod
    def enter(cls, ctx: GuidanceContext) -> 'CourseCorrectionStep':
        return cls(gate=BurnGate(ctx.config.burn_start_angle, ctx.config.burn_stop_angle))


@dataclass
class CoastToApoapsisStep:
    """Unpowered coast until the apex of the arc is behind the vehicle."""
    kind: ClassVar[StepKind] = StepKind.COAST_TO_APOAPSIS


@dataclass
class FinalDescentStep:
    """Terminal descent, delegated to the host's descent controller."""
    kind: ClassVar[StepKind] = StepKind.FINAL_DESCENT


GuidanceStep = Union[AscendStep, CourseCorrectionStep, CoastToApoapsisStep, FinalDescentStep]


# =============================================================================
# Ascend
# =============================================================================

def _drive_ascend(step: AscendStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    if ctx.config.adaptive_heading:
        step.target_heading = ctx.wanted_heading

    attitude = heading_pitch_to_quaternion(step.target_heading, ctx.config.launch_pitch)
    ctx.attitude.set_target(attitude, AttitudeReference.SURFACE_NORTH, ctx.requester,
                            roll_lock=False, pitch_lock=True, yaw_lock=True)

    if step.start_close:
        throttle = close_throttle(ctx.thrust_to_weight, ctx.config.max_close_acceleration)
    else:
        throttle = ascend_throttle(ctx.relative_distance_to_impact_delta,
                                   ctx.config.close_distance, ctx.config.min_throttle)
    ctx.thrust.target_throttle = throttle

    ctx.status = f"Hopping at throttle {throttle:.2f} at heading {step.target_heading:.1f}°"
    return step


def _update_ascend(step: AscendStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    delta = ctx.relative_distance_to_impact_delta
    if delta > ctx.config.impact_delta_abort_threshold:
        return step

    ctx.thrust.thrust_off()
    logger.info(f"Predicted impact reached target line: along-track delta {delta:.1f} m, "
                f"impact distance {ctx.impact_distance_to_target:.1f} m")

    if ctx.config.perform_course_correction:
        if ctx.correction is not None:
            return CourseCorrectionStep.enter(ctx)
        logger.warning("Course correction enabled but no trajectory correction service; skipping")
    if not ctx.config.ascend_only:
        return CoastToApoapsisStep()

    logger.info("Ascend only: ending hop")
    ctx.status = "Ascent complete"
    return None


# =============================================================================
# Course correction
# =============================================================================

def _correction_done(ctx: GuidanceContext) -> bool:
    return ctx.impact_distance_to_target < ctx.config.max_course_correction_error


def _drive_course_correction(step: CourseCorrectionStep,
                             ctx: GuidanceContext) -> Optional[GuidanceStep]:
    if _correction_done(ctx):
        logger.info(f"Course correction complete: impact "
                    f"{ctx.impact_distance_to_target:.1f} m from target")
        return CoastToApoapsisStep()

    delta_v = np.asarray(ctx.correction.compute_course_correction(True), dtype=float)
    magnitude = float(np.linalg.norm(delta_v))
    ctx.status = f"Performing course correction of about {magnitude:.1f} m/s"

    if magnitude < C.ZERO_TOLERANCE:
        ctx.thrust.target_throttle = 0.0
        return step

    ctx.attitude.set_target(delta_v / magnitude, AttitudeReference.INERTIAL, ctx.requester)

    if step.gate.update(ctx.attitude.angle_error_to_target()):
        ctx.thrust.thrust_for_delta_v(magnitude, ctx.config.burn_time_constant)
    else:
        ctx.thrust.target_throttle = 0.0
    return step


def _update_course_correction(step: CourseCorrectionStep,
                              ctx: GuidanceContext) -> Optional[GuidanceStep]:
    if _correction_done(ctx):
        logger.info(f"Course correction complete: impact "
                    f"{ctx.impact_distance_to_target:.1f} m from target")
        return CoastToApoapsisStep()
    return step


# =============================================================================
# Coast to apoapsis
# =============================================================================

def _drive_coast(step: CoastToApoapsisStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    ctx.thrust.target_throttle = 0.0
    return step


def _update_coast(step: CoastToApoapsisStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    if ctx.orbit is None:
        logger.warning("No orbit information; starting final descent")
        return FinalDescentStep()

    time_to_ap = ctx.orbit.time_to_apoapsis
    time_to_pe = ctx.orbit.time_to_periapsis
    if time_to_ap > time_to_pe:
        if ctx.warp is not None:
            ctx.warp.minimum_warp()
        logger.info(f"Apoapsis passed (t_ap={time_to_ap:.1f}s > t_pe={time_to_pe:.1f}s), "
                    f"starting final descent")
        return FinalDescentStep()

    ctx.thrust.thrust_off()
    if ctx.config.autowarp and ctx.warp is not None:
        ctx.warp.warp_at_rate(ctx.config.warp_rate)
    ctx.status = f"Coasting to apoapsis in {time_to_ap:.1f}s"
    return step


# =============================================================================
# Final descent
# =============================================================================

def _drive_final_descent(step: FinalDescentStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    if ctx.descent is not None:
        ctx.descent.drive(ctx.vehicle)
        ctx.status = ctx.descent.status or "Final descent"
    else:
        ctx.thrust.target_throttle = 0.0
        ctx.status = "Final descent (no descent controller)"

    if ctx.vehicle.landed:
        logger.info(f"Landed {ctx.distance_to_target:.1f} m from target")
        ctx.status = f"Landed {ctx.distance_to_target:.1f} m from target"
        return None
    return step


def _update_final_descent(step: FinalDescentStep, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    return step


# =============================================================================
# Transition function
# =============================================================================

_HANDLERS = {
    (StepKind.ASCEND, TickKind.DRIVE): _drive_ascend,
    (StepKind.ASCEND, TickKind.FIXED): _update_ascend,
    (StepKind.COURSE_CORRECTION, TickKind.DRIVE): _drive_course_correction,
    (StepKind.COURSE_CORRECTION, TickKind.FIXED): _update_course_correction,
    (StepKind.COAST_TO_APOAPSIS, TickKind.DRIVE): _drive_coast,
    (StepKind.COAST_TO_APOAPSIS, TickKind.FIXED): _update_coast,
    (StepKind.FINAL_DESCENT, TickKind.DRIVE): _drive_final_descent,
    (StepKind.FINAL_DESCENT, TickKind.FIXED): _update_final_descent,
}


def advance(step: GuidanceStep, tick: TickKind, ctx: GuidanceContext) -> Optional[GuidanceStep]:
    """
    Run one tick of the current step.

    Args:
        step: Current step
        tick: DRIVE (commands) or FIXED (transition checks)
        ctx: This tick's guidance context

    Returns:
        The step for the next tick, or None when the hop is over
    """
    return _HANDLERS[(step.kind, tick)](step, ctx)

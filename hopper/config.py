"""
Hopper - Hop Configuration

HopConfig is the operator-facing configuration of a hop. It is immutable:
the session owns one instance and replaces it through with_updates(),
which re-runs validation. The host persists it as a flat key-value record
via to_record() / from_record().

Out-of-range operator values are clamped (with a warning) rather than
rejected, matching what the configuration widgets allow; values that no
widget could produce raise ValueError.
"""

from dataclasses import dataclass, asdict, fields, replace
import logging
from typing import Any, Dict, Mapping

from . import constants as C

logger = logging.getLogger(__name__)


def _clamp(name: str, value: float, low: float, high: float) -> float:
    clamped = min(max(value, low), high)
    if clamped != value:
        logger.warning(f"{name}={value} out of range [{low}, {high}], clamped to {clamped}")
    return clamped


@dataclass(frozen=True)
class HopConfig:
    """
    Hop configuration.

    Section grouping:
      1. Launch
      2. Ascent abort / throttle
      3. Course correction
      4. Coast
    """

    # ── 1. Launch ────────────────────────────────────────────────────────
    launch_angle: float = C.DEFAULT_LAUNCH_ANGLE     # deg from vertical, [0, 90]
    adaptive_heading: bool = False                   # re-aim every drive tick
    use_corrected_heading: bool = False              # aim at rotation-adjusted target

    # ── 2. Ascent abort / throttle ───────────────────────────────────────
    impact_delta_abort_threshold: float = 0.0        # m, may be negative
    ascend_only: bool = False
    close_distance: float = C.CLOSE_DISTANCE         # m
    max_close_acceleration: float = C.MAX_CLOSE_ACCELERATION  # g
    min_throttle: float = C.MIN_ASCEND_THROTTLE

    # ── 3. Course correction ─────────────────────────────────────────────
    perform_course_correction: bool = False
    max_course_correction_error: float = C.DEFAULT_MAX_COURSE_CORRECTION_ERROR  # m
    burn_start_angle: float = C.BURN_START_ANGLE     # deg
    burn_stop_angle: float = C.BURN_STOP_ANGLE       # deg
    burn_time_constant: float = C.BURN_TIME_CONSTANT  # s

    # ── 4. Coast ─────────────────────────────────────────────────────────
    autowarp: bool = False
    warp_rate: float = C.COAST_WARP_RATE

    def __post_init__(self):
        object.__setattr__(self, 'launch_angle',
                           _clamp('launch_angle', float(self.launch_angle), 0.0, 90.0))
        object.__setattr__(self, 'max_course_correction_error',
                           _clamp('max_course_correction_error',
                                  float(self.max_course_correction_error), 0.0, float('inf')))
        object.__setattr__(self, 'min_throttle',
                           _clamp('min_throttle', float(self.min_throttle), 0.0, 1.0))

        if self.close_distance <= 0.0:
            raise ValueError(f"close_distance must be positive, got {self.close_distance}")
        if self.burn_time_constant <= 0.0:
            raise ValueError(f"burn_time_constant must be positive, got {self.burn_time_constant}")
        if self.burn_start_angle > self.burn_stop_angle:
            raise ValueError(
                f"burn_start_angle ({self.burn_start_angle}) must not exceed "
                f"burn_stop_angle ({self.burn_stop_angle})"
            )
        if self.max_close_acceleration <= 0.0:
            raise ValueError(
                f"max_close_acceleration must be positive, got {self.max_close_acceleration}"
            )

    @property
    def launch_pitch(self) -> float:
        """Elevation above the local horizon (deg) for the launch angle."""
        return 90.0 - self.launch_angle

    def with_updates(self, **changes) -> 'HopConfig':
        """Validated copy with some fields changed."""
        return replace(self, **changes)

    def to_record(self) -> Dict[str, Any]:
        """Flat key-value record for host persistence."""
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'HopConfig':
        """
        Build a config from a persisted record.

        Unknown keys are ignored; values are coerced to the field type so
        records that went through a string-based store still load.
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in record:
                continue
            value = record[f.name]
            if f.type in (bool, 'bool'):
                if isinstance(value, str):
                    value = value.strip().lower() in ('1', 'true', 'yes', 'on')
                else:
                    value = bool(value)
            else:
                value = float(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable configuration of the reference simulation host.

    Section grouping:
      1. Timing
      2. Impact prediction
      3. Vehicle
      4. Misc
    """

    # ── 1. Timing ────────────────────────────────────────────────────────
    dt: float = 0.02                  # s, drive tick and integration step
    fixed_update_every: int = 5       # drive ticks per physics tick
    max_time: float = 600.0           # s

    # ── 2. Impact prediction ─────────────────────────────────────────────
    prediction_interval: float = 0.5  # s between refreshes (stale in between)
    prediction_step: float = 0.5      # s, ballistic propagation step
    prediction_horizon: float = 3600.0  # s, give up (no impact) beyond this

    # ── 3. Vehicle ───────────────────────────────────────────────────────
    initial_mass: float = 5000.0      # kg
    dry_mass: float = 2000.0          # kg
    max_thrust: float = 200000.0      # N
    isp: float = 320.0                # s
    slew_rate: float = 30.0           # deg/s
    touchdown_margin: float = 2.0     # m, descent aims to stop this high

    # ── 4. Misc ──────────────────────────────────────────────────────────
    verbose: bool = True

    def __post_init__(self):
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.fixed_update_every < 1:
            raise ValueError(f"fixed_update_every must be >= 1, got {self.fixed_update_every}")
        if self.dry_mass <= 0.0 or self.initial_mass < self.dry_mass:
            raise ValueError(
                f"Need 0 < dry_mass <= initial_mass, got {self.dry_mass}, {self.initial_mass}"
            )


def create_default_config() -> HopConfig:
    """Create a HopConfig with default values from constants."""
    return HopConfig()


def create_test_config(**overrides) -> HopConfig:
    """Create a config for tests; any HopConfig field can be overridden."""
    return HopConfig(**overrides)


def create_simulation_config(**overrides) -> SimulationConfig:
    """Create a SimulationConfig; any field can be overridden."""
    return SimulationConfig(**overrides)


def create_test_simulation_config(dt: float = 0.05, max_time: float = 30.0,
                                  **overrides) -> SimulationConfig:
    """Create a fast, quiet simulation config suitable for testing."""
    defaults = dict(dt=dt, max_time=max_time, verbose=False)
    defaults.update(overrides)
    return SimulationConfig(**defaults)

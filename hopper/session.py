"""
Hopper - Hop Session

The single mutable root of a hop: configuration, current step, hop timer
and the parties that requested the hop. Only the control loop (HopPilot)
mutates it, and only between ticks.

Invariant: current_step is None exactly when the session is inactive.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .config import HopConfig, create_default_config
from .guidance import GuidanceStep


@dataclass
class HopSession:
    """
    State of the hop in progress (if any).

    Attributes:
        config: Current hop configuration
        current_step: Active guidance step, None when no hop is running
        start_timestamp: Clock reading at hop start, None before any hop
        stop_timestamp: Clock reading at hop end, None while running
        dependents: Parties that requested the hop
        status: Human-readable status, refreshed every drive tick
        last_impact_distance: Last known impact distance to target (m)
        last_relative_delta: Last known along-track delta (m)
    """
    config: HopConfig = field(default_factory=create_default_config)
    current_step: Optional[GuidanceStep] = None
    start_timestamp: Optional[float] = None
    stop_timestamp: Optional[float] = None
    dependents: List[Any] = field(default_factory=list)
    status: str = "Idle"
    last_impact_distance: Optional[float] = None
    last_relative_delta: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.current_step is not None

    @property
    def step_name(self) -> str:
        if self.current_step is None:
            return "N/A"
        return self.current_step.kind.name

    def start(self, step: GuidanceStep, now: float, requester: Any = None) -> None:
        """Begin (or restart) a hop with its first step."""
        if requester is not None and requester not in self.dependents:
            self.dependents.append(requester)
        self.current_step = step
        self.start_timestamp = now
        self.stop_timestamp = None

    def stop(self, now: float) -> bool:
        """
        End the hop.

        Returns:
            False if no hop was running (nothing changed)
        """
        if not self.active:
            return False
        self.current_step = None
        self.stop_timestamp = now
        self.dependents.clear()
        return True

    def time_since_hop(self, now: float) -> float:
        """Seconds since the hop started; frozen at its duration once ended."""
        if self.start_timestamp is None:
            return 0.0
        end = now if self.stop_timestamp is None else self.stop_timestamp
        return max(0.0, end - self.start_timestamp)

"""
Hopper - Type Definitions

TypedDict definitions for structured outputs.
"""

from typing import Optional, TypedDict


class HopTelemetry(TypedDict):
    """Snapshot of what the hop pilot knows, for display and logging."""
    current_latitude: float  # deg
    current_longitude: float  # deg
    target_latitude: float  # deg
    target_longitude: float  # deg
    adjusted_target_latitude: float  # deg, rotation-compensated
    adjusted_target_longitude: float  # deg, rotation-compensated
    heading: float  # Bearing to the target (deg)
    corrected_heading: float  # Bearing to the adjusted target (deg)
    impact_latitude: float  # deg, current position if no prediction
    impact_longitude: float  # deg, current position if no prediction
    has_prediction: bool  # Whether an impact prediction exists
    distance_to_target: float  # m
    impact_distance_to_target: float  # m
    relative_distance_to_impact_delta: float  # Along-track delta (m)
    time_of_flight: float  # Ballistic 45 deg estimate (s)
    time_of_flight_kepler: float  # Half-period ellipse estimate (s)
    hop_apoapsis: float  # Apoapsis altitude needed for the hop (m)
    thrust_to_weight: float
    time_since_hop: float  # s
    time_to_land: float  # s, 0 without prediction
    step: str  # Current step name or "N/A"
    status: str
    enabled: bool
    last_relative_delta: Optional[float]  # Last value seen on a physics tick (m)

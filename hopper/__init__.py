"""
Hopper - Suborbital Hop Guidance

Guidance core that flies a vehicle from its landed position to a surface
target on a rotating body, plus a reference simulation host.

Modules:
    - constants: Body parameters and guidance thresholds
    - geodesy: Latitude/longitude, distances, bearings
    - frames: Quaternions, surface-north frame, vector rotations
    - rotation: Time of flight and rotation-compensated target
    - orbit: Keplerian apsides times, hop apoapsis estimate
    - state: Body, vehicle, target and impact snapshots
    - interfaces: Collaborator protocols consumed by the core
    - config: Hop and simulation configuration
    - context: Per-tick derived guidance quantities
    - guidance: Step state machine (ascend, correction, coast, descent)
    - session: Hop session state
    - pilot: Control loop entry point (HopPilot)
    - validation: Errors and wiring checks
    - integrators: RK4 numerical integration
    - simulation: Reference host and run_hop()
    - plotting: Hop figures
"""

from .config import HopConfig, SimulationConfig, create_default_config, create_test_config
from .geodesy import GeoPoint, bearing, surface_distance
from .guidance import StepKind, TickKind
from .pilot import HopPilot
from .simulation import HopLog, HopResult, run_hop
from .state import BodyInfo, ImpactPrediction, TargetState, VehicleState
from .validation import ConfigurationError, HopperError

__version__ = "0.3.0"
__author__ = "Hopper Team"

__all__ = [
    'HopConfig',
    'SimulationConfig',
    'create_default_config',
    'create_test_config',
    'GeoPoint',
    'bearing',
    'surface_distance',
    'StepKind',
    'TickKind',
    'HopPilot',
    'HopLog',
    'HopResult',
    'run_hop',
    'BodyInfo',
    'ImpactPrediction',
    'TargetState',
    'VehicleState',
    'ConfigurationError',
    'HopperError',
]

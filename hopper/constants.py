"""
Hopper - Physical Constants and Guidance Parameters

This module defines the reference body parameters, guidance thresholds and
numerical tolerances used throughout the hop guidance core and the
reference simulation host.

The reference body is a small, fast-spinning planet (Kerbin-like), which is
where suborbital hops make the most sense.
"""

import numpy as np

# =============================================================================
# REFERENCE BODY PARAMETERS
# =============================================================================

# Mean radius (m)
BODY_RADIUS = 600000.0

# Gravitational parameter (m^3/s^2)
BODY_MU = 3.5316e12

# Sidereal rotation period (s)
BODY_ROTATION_PERIOD = 21549.425

# Rotation axis in the body-fixed frame (north pole)
BODY_ROTATION_AXIS = np.array([0.0, 0.0, 1.0])

# Standard gravitational acceleration (m/s^2), used for Isp -> mass flow
G0 = 9.80665

# =============================================================================
# GUIDANCE PARAMETERS
# =============================================================================

# Close-range threshold (m). A hop whose predicted impact starts within
# 2x this distance of the target uses the acceleration-capped throttle.
CLOSE_DISTANCE = 1000.0
CLOSE_START_FACTOR = 2.0

# Acceleration cap while hopping to a close target (in surface g)
MAX_CLOSE_ACCELERATION = 4.0

# Throttle floor of the far-target interpolation
MIN_ASCEND_THROTTLE = 0.1

# Launch angle from local vertical (deg)
DEFAULT_LAUNCH_ANGLE = 45.0

# Course correction
DEFAULT_MAX_COURSE_CORRECTION_ERROR = 20.0  # m
BURN_START_ANGLE = 2.0                      # deg, start burning below
BURN_STOP_ANGLE = 30.0                      # deg, stop burning above
BURN_TIME_CONSTANT = 2.0                    # s

# Time warp requested while coasting to apoapsis
COAST_WARP_RATE = 100.0

# =============================================================================
# TOLERANCES
# =============================================================================

ZERO_TOLERANCE = 1e-10

# Below this surface distance (m) a bearing is considered undefined
MIN_BEARING_DISTANCE = 1e-3

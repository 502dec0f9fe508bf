"""
Hopper - Errors and Validation Checks

Construction-time checks fail fast: the guidance core cannot operate
without its attitude, thrust and impact prediction collaborators.
Run-time degradations (no impact prediction yet, zero distance to target)
are modeled as values, not errors.
"""

import numpy as np

from .state import BodyInfo


class HopperError(Exception):
    """Base class for hop guidance errors."""
    pass


class ConfigurationError(HopperError):
    """Raised when the guidance core is wired with missing or invalid parts."""
    pass


def check_required_collaborators(**collaborators) -> bool:
    """
    Verify no required collaborator is missing.

    Args:
        **collaborators: name -> collaborator object

    Returns:
        True if valid, raises ConfigurationError otherwise
    """
    missing = sorted(name for name, obj in collaborators.items() if obj is None)
    if missing:
        raise ConfigurationError(
            f"Hop pilot requires collaborators that were not provided: {', '.join(missing)}"
        )
    return True


def check_body(body: BodyInfo) -> bool:
    """
    Verify the body parameters are physically meaningful.

    Returns:
        True if valid, raises ConfigurationError otherwise
    """
    if body is None:
        raise ConfigurationError("Hop pilot requires a body description")
    if not body.radius > 0.0:
        raise ConfigurationError(f"Body radius must be positive, got {body.radius}")
    if not body.mu > 0.0:
        raise ConfigurationError(f"Body gravitational parameter must be positive, got {body.mu}")
    if np.linalg.norm(body.rotation_axis) < 1e-9:
        raise ConfigurationError("Body rotation axis must be non-zero")
    return True


def check_position_vector(r: np.ndarray, name: str = "position") -> np.ndarray:
    """
    Coerce a position to a finite float array of shape (3,).

    Raises:
        ValueError: On wrong shape or non-finite components
    """
    arr = np.asarray(r, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains NaN or infinite values")
    return arr

"""
Hopper - Numerical Integration

Fixed-step integrators for the reference host's point-mass dynamics and
for ballistic impact prediction. The state is a flat array; the caller
supplies dy/dt = f(t, y).
"""

from typing import Callable

import numpy as np

Derivative = Callable[[float, np.ndarray], np.ndarray]


def rk4_step(f: Derivative, y: np.ndarray, t: float, dt: float) -> np.ndarray:
    """
    Perform a single RK4 integration step.

    k1 = f(t, y)
    k2 = f(t + dt/2, y + dt/2 * k1)
    k3 = f(t + dt/2, y + dt/2 * k2)
    k4 = f(t + dt, y + dt * k3)
    y_new = y + dt/6 * (k1 + 2*k2 + 2*k3 + k4)

    Raises:
        ValueError: If dt <= 0
    """
    if dt <= 0:
        raise ValueError(f"Time step dt must be positive, got {dt}")

    k1 = f(t, y)
    k2 = f(t + 0.5*dt, y + 0.5 * dt * k1)
    k3 = f(t + 0.5*dt, y + 0.5 * dt * k2)
    k4 = f(t + dt, y + dt * k3)

    return y + (dt / 6.0) * (k1 + 2*k2 + 2*k3 + k4)


def euler_step(f: Derivative, y: np.ndarray, t: float, dt: float) -> np.ndarray:
    """First-order step, for testing/comparison."""
    if dt <= 0:
        raise ValueError(f"Time step dt must be positive, got {dt}")
    return y + dt * f(t, y)


def integrate(f: Derivative, y: np.ndarray, t: float, dt: float,
              method: str = 'rk4') -> np.ndarray:
    """
    Integrate the state forward by one timestep.

    Args:
        f: Derivative function
        y: Current state
        t: Current time (s)
        dt: Time step (s)
        method: Integration method ('rk4' or 'euler')
    """
    if method == 'rk4':
        return rk4_step(f, y, t, dt)
    elif method == 'euler':
        return euler_step(f, y, t, dt)
    else:
        raise ValueError(f"Unknown integration method: {method}")

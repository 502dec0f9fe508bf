"""
Hopper - Hop Visualization

Plots of a simulated hop from its HopLog: altitude, throttle, ground track
and the predicted-impact convergence, with the guidance step transitions
marked on the time axes.
"""

import os
from typing import List, Tuple

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for batch processing
import matplotlib.pyplot as plt
import numpy as np

from .geodesy import GeoPoint
from .simulation import HopLog

STEP_COLORS = {
    'ASCEND': '#1f77b4',
    'COURSE_CORRECTION': '#ff7f0e',
    'COAST_TO_APOAPSIS': '#2ca02c',
    'FINAL_DESCENT': '#d62728',
}


def configure_plot_style() -> None:
    """Matplotlib defaults for the hop report."""
    plt.rcParams.update({
        'figure.figsize': (12, 8),
        'savefig.dpi': 150,
        'axes.grid': True,
        'axes.axisbelow': True,
        'grid.alpha': 0.3,
        'font.size': 10,
        'axes.titlesize': 12,
        'legend.fontsize': 9,
        'lines.linewidth': 1.6,
        'xtick.direction': 'in',
        'ytick.direction': 'in',
    })


def step_transitions(log: HopLog) -> List[Tuple[float, str]]:
    """(time, step name) at every change of guidance step."""
    transitions = []
    previous = None
    for t, name in zip(log.time, log.step):
        if name != previous:
            transitions.append((t, name))
            previous = name
    return transitions


def _mark_steps(ax, transitions: List[Tuple[float, str]]) -> None:
    for t, name in transitions:
        if name in STEP_COLORS:
            ax.axvline(t, color=STEP_COLORS[name], linestyle='--', linewidth=0.8, alpha=0.7)


def plot_hop(log: HopLog, path: str, target: GeoPoint = None) -> str:
    """
    Write a 2x2 summary figure of a hop.

    Args:
        log: Hop log from run_hop()
        path: Output file (png)
        target: Hop target, marked on the ground track if given

    Returns:
        Path of the saved figure

    Raises:
        ValueError: If the log is empty
    """
    if len(log.time) == 0:
        raise ValueError("Cannot plot an empty hop log")

    configure_plot_style()
    time = np.asarray(log.time)
    transitions = step_transitions(log)

    fig, axes = plt.subplots(2, 2)
    ax_alt, ax_thr, ax_track, ax_impact = axes.ravel()

    ax_alt.plot(time, log.altitude, 'b-')
    _mark_steps(ax_alt, transitions)
    ax_alt.set_xlabel('Time (s)')
    ax_alt.set_ylabel('Altitude (m)')
    ax_alt.set_title('Altitude', fontweight='bold')

    ax_thr.plot(time, log.throttle, 'k-', label='Throttle')
    _mark_steps(ax_thr, transitions)
    ax_thr.set_ylim(-0.05, 1.05)
    ax_thr.set_xlabel('Time (s)')
    ax_thr.set_ylabel('Throttle')
    ax_thr.set_title('Throttle', fontweight='bold')
    for t, name in transitions:
        if name in STEP_COLORS:
            ax_thr.plot([], [], color=STEP_COLORS[name], linestyle='--', label=name)
    ax_thr.legend(loc='upper right')

    ax_track.plot(log.longitude, log.latitude, 'b-', label='Ground track')
    ax_track.scatter([log.longitude[0]], [log.latitude[0]], c='green', marker='o',
                     zorder=5, label='Start')
    ax_track.scatter([log.longitude[-1]], [log.latitude[-1]], c='darkorange', marker='*',
                     s=90, zorder=5, label='End')
    if target is not None:
        ax_track.scatter([target.longitude], [target.latitude], c='red', marker='x',
                         s=80, zorder=5, label='Target')
    ax_track.set_xlabel('Longitude (deg)')
    ax_track.set_ylabel('Latitude (deg)')
    ax_track.set_title('Ground Track', fontweight='bold')
    ax_track.legend(loc='best')

    impact = np.asarray(log.impact_distance, dtype=float)
    delta = np.asarray(log.relative_delta, dtype=float)
    ax_impact.plot(time, impact, 'r-', label='Impact distance to target')
    ax_impact.plot(time, delta, 'g-', label='Along-track delta')
    ax_impact.axhline(0.0, color='gray', linewidth=0.8)
    _mark_steps(ax_impact, transitions)
    ax_impact.set_xlabel('Time (s)')
    ax_impact.set_ylabel('Distance (m)')
    ax_impact.set_title('Predicted Impact', fontweight='bold')
    ax_impact.legend(loc='upper right')

    plt.tight_layout()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path

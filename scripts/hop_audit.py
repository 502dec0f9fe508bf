"""
Hop audit report: step timeline, throttle usage per step and landing accuracy.
"""

from __future__ import annotations

import argparse
from collections import OrderedDict
from pathlib import Path
import sys

import numpy as np

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from hopper.config import HopConfig, create_simulation_config
from hopper.geodesy import GeoPoint, move_by_meters
from hopper.simulation import run_hop


def _step_transitions(times, steps, alts, speeds):
    out = []
    prev = None
    for t, s, h, v in zip(times, steps, alts, speeds):
        if s != prev:
            out.append((float(t), str(s), float(h), float(v)))
            prev = s
    return out


def _step_durations(times, steps):
    durations = OrderedDict()
    if len(times) < 2:
        return durations
    for i in range(1, len(times)):
        s = str(steps[i - 1])
        durations[s] = durations.get(s, 0.0) + float(times[i] - times[i - 1])
    return durations


def _mean_throttle_by_step(steps, throttle):
    totals = OrderedDict()
    for s, thr in zip(steps, throttle):
        count, acc = totals.get(str(s), (0, 0.0))
        totals[str(s)] = (count + 1, acc + float(thr))
    return OrderedDict((s, acc / count) for s, (count, acc) in totals.items())


def main():
    parser = argparse.ArgumentParser(description="Fly a simulated hop and print an audit summary.")
    parser.add_argument("--east", type=float, default=10000.0, help="Target offset east (m)")
    parser.add_argument("--north", type=float, default=0.0, help="Target offset north (m)")
    parser.add_argument("--dt", type=float, default=0.02, help="Integration timestep (s)")
    parser.add_argument("--max-time", type=float, default=600.0, help="Maximum hop time (s)")
    parser.add_argument("--course-correction", action="store_true",
                        help="Enable the course correction burn")
    args = parser.parse_args()

    start = GeoPoint(0.0, 0.0)
    target = move_by_meters(start, north=args.north, east=args.east)
    hop_cfg = HopConfig(perform_course_correction=args.course_correction)
    sim_cfg = create_simulation_config(dt=args.dt, max_time=args.max_time, verbose=False)
    result = run_hop(start, target, hop_cfg, sim_cfg)

    print("=" * 88)
    print("HOP AUDIT")
    print("=" * 88)
    print(f"Start:   {start}")
    print(f"Target:  {target}")
    print(f"Reason:  {result.reason}")
    print("-" * 88)

    log = result.log
    t = np.array(log.time)
    s = np.array(log.step)
    h = np.array(log.altitude)
    v = np.array(log.speed)

    if len(t) > 0:
        print("Step Transitions:")
        for tt, ss, hh, vv in _step_transitions(t, s, h, v):
            print(f"  t={tt:8.2f}s | {ss:18s} | alt={hh:9.1f} m | v={vv:7.1f} m/s")
        print("-" * 88)
        print("Time and Mean Throttle by Step:")
        durations = _step_durations(t, s)
        throttle = _mean_throttle_by_step(s, log.throttle)
        for step, duration in durations.items():
            print(f"  {step:18s} : {duration:8.2f} s | throttle {throttle.get(step, 0.0):5.2f}")
        print("-" * 88)
        peak_idx = int(np.argmax(h))
        print(f"Apex:             {h[peak_idx]:.1f} m at t={t[peak_idx]:.2f}s")

    print(f"Landing error:    {result.landing_error:.1f} m")
    if result.touchdown_speed is not None:
        print(f"Touchdown speed:  {result.touchdown_speed:.2f} m/s")
    else:
        print("Touchdown speed:  n/a (vehicle did not come down)")
    print(f"Final mass:       {result.final_state.mass:.1f} kg")
    print("=" * 88)


if __name__ == "__main__":
    main()

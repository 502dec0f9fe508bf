"""Demo script: fly a 10 km hop east with course correction and show the step timeline."""
import logging

import numpy as np

from hopper import GeoPoint, HopConfig, run_hop
from hopper.config import create_simulation_config
from hopper.geodesy import move_by_meters

logging.basicConfig(level=logging.INFO, format='%(name)s - %(levelname)s - %(message)s')

start = GeoPoint(0.0, 0.0)
target = move_by_meters(start, east=10000.0)
config = HopConfig(perform_course_correction=True, use_corrected_heading=True)

result = run_hop(start, target, config, create_simulation_config(dt=0.02, verbose=True))

print("\n\n===== HOP TRACKING DETAILS =====")
log = result.log
if len(log.time) > 0:
    times = np.array(log.time)
    alts = np.array(log.altitude)
    speeds = np.array(log.speed)
    steps = log.step
    print(f"Log entries: {len(log.time)}")
    print(f"Time range: {times[0]:.1f}s - {times[-1]:.1f}s")
    print(f"Peak altitude: {np.max(alts):.1f} m")
    print(f"Landing error: {result.landing_error:.1f} m")
    if result.touchdown_speed is not None:
        print(f"Touchdown speed: {result.touchdown_speed:.2f} m/s")
    print()
    print("Step Timeline:")
    prev_step = None
    for i in range(len(steps)):
        if steps[i] != prev_step:
            print(f"  t={times[i]:8.1f}s | Alt={alts[i]:8.1f} m | "
                  f"V={speeds[i]:8.1f} m/s | Step: {steps[i]}")
            prev_step = steps[i]
print(f"\nTermination: {result.reason}")

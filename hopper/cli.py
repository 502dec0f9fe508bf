"""
Hopper - CLI

Fly a hop in the reference simulation, print a summary and optionally
write the hop plot and the CSV log.
"""

import argparse
import json
import logging
import os
import sys

from .config import HopConfig, create_simulation_config
from .geodesy import GeoPoint, move_by_meters
from .simulation import run_hop

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="hopper",
        description="Suborbital hop guidance - reference simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--start-lat", type=float, default=0.0, help="Launch latitude (deg)")
    parser.add_argument("--start-lon", type=float, default=0.0, help="Launch longitude (deg)")
    parser.add_argument("--target-lat", type=float, default=None,
                        help="Target latitude (deg); defaults to the launch site offset")
    parser.add_argument("--target-lon", type=float, default=None,
                        help="Target longitude (deg)")
    parser.add_argument("--north", type=float, default=0.0,
                        help="Target offset north of the launch site (m)")
    parser.add_argument("--east", type=float, default=5000.0,
                        help="Target offset east of the launch site (m)")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON file holding a hop configuration record")
    parser.add_argument("--launch-angle", type=float, default=None,
                        help="Launch angle from vertical (deg)")
    parser.add_argument("--course-correction", action="store_true",
                        help="Perform a course correction burn after ascent")
    parser.add_argument("--ascend-only", action="store_true",
                        help="End the hop after the ascent burn")
    parser.add_argument("--adaptive-heading", action="store_true",
                        help="Re-aim at the target every tick during ascent")
    parser.add_argument("--corrected-heading", action="store_true",
                        help="Aim at the rotation-adjusted target")
    parser.add_argument("--dt", type=float, default=0.02, help="Simulation time step (s)")
    parser.add_argument("--max-time", type=float, default=600.0,
                        help="Maximum simulated time (s)")
    parser.add_argument("--output-dir", "-o", type=str, default="plots",
                        help="Directory to save the plot and log")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--csv", action="store_true", help="Also write the hop log as CSV")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress verbose output")
    return parser.parse_args(argv)


def build_hop_config(args) -> HopConfig:
    """Hop configuration from an optional record file plus flag overrides."""
    record = {}
    if args.config:
        with open(args.config) as fh:
            record = json.load(fh)
    if args.launch_angle is not None:
        record['launch_angle'] = args.launch_angle
    if args.course_correction:
        record['perform_course_correction'] = True
    if args.ascend_only:
        record['ascend_only'] = True
    if args.adaptive_heading:
        record['adaptive_heading'] = True
    if args.corrected_heading:
        record['use_corrected_heading'] = True
    return HopConfig.from_record(record)


def resolve_target(args, start: GeoPoint) -> GeoPoint:
    if args.target_lat is not None and args.target_lon is not None:
        return GeoPoint(args.target_lat, args.target_lon)
    return move_by_meters(start, north=args.north, east=args.east)


def main(argv=None):
    """Main execution flow."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        hop_config = build_hop_config(args)
        sim_config = create_simulation_config(dt=args.dt, max_time=args.max_time,
                                              verbose=not args.quiet)
        start = GeoPoint(args.start_lat, args.start_lon)
        target = resolve_target(args, start)

        logger.info(f"Flying hop {start} -> {target}")
        result = run_hop(start, target, hop_config, sim_config)

        print("\n" + "=" * 60)
        print("HOP SUMMARY")
        print("=" * 60)
        print(f"Termination reason: {result.reason}")
        print(f"Steps flown: {' -> '.join(result.steps) or 'none'}")
        print(f"Final time: {result.final_state.time:.2f} s")
        print(f"Final position: {result.final_state.geo}")
        print(f"Landing error: {result.landing_error:.1f} m")
        if result.touchdown_speed is not None:
            print(f"Touchdown speed: {result.touchdown_speed:.2f} m/s")
        print("=" * 60 + "\n")

        if not args.no_plots or args.csv:
            output_dir = os.path.abspath(args.output_dir)
            os.makedirs(output_dir, exist_ok=True)
            if not args.no_plots:
                from .plotting import plot_hop
                path = plot_hop(result.log, os.path.join(output_dir, 'hop.png'), target)
                print(f">> Plot written to: {path}")
            if args.csv:
                path = os.path.join(output_dir, 'hop_log.csv')
                result.log.to_csv(path)
                print(f">> Log written to: {path}")

    except Exception as e:
        logger.error(f"Hop simulation failed: {e}", exc_info=True)
        print(f"\n[ERROR] Hop simulation failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Tests for the integrators and the reference simulation host."""

import math
import unittest

import numpy as np
import pytest

from hopper import constants as C
from hopper.config import HopConfig, create_test_simulation_config
from hopper.geodesy import GeoPoint, geo_to_vector, move_by_meters, surface_distance
from hopper.integrators import euler_step, integrate, rk4_step
from hopper.interfaces import AttitudeReference
from hopper.simulation import (
    HopLog, SimAttitudeController, SimImpactPredictor, SimOrbitInfo, SimThrustController,
    SimTimeWarp, SimWorld, run_hop,
)
from hopper.state import BodyInfo


class TestIntegrators(unittest.TestCase):

    def test_rk4_exponential(self):
        y = np.array([1.0])
        t, dt = 0.0, 0.1
        for _ in range(10):
            y = rk4_step(lambda t, y: y, y, t, dt)
            t += dt
        self.assertAlmostEqual(y[0], math.e, places=5)

    def test_euler_is_first_order(self):
        y = euler_step(lambda t, y: np.array([2.0]), np.array([0.0]), 0.0, 0.5)
        self.assertAlmostEqual(y[0], 1.0)

    def test_invalid_dt(self):
        with self.assertRaises(ValueError):
            rk4_step(lambda t, y: y, np.array([1.0]), 0.0, 0.0)

    def test_unknown_method(self):
        with self.assertRaises(ValueError):
            integrate(lambda t, y: y, np.array([1.0]), 0.0, 0.1, method='leapfrog')


@pytest.fixture
def world():
    return SimWorld(BodyInfo(), create_test_simulation_config(), GeoPoint(0.0, 0.0))


def test_world_starts_landed_and_corotating(world):
    snap = world.snapshot()
    assert snap.landed
    assert snap.altitude == pytest.approx(0.0, abs=1e-6)
    np.testing.assert_allclose(world.surface_velocity(), 0.0, atol=1e-9)


def test_landed_vehicle_stays_put_in_body_frame(world):
    for _ in range(100):
        world.step(0.05)
    snap = world.snapshot()
    assert snap.landed
    assert surface_distance(snap.geo, GeoPoint(0.0, 0.0)) < 1e-3


def test_frames_round_trip(world):
    v = np.array([1.0, 2.0, 3.0])
    np.testing.assert_allclose(world.to_body_fixed(world.to_inertial(v, 500.0), 500.0), v)


def test_liftoff_and_mass_flow(world):
    thrust = SimThrustController(world)
    thrust.target_throttle = 1.0
    m0 = world.vehicle.m
    for _ in range(20):
        world.step(0.05)
    assert not world.vehicle.landed
    assert world.altitude() > 0.0
    assert world.vehicle.m < m0


def test_no_liftoff_below_weight(world):
    thrust = SimThrustController(world)
    thrust.target_throttle = 0.5 * world.body.surface_gravity / world.max_acceleration
    world.step(0.05)
    assert world.vehicle.landed


def test_touchdown_records_speed(world):
    world.vehicle.landed = False
    world.vehicle.r = world.vehicle.r * (1.0 + 10.0 / C.BODY_RADIUS)
    for _ in range(100):
        world.step(0.05)
        if world.vehicle.landed:
            break
    assert world.vehicle.landed
    assert world.vehicle.touchdown_speed == pytest.approx(math.sqrt(2 * 9.81 * 10.0), rel=0.05)


def test_thrust_controller_clamps_and_tracks_users(world):
    thrust = SimThrustController(world)
    thrust.target_throttle = 3.0
    assert thrust.target_throttle == 1.0
    thrust.thrust_for_delta_v(1.0, 2.0)
    assert thrust.target_throttle == pytest.approx(0.5 / world.max_acceleration)
    thrust.add_user("a")
    thrust.add_user("a")
    assert thrust.users == ["a"]
    thrust.remove_user("a")
    thrust.remove_user("a")
    assert thrust.users == []


def test_attitude_controller_slews(world):
    attitude = SimAttitudeController(world)
    east = np.array([0.0, 1.0, 0.0])
    attitude.set_target(east, AttitudeReference.INERTIAL, "test")
    assert attitude.angle_error_to_target() == pytest.approx(90.0)
    attitude.update(1.0)
    assert attitude.angle_error_to_target() == pytest.approx(90.0 - world.config.slew_rate)
    attitude.deactivate()
    assert attitude.angle_error_to_target() == 0.0


def test_attitude_surface_north_heading(world):
    from hopper.frames import heading_pitch_to_quaternion
    attitude = SimAttitudeController(world)
    attitude.set_target(heading_pitch_to_quaternion(90.0, 0.0),
                        AttitudeReference.SURFACE_NORTH, "test")
    # at (0, 0) and t = 0 local east is +Y
    np.testing.assert_allclose(attitude.target_direction, [0.0, 1.0, 0.0], atol=1e-9)


def test_predictor_none_while_landed(world):
    predictor = SimImpactPredictor(world)
    predictor.update()
    assert predictor.current_prediction() is None


def test_predictor_finds_impact_downrange(world):
    world.vehicle.landed = False
    up = world.vehicle.r / np.linalg.norm(world.vehicle.r)
    east = np.array([0.0, 1.0, 0.0])
    world.vehicle.r = world.vehicle.r + 10.0 * up
    world.vehicle.v = world.vehicle.v + 50.0 * up + 50.0 * east
    predictor = SimImpactPredictor(world)
    predictor.update(force=True)
    prediction = predictor.current_prediction()
    assert prediction is not None
    assert prediction.end_time > 0.0
    assert prediction.end_position.longitude > 0.0
    # flat-ground range v^2 sin(2*45) / g, about 510 m
    downrange = surface_distance(GeoPoint(0.0, 0.0), prediction.end_position)
    assert downrange == pytest.approx(2500.0 / 9.8 * 2.0, rel=0.1)


def test_predictor_is_stale_between_refreshes(world):
    world.vehicle.landed = False
    world.vehicle.r = world.vehicle.r * (1.0 + 100.0 / C.BODY_RADIUS)
    predictor = SimImpactPredictor(world)
    predictor.update()
    first = predictor.current_prediction()
    world.vehicle.t += 0.1
    predictor.update()
    assert predictor.current_prediction() is first


def test_orbit_info_refresh(world):
    orbit = SimOrbitInfo(world)
    world.vehicle.v = world.vehicle.v + 100.0 * world.vehicle.r / np.linalg.norm(world.vehicle.r)
    orbit.refresh()
    assert orbit.time_to_apoapsis < orbit.time_to_periapsis


def test_time_warp_records_requests():
    warp = SimTimeWarp()
    warp.warp_at_rate(100.0)
    warp.minimum_warp()
    assert warp.requests == [100.0, 1.0]
    assert warp.rate == 1.0


# =============================================================================
# Full runs
# =============================================================================

def test_ascend_only_hop_runs():
    start = GeoPoint(0.0, 0.0)
    target = move_by_meters(start, east=1500.0)
    result = run_hop(start, target, HopConfig(ascend_only=True),
                     create_test_simulation_config(dt=0.05, max_time=60.0))
    assert isinstance(result.reason, str) and result.reason
    assert len(result.log) > 0
    assert result.steps[0] == 'ASCEND'
    assert max(result.log.altitude) > 0.0
    assert result.landing_error >= 0.0


def test_hop_stops_at_max_time():
    start = GeoPoint(0.0, 0.0)
    target = move_by_meters(start, east=20000.0)
    result = run_hop(start, target, HopConfig(),
                     create_test_simulation_config(dt=0.05, max_time=2.0))
    assert result.reason == "Maximum simulation time reached"
    assert result.final_state.time >= 2.0


def test_hop_log_csv(tmp_path):
    log = HopLog()
    log.time.append(0.0)
    log.altitude.append(1.0)
    log.latitude.append(0.0)
    log.longitude.append(0.0)
    log.throttle.append(0.5)
    log.speed.append(2.0)
    log.step.append('ASCEND')
    log.impact_distance.append(100.0)
    log.relative_delta.append(50.0)
    path = tmp_path / 'out' / 'hop.csv'
    log.to_csv(str(path))
    lines = path.read_text().strip().splitlines()
    assert lines[0].startswith('time,altitude_m')
    assert len(lines) == 2

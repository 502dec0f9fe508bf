"""Tests for per-tick derived guidance quantities."""

import numpy as np
import pytest

from hopper import constants as C
from hopper.geodesy import GeoPoint
from hopper.state import TargetState

from conftest import make_prediction, make_vehicle


def test_no_prediction_uses_vehicle_position(make_context):
    ctx = make_context()
    assert ctx.predicted_impact == ctx.current_geo
    assert ctx.impact_distance_to_target == pytest.approx(ctx.distance_to_target)
    assert ctx.time_to_land == 0.0


def test_distance_and_heading(make_context):
    ctx = make_context()
    assert ctx.distance_to_target == pytest.approx(10471.98, abs=0.1)
    assert ctx.heading == pytest.approx(90.0)


def test_heading_zero_when_on_target(make_context, body):
    target = TargetState.from_geo(GeoPoint(0.0, 0.0), body)
    ctx = make_context(target=target)
    assert ctx.distance_to_target == pytest.approx(0.0, abs=1e-6)
    assert ctx.heading == 0.0
    assert ctx.relative_distance_to_impact_delta == 0.0


def test_relative_delta_full_distance_before_prediction(make_context):
    ctx = make_context()
    assert ctx.relative_distance_to_impact_delta == pytest.approx(ctx.distance_to_target, rel=1e-3)


def test_relative_delta_sign(make_context):
    short = make_context(prediction=make_prediction(0.0, 0.5))
    on_target = make_context(prediction=make_prediction(0.0, 1.0))
    beyond = make_context(prediction=make_prediction(0.0, 1.5))
    assert short.relative_distance_to_impact_delta > 0.0
    assert on_target.relative_distance_to_impact_delta == pytest.approx(0.0, abs=1e-3)
    assert beyond.relative_distance_to_impact_delta < 0.0


def test_relative_delta_ignores_cross_track_miss(make_context):
    """An impact abeam the target (cross-track) has near-zero along-track delta."""
    ctx = make_context(prediction=make_prediction(0.05, 1.0))
    assert abs(ctx.relative_distance_to_impact_delta) < 1.0
    assert ctx.impact_distance_to_target > 400.0


def test_time_to_land(make_context, body):
    vehicle = make_vehicle(body, altitude=100.0, time=12.0)
    ctx = make_context(vehicle=vehicle, prediction=make_prediction(0.0, 0.5, end_time=42.0))
    assert ctx.time_to_land == pytest.approx(30.0)


def test_thrust_to_weight(make_context, body):
    vehicle = make_vehicle(body, mass=1000.0, thrust=2.0 * 1000.0 * body.surface_gravity)
    ctx = make_context(vehicle=vehicle)
    assert ctx.thrust_to_weight == pytest.approx(2.0)
    assert make_context(vehicle=make_vehicle(body, mass=0.0)).thrust_to_weight == 0.0


def test_time_of_flight_and_adjusted_target(make_context, body):
    ctx = make_context()
    assert ctx.time_of_flight > 0.0
    assert ctx.time_of_flight_kepler > 0.0
    # the offset is rotated, never stretched
    offset = ctx.target.position - ctx.vehicle.position
    assert np.linalg.norm(ctx.adjusted_target - ctx.target.position) == pytest.approx(
        np.linalg.norm(offset))


def test_wanted_heading_follows_config(make_context):
    from hopper.config import HopConfig
    plain = make_context()
    corrected = make_context(config=HopConfig(use_corrected_heading=True))
    assert plain.wanted_heading == plain.heading
    assert corrected.wanted_heading == corrected.corrected_heading


def test_non_rotating_body_corrected_heading_equals_heading(attitude, thrust):
    from hopper.config import HopConfig
    from hopper.context import GuidanceContext
    from hopper.state import BodyInfo
    still = BodyInfo(rotation_period=0.0)
    ctx = GuidanceContext(
        config=HopConfig(), body=still, vehicle=make_vehicle(still),
        target=TargetState.from_geo(GeoPoint(0.3, 0.4), still), prediction=None,
        attitude=attitude, thrust=thrust,
    )
    assert ctx.corrected_heading == pytest.approx(ctx.heading, abs=1e-6)


def test_hop_apoapsis_positive(make_context):
    assert make_context().hop_apoapsis > 0.0

"""Shared fakes and fixtures for the hop guidance tests."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from hopper.config import HopConfig
from hopper.context import GuidanceContext
from hopper.geodesy import GeoPoint
from hopper.state import BodyInfo, ImpactPrediction, TargetState, VehicleState


class FakeAttitude:
    """Records attitude commands; angle error is set by the test."""

    def __init__(self):
        self.targets = []
        self.active = False
        self.angle_error = 0.0

    def set_target(self, orientation, reference, requester, roll_lock=False,
                   pitch_lock=True, yaw_lock=True):
        self.targets.append((np.asarray(orientation, dtype=float), reference, requester))
        self.active = True

    def deactivate(self):
        self.active = False

    def angle_error_to_target(self):
        return self.angle_error


class FakeThrust:
    def __init__(self):
        self.target_throttle = 0.0
        self.users = []
        self.off_calls = 0
        self.delta_v_burns = []

    def thrust_off(self):
        self.off_calls += 1
        self.target_throttle = 0.0

    def thrust_for_delta_v(self, delta_v, time_constant):
        self.delta_v_burns.append((delta_v, time_constant))
        self.target_throttle = min(1.0, delta_v / time_constant)

    def add_user(self, user):
        self.users.append(user)

    def remove_user(self, user):
        self.users.remove(user)


class FakePredictor:
    def __init__(self, prediction=None):
        self.prediction = prediction
        self.dependents = []

    def current_prediction(self):
        return self.prediction

    def add_dependent(self, dependent):
        self.dependents.append(dependent)

    def remove_dependent(self, dependent):
        self.dependents.remove(dependent)


class FakeCorrection:
    def __init__(self, delta_v=(0.0, 5.0, 0.0)):
        self.delta_v = np.asarray(delta_v, dtype=float)
        self.calls = []

    def compute_course_correction(self, aggressive):
        self.calls.append(aggressive)
        return self.delta_v


class FakeWarp:
    def __init__(self):
        self.rates = []
        self.minimum_calls = 0

    def warp_at_rate(self, rate):
        self.rates.append(rate)

    def minimum_warp(self):
        self.minimum_calls += 1


class FakeOrbit:
    def __init__(self, time_to_apoapsis=10.0, time_to_periapsis=100.0):
        self.time_to_apoapsis = time_to_apoapsis
        self.time_to_periapsis = time_to_periapsis


class FakeDescent:
    def __init__(self):
        self.status = "Descending"
        self.calls = 0

    def drive(self, vehicle):
        self.calls += 1


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def make_vehicle(body, lat=0.0, lon=0.0, altitude=0.0, landed=False,
                 mass=1000.0, thrust=40000.0, time=0.0):
    from hopper.geodesy import geo_to_vector
    return VehicleState(
        position=geo_to_vector(GeoPoint(lat, lon), body.radius + altitude),
        altitude=altitude, mass=mass, available_thrust=thrust,
        landed=landed, time=time,
    )


def make_prediction(lat, lon, end_time=30.0):
    return ImpactPrediction(end_position=GeoPoint(lat, lon), end_time=end_time)


@pytest.fixture
def body():
    return BodyInfo()


@pytest.fixture
def attitude():
    return FakeAttitude()


@pytest.fixture
def thrust():
    return FakeThrust()


@pytest.fixture
def predictor():
    return FakePredictor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_context(body, attitude, thrust):
    """Factory for a GuidanceContext around the fake collaborators."""

    def _make(config=None, vehicle=None, target=None, prediction=None, **collaborators):
        return GuidanceContext(
            config=config or HopConfig(),
            body=body,
            vehicle=vehicle if vehicle is not None else make_vehicle(body),
            target=target if target is not None else TargetState.from_geo(GeoPoint(0.0, 1.0), body),
            prediction=prediction,
            attitude=attitude,
            thrust=thrust,
            requester="test",
            **collaborators,
        )

    return _make

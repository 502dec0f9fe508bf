"""
Hopper - Geodesy

Pure functions on a spherical body: great-circle surface distance
(haversine), initial bearing, angle normalization and conversion between
body-fixed position vectors and latitude/longitude.

Conventions:
- Positions are body-centred and body-fixed; +Z is the rotation axis.
- Latitude in [-90, 90] degrees, longitude normalized into [-180, 180).
- Bearings are degrees clockwise from north in [0, 360).
"""

from dataclasses import dataclass

import numpy as np

from . import constants as C


def normalize_angle(angle_deg: float) -> float:
    """Wrap an angle into [0, 360) degrees."""
    wrapped = float(angle_deg) % 360.0
    # -1e-17 % 360 rounds to exactly 360.0
    if wrapped >= 360.0:
        wrapped -= 360.0
    return wrapped


def normalize_longitude(longitude_deg: float) -> float:
    """Wrap a longitude into [-180, 180) degrees."""
    return normalize_angle(float(longitude_deg) + 180.0) - 180.0


@dataclass(frozen=True)
class GeoPoint:
    """
    A point on the body surface.

    Attributes:
        latitude: Degrees north, in [-90, 90]
        longitude: Degrees east, normalized into [-180, 180)
    """
    latitude: float
    longitude: float

    def __post_init__(self):
        lat = float(self.latitude)
        lon = float(self.longitude)
        if not np.isfinite(lat) or not np.isfinite(lon):
            raise ValueError(f"GeoPoint coordinates must be finite, got ({lat}, {lon})")
        if lat < -90.0 or lat > 90.0:
            raise ValueError(f"Latitude must be in [-90, 90], got {lat}")
        object.__setattr__(self, 'latitude', lat)
        object.__setattr__(self, 'longitude', normalize_longitude(lon))

    def __str__(self) -> str:
        return f"({self.latitude:.6f}°, {self.longitude:.6f}°)"


def surface_distance(a: GeoPoint, b: GeoPoint, radius: float = C.BODY_RADIUS) -> float:
    """
    Great-circle distance between two surface points (haversine formula).

    Args:
        a: First point
        b: Second point
        radius: Body radius (m)

    Returns:
        Surface distance (m), in [0, pi * radius]
    """
    lat1 = np.radians(a.latitude)
    lat2 = np.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = np.radians(b.longitude - a.longitude)

    h = np.sin(d_lat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(d_lon / 2.0) ** 2
    h = min(max(float(h), 0.0), 1.0)

    c = 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))
    return float(radius * c)


def bearing(origin: GeoPoint, destination: GeoPoint) -> float:
    """
    Initial great-circle bearing from origin toward destination.

    The bearing from a point to itself is undefined; callers must guard
    against zero distance before calling. bearing(a, b) and bearing(b, a)
    are in general not 180 degrees apart.

    Returns:
        Bearing in degrees clockwise from north, in [0, 360)
    """
    lat1 = np.radians(origin.latitude)
    lat2 = np.radians(destination.latitude)
    d_lon = np.radians(destination.longitude - origin.longitude)

    y = np.sin(d_lon) * np.cos(lat2)
    x = np.cos(lat1) * np.sin(lat2) - np.sin(lat1) * np.cos(lat2) * np.cos(d_lon)

    return normalize_angle(np.degrees(np.arctan2(y, x)))


def geo_to_vector(point: GeoPoint, radius: float = C.BODY_RADIUS) -> np.ndarray:
    """Body-fixed position vector of a GeoPoint at the given radius (m)."""
    lat = np.radians(point.latitude)
    lon = np.radians(point.longitude)
    return radius * np.array([
        np.cos(lat) * np.cos(lon),
        np.cos(lat) * np.sin(lon),
        np.sin(lat),
    ])


def vector_to_geo(r: np.ndarray) -> GeoPoint:
    """
    Latitude/longitude of a body-fixed position vector.

    Raises:
        ValueError: If the vector is (near) zero
    """
    r = np.asarray(r, dtype=float)
    r_norm = float(np.linalg.norm(r))
    if r_norm < C.ZERO_TOLERANCE:
        raise ValueError("Cannot compute latitude/longitude of a zero vector")
    lat = np.degrees(np.arcsin(np.clip(r[2] / r_norm, -1.0, 1.0)))
    lon = np.degrees(np.arctan2(r[1], r[0]))
    return GeoPoint(float(lat), float(lon))


def move_by_meters(point: GeoPoint, north: float = 0.0, east: float = 0.0,
                   radius: float = C.BODY_RADIUS) -> GeoPoint:
    """
    Nudge a surface point by a small distance north and/or east.

    Distances are converted to angular offsets at the given radius
    (body radius plus terrain altitude), so this is only meant for
    fine-tuning a target by tens of meters. Latitude saturates at the poles.
    """
    d_lat = np.degrees(north / radius)
    cos_lat = np.cos(np.radians(point.latitude))
    d_lon = np.degrees(east / radius) / cos_lat if abs(cos_lat) > C.ZERO_TOLERANCE else 0.0
    lat = float(np.clip(point.latitude + d_lat, -90.0, 90.0))
    return GeoPoint(lat, point.longitude + d_lon)

"""
Geofence validation.

Great-circle distance on a spherical Earth (Haversine). Coordinates are in
degrees and range-validated by the caller (request schemas); the functions
here are pure and total for valid numeric input.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Protocol

EARTH_RADIUS_METERS = 6_371_000.0


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


class Geofenced(Protocol):
    location_latitude: float
    location_longitude: float
    geofence_radius: int


class GeofenceCheck(NamedTuple):
    distance: float
    allowed_radius: float
    inside: bool


def distance_meters(
    task_lat: float, task_lng: float, point_lat: float, point_lng: float
) -> float:
    """Haversine distance in meters between two (lat, lng) pairs in degrees."""
    phi1 = math.radians(task_lat)
    phi2 = math.radians(point_lat)
    d_phi = math.radians(point_lat - task_lat)
    d_lambda = math.radians(point_lng - task_lng)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def check_geofence(task: Geofenced, point: GeoPoint) -> GeofenceCheck:
    distance = distance_meters(
        task.location_latitude, task.location_longitude, point.latitude, point.longitude
    )
    radius = float(task.geofence_radius)
    # On the boundary counts as inside
    return GeofenceCheck(distance=distance, allowed_radius=radius, inside=distance <= radius)


def is_within_geofence(task: Geofenced, point: GeoPoint) -> bool:
    return check_geofence(task, point).inside

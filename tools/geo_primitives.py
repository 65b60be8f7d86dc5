"""Distance and projection primitives on (lat, lng) coordinates."""
import math
from typing import Tuple

import numpy as np

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


def is_valid_coordinate(lat, lng) -> bool:
    """True for finite numbers inside the latitude/longitude ranges."""
    if lat is None or lng is None:
        return False
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def haversine_km(a: LatLng, b: LatLng) -> float:
    """
    Great-circle distance between two points in kilometres.

    NaN inputs propagate; callers filter non-finite coordinates first.
    """
    lat1, lng1 = a
    lat2, lng2 = b
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_km_array(lat1: np.ndarray, lng1: np.ndarray,
                       lat2: np.ndarray, lng2: np.ndarray) -> np.ndarray:
    """Element-wise haversine_km over numpy arrays (broadcasting allowed)."""
    d_lat = np.radians(lat2 - lat1)
    d_lng = np.radians(lng2 - lng1)
    h = (
        np.sin(d_lat / 2) ** 2
        + np.cos(np.radians(lat1)) * np.cos(np.radians(lat2)) * np.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def nearest_points_on_segments(p: LatLng, starts, ends) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Project p onto every segment starts[i]-ends[i] in the raw coordinate plane.

    Returns:
        (t, points, distances_km) arrays with one entry per segment. t is
        clamped to [0, 1] and distances_km is the haversine distance from p to
        each projected point. A zero-length segment yields t = 0 and its start.
    """
    starts = np.asarray(starts, dtype=float).reshape(-1, 2)
    ends = np.asarray(ends, dtype=float).reshape(-1, 2)
    point = np.asarray(p, dtype=float)
    deltas = ends - starts

    length_sq = np.einsum("ij,ij->i", deltas, deltas)
    dots = np.einsum("ij,ij->i", point - starts, deltas)
    degenerate = length_sq == 0
    t = np.where(degenerate, 0.0, dots / np.where(degenerate, 1.0, length_sq))
    t = np.clip(t, 0.0, 1.0)

    points = starts + t[:, None] * deltas
    distances = haversine_km_array(point[0], point[1], points[:, 0], points[:, 1])
    return t, points, distances


def nearest_point_on_segment(p: LatLng, a: LatLng, b: LatLng) -> Tuple[float, LatLng, float]:
    """Single-segment form of nearest_points_on_segments: (t, point, distance_km)."""
    t, points, distances = nearest_points_on_segments(p, [a], [b])
    return float(t[0]), (float(points[0, 0]), float(points[0, 1])), float(distances[0])

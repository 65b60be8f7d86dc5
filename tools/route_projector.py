"""Project a live position onto a route polyline."""
import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from models.route_models import LatLng, RouteProjection
from tools.geo_primitives import is_valid_coordinate, nearest_points_on_segments

logger = logging.getLogger(__name__)

NO_PROJECTION = RouteProjection(segment_index=None, point=None, distance_km=math.inf)


def clean_polyline(latitudes: Sequence[Optional[float]],
                   longitudes: Sequence[Optional[float]]) -> List[LatLng]:
    """
    Pair latitudes with longitudes by index and drop invalid pairs.

    Entries beyond the shorter of the two sequences are discarded.
    """
    if len(latitudes) != len(longitudes):
        logger.debug(f"Latitude/longitude length mismatch ({len(latitudes)} vs {len(longitudes)}), truncating")
    return [
        (float(lat), float(lng))
        for lat, lng in zip(latitudes, longitudes)
        if is_valid_coordinate(lat, lng)
    ]


def project_onto_route(position: LatLng, polyline: Sequence[LatLng]) -> RouteProjection:
    """
    Find the closest point of the polyline to position.

    Every segment is projected in the raw (lat, lng) plane, clamped to its
    endpoints and scored by haversine distance. The first segment with the
    minimum distance wins.

    Returns:
        RouteProjection, or NO_PROJECTION when fewer than two points are given.
    """
    if len(polyline) < 2 or position is None or not is_valid_coordinate(*position):
        return NO_PROJECTION

    coords = np.asarray(polyline, dtype=float)
    _, points, distances = nearest_points_on_segments(position, coords[:-1], coords[1:])

    # np.argmin returns the first occurrence, which keeps earlier segments on ties
    index = int(np.argmin(distances))
    return RouteProjection(
        segment_index=index,
        point=(float(points[index, 0]), float(points[index, 1])),
        distance_km=float(distances[index]),
    )

"""Turn a route projection into a progress percentage and stop estimate."""
import logging
import math
from typing import Optional, Sequence

from configurations.config import Config
from models.route_models import LatLng, RouteProgress, RouteProjection
from tools.geo_primitives import haversine_km
from tools.route_projector import project_onto_route

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def path_length_km(polyline: Sequence[LatLng]) -> float:
    return sum(haversine_km(polyline[i], polyline[i + 1]) for i in range(len(polyline) - 1))


def calculate_progress(projection: RouteProjection, polyline: Sequence[LatLng],
                       threshold_km: Optional[float] = None) -> RouteProgress:
    """
    Compute progress along polyline for an already computed projection.

    The truck is on the route when the projection distance is within
    threshold_km (inclusive). Off-route trucks report 0 % but still carry
    their distance from the route in metres.
    """
    if threshold_km is None:
        threshold_km = Config.PROXIMITY_THRESHOLD_KM
    total_stops = len(polyline)

    if not projection.is_valid:
        return RouteProgress(total_stops=total_stops)

    distance_m = projection.distance_km * 1000.0
    if not projection.distance_km <= threshold_km:
        return RouteProgress(total_stops=total_stops, distance_from_route_m=distance_m)

    total_km = path_length_km(polyline)
    if total_km <= 0:
        return RouteProgress(total_stops=total_stops, on_route=True, distance_from_route_m=distance_m)

    index = projection.segment_index
    traveled_km = path_length_km(polyline[:index + 1])
    traveled_km += haversine_km(polyline[index], projection.point)

    fraction = min(1.0, max(0.0, traveled_km / total_km))
    progress = round_half_up(fraction * 100)
    return RouteProgress(
        progress_percent=progress,
        completed_stops=round_half_up(progress / 100 * total_stops),
        total_stops=total_stops,
        on_route=True,
        distance_from_route_m=distance_m,
    )


def compute_route_progress(position: Optional[LatLng], polyline: Sequence[LatLng],
                           threshold_km: Optional[float] = None) -> RouteProgress:
    """Project position onto polyline and derive progress in one call."""
    if position is None:
        return RouteProgress(total_stops=len(polyline))
    projection = project_onto_route(position, polyline)
    progress = calculate_progress(projection, polyline, threshold_km)
    logger.debug(f"Projection {projection} -> {progress.progress_percent}% on_route={progress.on_route}")
    return progress

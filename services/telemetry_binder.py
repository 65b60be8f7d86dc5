"""Resolve which live telemetry record belongs to a route."""
from typing import Dict, Iterable, Optional

from loguru import logger

from models.route_models import CollectorAccount, Route, TelemetryRecord


def resolve_truck_label(route: Route, collectors: Iterable[CollectorAccount]) -> Optional[str]:
    """Truck label for a route: its own, else the one assigned to its collector."""
    if route.truck_label:
        return route.truck_label
    collector = _find_collector(route, collectors)
    return collector.truck_label if collector else None


def _find_collector(route: Route, collectors: Iterable[CollectorAccount]) -> Optional[CollectorAccount]:
    for collector in collectors:
        if collector.id == route.collector_id:
            return collector
    return None


def match_telemetry(route: Route, telemetry: Iterable[TelemetryRecord],
                    collectors: Iterable[CollectorAccount] = ()) -> Optional[TelemetryRecord]:
    """
    Find the telemetry record for a route, ignoring its collecting flag.

    Identity paths, first match wins:
        1. telemetry id == truck label assigned to the route's collector
        2. telemetry id == the route's own truck label
        3. telemetry updated_by == the route's collector id
    """
    records = list(telemetry)
    by_id: Dict[str, TelemetryRecord] = {}
    for record in records:
        by_id.setdefault(record.id, record)

    collector = _find_collector(route, collectors)
    if collector and collector.truck_label and collector.truck_label in by_id:
        return by_id[collector.truck_label]

    if route.truck_label and route.truck_label in by_id:
        return by_id[route.truck_label]

    for record in records:
        if record.updated_by and record.updated_by == route.collector_id:
            return record

    return None


def bind_telemetry(route: Route, telemetry: Iterable[TelemetryRecord],
                   collectors: Iterable[CollectorAccount] = ()) -> Optional[TelemetryRecord]:
    """
    Active telemetry for a route, or None.

    A matched record only counts when the truck is collecting and has a
    position; otherwise the route has no active telemetry.
    """
    record = match_telemetry(route, telemetry, collectors)
    if record is None:
        logger.debug(f"Route {route.id}: no telemetry record matched")
        return None
    if not record.is_collecting or record.position is None:
        logger.debug(f"Route {route.id}: truck {record.id} inactive or without position")
        return None
    return record

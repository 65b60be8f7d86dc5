"""Detect scheduled collection days on which a route's truck never collected."""
from datetime import date
from typing import Iterable, List

import pandas as pd
from loguru import logger

from models.route_models import WEEKDAYS, CollectorAccount, Route, TelemetryRecord
from services.telemetry_binder import resolve_truck_label

MISSED_COLUMNS = [
    "route_id", "collector_id", "collector_name", "truck_label",
    "barangay", "street", "scheduled_date", "scheduled_day", "status",
]


def _collecting_days(route: Route, truck_label, history: List[TelemetryRecord]) -> set:
    days = set()
    for record in history:
        if not record.is_collecting or record.updated_at is None:
            continue
        if record.id == truck_label or record.updated_by == route.collector_id:
            days.add(record.updated_at.date())
    return days


def find_missed_collections(routes: Iterable[Route], collectors: Iterable[CollectorAccount],
                            telemetry_history: Iterable[TelemetryRecord],
                            start: date, end: date) -> pd.DataFrame:
    """
    List every (route, street, day) in [start, end] that was scheduled but saw
    no collecting telemetry from the route's truck or collector that day.

    Routes whose collector is unknown are ignored.
    """
    collectors = list(collectors)
    history = list(telemetry_history)
    known = {c.id: c for c in collectors}
    dates = pd.date_range(start, end, freq="D")

    rows = []
    for route in routes:
        collector = known.get(route.collector_id)
        if collector is None:
            continue
        truck_label = resolve_truck_label(route, collectors)
        active_days = _collecting_days(route, truck_label, history)
        streets = route.street_labels or [""]

        for ts in dates:
            day = ts.date()
            if not route.is_scheduled_on(day) or day in active_days:
                continue
            for idx, street in enumerate(streets):
                barangay = route.barangay_labels[idx] if idx < len(route.barangay_labels) else route.primary_barangay
                rows.append({
                    "route_id": route.id,
                    "collector_id": collector.id,
                    "collector_name": collector.name,
                    "truck_label": truck_label or "N/A",
                    "barangay": barangay or "N/A",
                    "street": street or "N/A",
                    "scheduled_date": day.isoformat(),
                    "scheduled_day": WEEKDAYS[day.weekday()],
                    "status": "missed",
                })

    logger.info(f"Found {len(rows)} missed collections between {start} and {end}")
    missed = pd.DataFrame(rows, columns=MISSED_COLUMNS)
    return missed.sort_values(["scheduled_date", "route_id"], ascending=[False, True]).reset_index(drop=True)

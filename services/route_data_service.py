"""Data source for routes, truck telemetry, collection outcomes and collectors."""
import json
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import requests
from loguru import logger

from configurations.config import Config
from models.route_models import (
    CollectionOutcome,
    CollectorAccount,
    Route,
    Snapshot,
    TelemetryRecord,
)

T = TypeVar("T")


class DataSourceError(Exception):
    """Raised when a snapshot cannot be fetched from the data store."""
    pass


def parse_rows(table: str, rows: List[Dict[str, Any]], parser: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Parse table rows, logging and skipping the ones that are malformed."""
    parsed = []
    for row in rows:
        try:
            parsed.append(parser(row))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed {table} row {str(row)[:120]}: {e!r}")
    return parsed


def snapshot_from_records(records: Dict[str, List[Dict[str, Any]]]) -> Snapshot:
    """Build a Snapshot from raw table rows keyed by table name."""
    return Snapshot(
        routes=parse_rows("collection_schedules", records.get("collection_schedules", []), Route.from_record),
        telemetry=parse_rows("truck_status", records.get("truck_status", []), TelemetryRecord.from_record),
        outcomes=parse_rows("collection_status", records.get("collection_status", []), CollectionOutcome.from_record),
        collectors=parse_rows("accounts", records.get("accounts", []), CollectorAccount.from_record),
    )


class RouteDataService:
    """Reads the hosted REST tables the admin console writes to."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or Config.DATA_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else Config.DATA_API_KEY
        self.timeout = Config.DATA_API_TIMEOUT_SECONDS
        self.session = session or requests.Session()

        logger.info(f"RouteDataService initialized with base URL: {self.base_url}")
        if not self.api_key:
            logger.warning("No data API key configured")

    def _headers(self) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_table(self, table: str, params: Optional[List[Tuple[str, str]]] = None) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"
        query = [("select", "*")] + list(params or [])
        try:
            response = self.session.get(url, headers=self._headers(), params=query, timeout=self.timeout)
        except requests.RequestException as e:
            raise DataSourceError(f"Request for {table} failed: {e}") from e

        if response.status_code != 200:
            raise DataSourceError(f"{table} returned status {response.status_code}: {response.text[:200]}")

        # requests' JSONDecodeError is a ValueError subclass
        try:
            rows = response.json()
        except ValueError as e:
            raise DataSourceError(f"{table} returned a non-JSON body: {response.text[:200]}") from e

        if not isinstance(rows, list):
            raise DataSourceError(f"{table} returned {type(rows).__name__}, expected a list of rows")
        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    def _outcome_rows(self, on_date: date) -> List[Dict[str, Any]]:
        return self._get_table("collection_status", [("collectionDate", f"eq.{on_date.isoformat()}")])

    def fetch_snapshot(self, today: Optional[date] = None) -> Snapshot:
        """Fetch everything one refresh tick needs; outcomes are limited to today."""
        today = today or date.today()
        records = {
            "collection_schedules": self._get_table("collection_schedules"),
            "truck_status": self._get_table("truck_status"),
            "collection_status": self._outcome_rows(today),
            "accounts": self._get_table("accounts", [("role", "eq.collector")]),
        }
        snapshot = snapshot_from_records(records)
        logger.info(
            f"Fetched snapshot: {len(snapshot.routes)} routes, {len(snapshot.telemetry)} trucks, "
            f"{len(snapshot.outcomes)} outcomes, {len(snapshot.collectors)} collectors"
        )
        return snapshot

    def fetch_outcomes(self, on_date: date) -> List[CollectionOutcome]:
        """Collection outcomes recorded for a single calendar day."""
        return parse_rows("collection_status", self._outcome_rows(on_date), CollectionOutcome.from_record)

    def fetch_telemetry_history(self, start: date, end: date) -> List[TelemetryRecord]:
        """Truck status rows updated between start and end (inclusive)."""
        rows = self._get_table("truck_status", [
            ("updatedAt", f"gte.{start.isoformat()}"),
            ("updatedAt", f"lte.{end.isoformat()}T23:59:59"),
        ])
        return parse_rows("truck_status", rows, TelemetryRecord.from_record)


class StaticSnapshotSource:
    """Serves a fixed snapshot; used by the CLI and tests."""

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot

    @classmethod
    def from_json(cls, path: str) -> "StaticSnapshotSource":
        with open(Path(path), "r", encoding="utf-8") as f:
            records = json.load(f)
        return cls(snapshot_from_records(records))

    def fetch_snapshot(self, today: Optional[date] = None) -> Snapshot:
        return self.snapshot

    def fetch_outcomes(self, on_date: date) -> List[CollectionOutcome]:
        return [o for o in self.snapshot.outcomes if o.date == on_date]

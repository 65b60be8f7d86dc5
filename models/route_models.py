"""Data models for routes, telemetry, collection outcomes and engine results."""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

LatLng = Tuple[float, float]

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class OutcomeStatus(str, Enum):
    PENDING = "pending"
    COLLECTED = "collected"
    SKIPPED = "skipped"
    MISSED = "missed"

    @classmethod
    def _missing_(cls, value):
        # Older rows write "done" for a finished street; anything else unknown is unresolved.
        if isinstance(value, str) and value.lower() == "done":
            return cls.COLLECTED
        return cls.PENDING


class RouteState(str, Enum):
    DONE = "done"
    SKIPPED = "skipped"
    IN_PROGRESS = "in-progress"
    TODAY = "today"
    SCHEDULED = "scheduled"


def _first(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present value among several column spellings."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class Route:
    id: str
    collector_id: str
    truck_label: Optional[str] = None
    days: List[str] = field(default_factory=list)
    latitudes: List[Optional[float]] = field(default_factory=list)
    longitudes: List[Optional[float]] = field(default_factory=list)
    street_labels: List[str] = field(default_factory=list)
    barangay_labels: List[str] = field(default_factory=list)
    collection_time: Optional[str] = None

    @property
    def primary_street(self) -> str:
        return self.street_labels[0] if self.street_labels else ""

    @property
    def primary_barangay(self) -> str:
        return self.barangay_labels[0] if self.barangay_labels else ""

    def is_scheduled_on(self, day: date) -> bool:
        return WEEKDAYS[day.weekday()] in self.days

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Route":
        """Build a Route from a collection_schedules row."""
        truck_label = _first(record, "truck_no", "truckNo", "truck_label")
        return cls(
            id=str(record["id"]),
            collector_id=str(_first(record, "collector_id", "collectorId", default="")),
            truck_label=str(truck_label) if truck_label else None,
            days=[str(d) for d in _as_list(record.get("days"))],
            latitudes=[_as_float(v) for v in _as_list(record.get("latitude"))],
            longitudes=[_as_float(v) for v in _as_list(record.get("longitude"))],
            street_labels=[str(s) for s in _as_list(_first(record, "street_name", "streetName"))],
            barangay_labels=[str(b) for b in _as_list(_first(record, "barangay_name", "barangayName"))],
            collection_time=_first(record, "collection_time", "collectionTime"),
        )


@dataclass
class TelemetryRecord:
    id: str
    updated_by: Optional[str] = None
    is_collecting: bool = False
    is_full: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    updated_at: Optional[datetime] = None

    @property
    def position(self) -> Optional[LatLng]:
        if self.latitude is None or self.longitude is None:
            return None
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return None
        return (self.latitude, self.longitude)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TelemetryRecord":
        """Build a TelemetryRecord from a truck_status row."""
        updated_by = _first(record, "updatedBy", "updated_by")
        return cls(
            id=str(record["id"]),
            updated_by=str(updated_by) if updated_by is not None else None,
            is_collecting=bool(_first(record, "isCollecting", "is_collecting", default=False)),
            is_full=bool(_first(record, "isFull", "is_full", default=False)),
            latitude=_as_float(record.get("latitude")),
            longitude=_as_float(record.get("longitude")),
            updated_at=_parse_datetime(_first(record, "updatedAt", "updated_at")),
        )


@dataclass(frozen=True)
class CollectionOutcome:
    route_id: str
    date: date
    street_label: str
    barangay_label: str
    status: OutcomeStatus

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CollectionOutcome":
        """Build a CollectionOutcome from a collection_status row."""
        return cls(
            route_id=str(_first(record, "scheduleId", "schedule_id", "route_id")),
            date=_parse_date(_first(record, "collectionDate", "collection_date", "date")),
            street_label=str(_first(record, "streetName", "street_name", default="")),
            barangay_label=str(_first(record, "barangayName", "barangay_name", default="")),
            status=OutcomeStatus(str(record.get("status") or "pending").lower()),
        )


@dataclass
class CollectorAccount:
    id: str
    name: str = ""
    truck_label: Optional[str] = None
    role: str = "collector"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CollectorAccount":
        truck_label = _first(record, "truckNo", "truck_no")
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            truck_label=str(truck_label) if truck_label else None,
            role=str(record.get("role") or "collector"),
        )


@dataclass
class Snapshot:
    """Everything one refresh tick reads from the data store."""
    routes: List[Route] = field(default_factory=list)
    telemetry: List[TelemetryRecord] = field(default_factory=list)
    outcomes: List[CollectionOutcome] = field(default_factory=list)
    collectors: List[CollectorAccount] = field(default_factory=list)


@dataclass(frozen=True)
class RouteProjection:
    segment_index: Optional[int]
    point: Optional[LatLng]
    distance_km: float

    @property
    def is_valid(self) -> bool:
        return self.segment_index is not None


@dataclass(frozen=True)
class RouteProgress:
    progress_percent: int = 0
    completed_stops: int = 0
    total_stops: int = 0
    on_route: bool = False
    distance_from_route_m: Optional[float] = None

    @property
    def path_sample_count(self) -> int:
        # total_stops counts sampled path vertices, not pickup locations
        return self.total_stops


@dataclass(frozen=True)
class RouteStatusLabel:
    state: RouteState
    color: str


@dataclass(frozen=True)
class RouteEvaluation:
    route_id: str
    progress: RouteProgress
    status: RouteStatusLabel
    truck_id: Optional[str] = None

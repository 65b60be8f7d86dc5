"""Route progress engine: owns the refresh loop and the published results map."""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from loguru import logger

from configurations.config import Config
from models.route_models import RouteEvaluation, RouteProgress, Route, Snapshot
from services.route_data_service import DataSourceError
from services.status_classifier import classify_route_status
from services.telemetry_binder import bind_telemetry
from tools.progress_calculator import compute_route_progress
from tools.route_projector import clean_polyline


def evaluate_route(route: Route, snapshot: Snapshot, today: date,
                   threshold_km: Optional[float] = None) -> RouteEvaluation:
    """Progress and display state of one route against one snapshot."""
    polyline = clean_polyline(route.latitudes, route.longitudes)
    record = bind_telemetry(route, snapshot.telemetry, snapshot.collectors)
    if record is None:
        progress = RouteProgress()
    else:
        progress = compute_route_progress(record.position, polyline, threshold_km)
    status = classify_route_status(route, snapshot.outcomes, today)
    return RouteEvaluation(
        route_id=route.id,
        progress=progress,
        status=status,
        truck_id=record.id if record else None,
    )


class RouteProgressEngine:
    """
    Recomputes every route's progress and status on each tick.

    Each tick gets a generation number from begin_tick(). Results are
    published as a whole map; a tick superseded by a newer one is dropped.
    """

    def __init__(self, source, threshold_km: Optional[float] = None,
                 interval_seconds: Optional[float] = None, max_workers: Optional[int] = None):
        self.source = source
        self.threshold_km = threshold_km if threshold_km is not None else Config.PROXIMITY_THRESHOLD_KM
        self.interval_seconds = interval_seconds if interval_seconds is not None else Config.REFRESH_INTERVAL_SECONDS
        self.max_workers = max_workers or Config.MAX_WORKERS

        self._lock = threading.Lock()
        self._generation = 0
        self._published_generation = 0
        self._results: Mapping[str, RouteEvaluation] = MappingProxyType({})
        self._snapshot: Optional[Snapshot] = None

        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def results(self) -> Mapping[str, RouteEvaluation]:
        """Read-only view of the last published map."""
        with self._lock:
            return self._results

    @property
    def snapshot(self) -> Optional[Snapshot]:
        with self._lock:
            return self._snapshot

    @property
    def published_generation(self) -> int:
        with self._lock:
            return self._published_generation

    def get(self, route_id: str) -> Optional[RouteEvaluation]:
        return self.results.get(route_id)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def begin_tick(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def compute(self, snapshot: Snapshot, today: Optional[date] = None) -> Dict[str, RouteEvaluation]:
        """Evaluate all routes of a snapshot independently."""
        today = today or date.today()
        if not snapshot.routes:
            return {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            evaluations = executor.map(
                lambda route: evaluate_route(route, snapshot, today, self.threshold_km),
                snapshot.routes,
            )
            return {evaluation.route_id: evaluation for evaluation in evaluations}

    def publish(self, generation: int, results: Dict[str, RouteEvaluation],
                snapshot: Optional[Snapshot] = None) -> bool:
        """Replace the results map unless a newer tick has started since generation."""
        with self._lock:
            if generation < self._generation or generation <= self._published_generation:
                logger.warning(f"Discarding stale tick {generation} (latest {self._generation})")
                return False
            self._results = MappingProxyType(dict(results))
            self._published_generation = generation
            if snapshot is not None:
                self._snapshot = snapshot
        logger.debug(f"Published tick {generation} with {len(results)} routes")
        return True

    def refresh(self, today: Optional[date] = None) -> bool:
        """Fetch, compute and publish one tick. Returns True when published."""
        today = today or date.today()
        generation = self.begin_tick()
        try:
            snapshot = self.source.fetch_snapshot(today)
        except DataSourceError as e:
            logger.error(f"Tick {generation}: snapshot fetch failed, keeping previous results: {e}")
            return False
        except Exception as e:
            logger.exception(f"Tick {generation}: unexpected error fetching snapshot, keeping previous results: {e}")
            return False

        try:
            results = self.compute(snapshot, today)
        except Exception as e:
            logger.exception(f"Tick {generation}: evaluation failed, keeping previous results: {e}")
            return False

        return self.publish(generation, results, snapshot)

    # ------------------------------------------------------------------
    # Refresh loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Run refresh() now and then every interval_seconds on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="route-progress-engine", daemon=True)
        self._thread.start()
        logger.info(f"Route progress engine started (every {self.interval_seconds}s)")

    def trigger(self) -> None:
        """Request an immediate refresh from the loop, e.g. after a data change."""
        self._wake_event.set()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Route progress engine stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.refresh()
            except Exception as e:
                logger.exception(f"Refresh loop error: {e}")
            self._wake_event.wait(self.interval_seconds)
            self._wake_event.clear()

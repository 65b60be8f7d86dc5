"""Route progress API endpoints."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from shapely.geometry import LineString, Point, mapping

from core.progress_engine import RouteProgressEngine
from models.route_models import RouteEvaluation
from services.missed_collections import find_missed_collections
from services.route_data_service import DataSourceError
from services.status_classifier import classify_route_status_on, find_outcome
from tools.route_projector import clean_polyline

router = APIRouter(prefix="/api/progress", tags=["progress"])


class ProgressModel(BaseModel):
    progress_percent: int
    completed_stops: int
    total_stops: int
    on_route: bool
    distance_from_route_m: Optional[float] = None


class StatusModel(BaseModel):
    state: str
    color: str


class EvaluationModel(BaseModel):
    route_id: str
    truck_id: Optional[str] = None
    progress: ProgressModel
    status: StatusModel


class EvaluationListModel(BaseModel):
    generation: int
    count: int
    routes: List[EvaluationModel]


class DayStatusModel(BaseModel):
    route_id: str
    day: date
    state: str
    color: str
    outcome_status: Optional[str] = None


def get_engine(request: Request) -> RouteProgressEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Progress engine is not running")
    return engine


def to_model(evaluation: RouteEvaluation) -> EvaluationModel:
    progress = evaluation.progress
    return EvaluationModel(
        route_id=evaluation.route_id,
        truck_id=evaluation.truck_id,
        progress=ProgressModel(
            progress_percent=progress.progress_percent,
            completed_stops=progress.completed_stops,
            total_stops=progress.total_stops,
            on_route=progress.on_route,
            distance_from_route_m=progress.distance_from_route_m,
        ),
        status=StatusModel(state=evaluation.status.state.value, color=evaluation.status.color),
    )


@router.get("/", response_model=EvaluationListModel)
def list_progress(engine: RouteProgressEngine = Depends(get_engine)):
    """Latest progress and status of every route."""
    results = engine.results
    return EvaluationListModel(
        generation=engine.published_generation,
        count=len(results),
        routes=[to_model(e) for e in results.values()],
    )


@router.post("/refresh", response_model=EvaluationListModel)
def refresh_progress(engine: RouteProgressEngine = Depends(get_engine)):
    """Run one tick now and return its results."""
    engine.refresh()
    return list_progress(engine)


@router.get("/missed")
def list_missed_collections(
    start: date = Query(..., description="First day of the range"),
    end: date = Query(..., description="Last day of the range"),
    engine: RouteProgressEngine = Depends(get_engine),
):
    """Scheduled collection days with no collecting telemetry."""
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    snapshot = engine.snapshot
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot loaded yet")

    history = snapshot.telemetry
    if hasattr(engine.source, "fetch_telemetry_history"):
        try:
            history = engine.source.fetch_telemetry_history(start, end)
        except DataSourceError as e:
            raise HTTPException(status_code=502, detail=f"Failed to fetch telemetry history: {e}")

    missed = find_missed_collections(snapshot.routes, snapshot.collectors, history, start, end)
    return {
        "status": "success",
        "count": len(missed),
        "data": missed.to_dict("records"),
    }


@router.get("/{route_id}", response_model=EvaluationModel)
def get_progress(route_id: str, engine: RouteProgressEngine = Depends(get_engine)):
    """Latest progress and status of one route."""
    evaluation = engine.get(route_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"Route {route_id} not found")
    return to_model(evaluation)


@router.get("/{route_id}/geometry")
def get_route_geometry(route_id: str, engine: RouteProgressEngine = Depends(get_engine)):
    """Route polyline as a GeoJSON feature with its current progress."""
    snapshot = engine.snapshot
    route = None
    if snapshot is not None:
        route = next((r for r in snapshot.routes if r.id == route_id), None)
    if route is None:
        raise HTTPException(status_code=404, detail=f"Route {route_id} not found")

    polyline = clean_polyline(route.latitudes, route.longitudes)
    if not polyline:
        raise HTTPException(status_code=404, detail=f"Route {route_id} has no geometry")

    # GeoJSON is (lng, lat)
    coords = [(lng, lat) for lat, lng in polyline]
    geometry = LineString(coords) if len(coords) > 1 else Point(coords[0])

    evaluation = engine.get(route_id)
    properties = {"route_id": route_id}
    if evaluation is not None:
        properties.update(to_model(evaluation).model_dump(exclude={"route_id"}))
    return {"type": "Feature", "geometry": mapping(geometry), "properties": properties}


@router.get("/{route_id}/status", response_model=DayStatusModel)
def get_route_status_on(
    route_id: str,
    on: Optional[date] = Query(None, description="Calendar day, defaults to today"),
    engine: RouteProgressEngine = Depends(get_engine),
):
    """Display state of a route on a calendar day, plus the raw recorded outcome."""
    snapshot = engine.snapshot
    route = None
    if snapshot is not None:
        route = next((r for r in snapshot.routes if r.id == route_id), None)
    if route is None:
        raise HTTPException(status_code=404, detail=f"Route {route_id} not found")

    today = date.today()
    on_date = on or today
    try:
        outcomes = engine.source.fetch_outcomes(on_date)
    except DataSourceError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch collection outcomes: {e}")

    label = classify_route_status_on(route, outcomes, on_date, today)
    outcome = find_outcome(route, outcomes, on_date)
    return DayStatusModel(
        route_id=route_id,
        day=on_date,
        state=label.state.value,
        color=label.color,
        outcome_status=outcome.status.value if outcome is not None else None,
    )

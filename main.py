"""Entry point for the route progress & status reconciliation engine."""
import argparse
import sys
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from api.progress_api import router as progress_router
from configurations.config import Config
from core.progress_engine import RouteProgressEngine
from services.route_data_service import RouteDataService, StaticSnapshotSource


def configure_logging(level: str = Config.LOG_LEVEL) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def create_app(source=None, run_loop: bool = True) -> FastAPI:
    """Build the API with its own engine instance; the refresh loop lives as long as the app."""
    engine = RouteProgressEngine(source or RouteDataService())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_loop:
            engine.start()
        yield
        if run_loop:
            engine.stop(timeout=5)

    app = FastAPI(
        title="Route Progress Engine",
        description="Live route progress and collection status for garbage collection routes",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.include_router(progress_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


def run_once(source, today: date) -> int:
    """Run a single tick and print one line per route."""
    engine = RouteProgressEngine(source)
    if not engine.refresh(today):
        logger.error("❌ Tick failed, no results")
        return 1

    print(f"{'ROUTE':<24} {'TRUCK':<14} {'STATE':<12} {'PROGRESS':>8} {'STOPS':>9} {'OFF BY':>10}")
    for route_id, evaluation in sorted(engine.results.items()):
        progress = evaluation.progress
        off_by = "-" if progress.distance_from_route_m is None else f"{progress.distance_from_route_m:.0f}m"
        stops = f"{progress.completed_stops}/{progress.total_stops}"
        print(f"{route_id:<24} {evaluation.truck_id or '-':<14} {evaluation.status.state.value:<12} "
              f"{progress.progress_percent:>7}% {stops:>9} {off_by:>10}")
    return 0


def main():
    """Command line interface for the progress engine."""
    parser = argparse.ArgumentParser(description="Garbage collection route progress engine")
    parser.add_argument("--snapshot", help="Path to a JSON snapshot (table name -> rows) to evaluate once")
    parser.add_argument("--today", help="Evaluate as of this date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--api", action="store_true", help="Start FastAPI server")
    parser.add_argument("--port", type=int, default=Config.API_PORT, help=f"Port for FastAPI server (default: {Config.API_PORT})")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL, help="Log level")

    args = parser.parse_args()
    configure_logging(args.log_level)

    today = date.fromisoformat(args.today) if args.today else date.today()

    if args.api:
        import uvicorn
        source = StaticSnapshotSource.from_json(args.snapshot) if args.snapshot else None
        app = create_app(source)
        logger.info(f"🚀 Starting FastAPI server on port {args.port}...")
        try:
            uvicorn.run(app, host=Config.API_HOST, port=args.port)
        except OSError as e:
            logger.error(f"❌ Server startup failed: {e}")
            sys.exit(1)
        return

    try:
        source = StaticSnapshotSource.from_json(args.snapshot) if args.snapshot else RouteDataService()
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"❌ Could not load snapshot {args.snapshot}: {e}")
        sys.exit(1)
    sys.exit(run_once(source, today))


if __name__ == "__main__":
    main()

"""Read-only forecast API for UI collaborators, plus an immediate-sync trigger."""

from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from wxsync import dates
from wxsync.config.schema import AppConfig
from wxsync.errors import StoreError, StoreErrorKind
from wxsync.models.forecast import ForecastDay
from wxsync.sync.orchestrator import SyncOrchestrator


def _day_json(day: ForecastDay) -> dict:
    data = asdict(day)
    data["day"] = dates.to_date_string(day.date)
    return data


def create_app(
    config: AppConfig,
    db_path: str | Path,
    orchestrator: SyncOrchestrator | None = None,
) -> FastAPI:
    """Build the API app. Periodic sync starts with the app's lifespan."""
    orch = orchestrator or SyncOrchestrator.from_config(config, db_path)
    store = orch.store

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        orch.initialize()
        yield
        orch.shutdown(wait=False)

    app = FastAPI(title="wxsync", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/api/forecast")
    def get_forecast():
        """Forecast rows from today onward, ascending by date."""
        return [_day_json(d) for d in store.query_today_onward()]

    @app.get("/api/forecast/{day}")
    def get_forecast_day(day: str):
        try:
            date = dates.from_date_string(day)
        except ValueError:
            raise HTTPException(400, f"Invalid date: {day}") from None
        try:
            return _day_json(store.query_by_date(date))
        except StoreError as e:
            if e.kind == StoreErrorKind.NOT_FOUND:
                raise HTTPException(404, f"No forecast for {dates.to_date_string(date)}") from None
            raise

    @app.post("/api/sync", status_code=202)
    def trigger_sync():
        orch.request_immediate_sync()
        return {"status": "scheduled"}

    @app.get("/api/location")
    def get_location():
        return asdict(orch.preferences.get_location())

    @app.get("/api/status")
    def get_status():
        last = orch.last_outcome
        return {
            "initialized": orch.initialized,
            "rows_today_onward": store.count_from(dates.today()),
            "total_syncs": orch.total_runs,
            "last_status": last.status.value if last else None,
            "last_error": last.error if last else None,
            "last_finished_at": last.finished_at if last else None,
        }

    return app

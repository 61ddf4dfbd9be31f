from typing import List
from anyio import from_thread

from fastapi import (
    FastAPI,
    HTTPException,
    Body,
    APIRouter,
    WebSocket,
    WebSocketDisconnect,
)
from loguru import logger
from pydantic import BaseModel, Field

import calendar_model
from algorithms import MathTools
from calendar_model import CalendarData
from drag_controller import constraints_from_settings
from db import (
    CalendarRepository,
    SettingsRepository,
    WorkoutPlanRepository,
    WorkoutScheduleRepository,
)
from localization import translator
from log_setup import setup_logger
from theme import ThemeConfig, resolve_palette, theme_from_settings


class PlanPayload(BaseModel):
    name: str
    color: str
    exercises: List[str] = Field(default_factory=list)
    duration: int | None = Field(default=None, gt=0)


class PlanUpdatePayload(BaseModel):
    name: str | None = None
    color: str | None = None
    exercises: List[str] | None = None
    duration: int | None = Field(default=None, gt=0)


class CalendarAPI:
    """Provides REST endpoints for workout plans and their calendar."""

    def __init__(
        self,
        db_path: str = "workout.db",
        yaml_path: str = "settings.yaml",
        *,
        configure_logging: bool = False,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        self.plans = WorkoutPlanRepository(db_path)
        self.schedule = WorkoutScheduleRepository(db_path)
        self.calendars = CalendarRepository(db_path)
        self.watchers: list[WebSocket] = []
        if configure_logging:
            setup_logger(self.settings.get_text("log_level", "INFO"))
        translator.set_language(self.settings.get_text("language", "en"))
        self.app = FastAPI(
            title="Workout Calendar API",
            description="REST API for workout plans and their schedule",
        )
        self._setup_routes()

    async def _broadcast(self, event: dict) -> None:
        for ws in list(self.watchers):
            try:
                await ws.send_json(event)
            except Exception as e:
                logger.debug(f"Dropping update watcher: {e}")
                try:
                    await ws.close()
                except Exception:
                    pass
                if ws in self.watchers:
                    self.watchers.remove(ws)

    def _notify_changed(self) -> None:
        if not self.watchers:
            return
        try:
            from_thread.run(self._broadcast, {"event": "calendar_changed"})
        except RuntimeError as e:
            logger.debug(f"Update broadcast skipped: {e}")

    def _require_plan(self, plan_id: str) -> None:
        if not self.plans.exists(plan_id):
            raise HTTPException(status_code=404, detail="workout plan not found")

    @staticmethod
    def _check_date(date_key: str) -> str:
        try:
            return calendar_model.normalize_date_key(date_key)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _setup_routes(self) -> None:
        plans_router = APIRouter(prefix="/plans", tags=["Plans"])
        schedule_router = APIRouter(prefix="/schedule", tags=["Schedule"])

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.plans.fetch_all_plans()
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.websocket("/ws/updates")
        async def updates_socket(ws: WebSocket):
            await ws.accept()
            self.watchers.append(ws)
            await ws.send_json({"event": "subscribed"})
            try:
                while True:
                    await ws.receive_text()
            except WebSocketDisconnect:
                pass
            finally:
                if ws in self.watchers:
                    self.watchers.remove(ws)

        @self.app.get("/calendar")
        def get_calendar():
            return self.calendars.load().to_dict()

        @self.app.put("/calendar")
        def put_calendar(data: dict = Body(...)):
            try:
                calendar = CalendarData.from_dict(data)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            self.calendars.save(calendar)
            self._notify_changed()
            return {"status": "saved"}

        @plans_router.get("")
        def list_plans():
            return [p.model_dump() for p in self.plans.fetch_all_plans()]

        @plans_router.post("")
        def create_plan(payload: PlanPayload):
            try:
                plan_id = self.plans.create(
                    payload.name, payload.color, payload.exercises, payload.duration
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            self._notify_changed()
            return {"id": plan_id}

        @plans_router.get("/{plan_id}")
        def get_plan(plan_id: str):
            try:
                return self.plans.fetch_detail(plan_id).model_dump()
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @plans_router.put("/{plan_id}")
        def update_plan(plan_id: str, payload: PlanUpdatePayload):
            try:
                self.plans.update(
                    plan_id,
                    payload.name,
                    payload.color,
                    payload.exercises,
                    payload.duration,
                )
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            self._notify_changed()
            return {"status": "updated"}

        @plans_router.delete("/{plan_id}")
        def delete_plan(plan_id: str):
            try:
                self.plans.delete(plan_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            self._notify_changed()
            return {"status": "deleted"}

        @schedule_router.get("")
        def get_schedule(start_date: str = None, end_date: str = None):
            return self.schedule.fetch_grouped(start_date, end_date)

        @schedule_router.get("/{date_key}")
        def get_day(date_key: str):
            date_key = self._check_date(date_key)
            calendar = self.calendars.load()
            return [p.model_dump() for p in calendar_model.plans_for_date(calendar, date_key)]

        @schedule_router.post("/{date_key}")
        def schedule_plan(date_key: str, plan_id: str):
            date_key = self._check_date(date_key)
            self._require_plan(plan_id)
            if plan_id in self.schedule.fetch_for_date(date_key):
                return {"status": "unchanged"}
            self.schedule.add(date_key, plan_id)
            self._notify_changed()
            return {"status": "added"}

        @schedule_router.delete("/{date_key}/{plan_id}")
        def unschedule_plan(date_key: str, plan_id: str):
            date_key = self._check_date(date_key)
            if plan_id not in self.schedule.fetch_for_date(date_key):
                return {"status": "unchanged"}
            self.schedule.remove(date_key, plan_id)
            self._notify_changed()
            return {"status": "removed"}

        @self.app.post("/drop")
        def drop_plan(plan_id: str, target: str):
            date_key = calendar_model.parse_drop_target(target)
            if date_key is None:
                return {"status": "discarded"}
            if not self.plans.exists(plan_id):
                logger.debug(f"Ignoring drop of unknown plan {plan_id} on {date_key}")
                return {"status": "unchanged"}
            return schedule_plan(date_key, plan_id)

        @self.app.get("/tools/one_rep_max")
        def one_rep_max(weight: float, reps: int, table: bool = False):
            if weight <= 0 or reps <= 0:
                raise HTTPException(
                    status_code=400, detail="weight and reps must be positive"
                )
            estimate = MathTools.estimated_1rm(weight, reps)
            result = {"weight": weight, "reps": reps, "one_rep_max": estimate}
            if table:
                result["table"] = [
                    {"reps": r, "weight": w}
                    for r, w in MathTools.rep_max_table(estimate)
                ]
            return result

        @self.app.get("/theme/palette")
        def palette(theme: str = None, softness: float = None):
            config = theme_from_settings(self.settings.all_settings())
            updates = {}
            if theme is not None:
                updates["theme"] = theme
            if softness is not None:
                updates["softness"] = softness
            try:
                config = ThemeConfig(**{**config.model_dump(), **updates})
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"theme": config.theme, "softness": config.softness, "palette": resolve_palette(config)}

        @self.app.get("/settings")
        def get_settings():
            return self.settings.all_settings()

        @self.app.post("/settings")
        def update_settings(values: dict = Body(...)):
            try:
                self.settings.update(values)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if "language" in values:
                translator.set_language(values["language"])
            return {"status": "updated"}

        @self.app.get("/drag/constraints")
        def drag_constraints():
            constraints = constraints_from_settings(self.settings.all_settings())
            return {
                device: {
                    "distance": c.distance,
                    "delay_ms": c.delay_ms,
                    "tolerance": c.tolerance,
                }
                for device, c in constraints.items()
            }

        self.app.include_router(plans_router)
        self.app.include_router(schedule_router)


def create_app(db_path: str = "workout.db", yaml_path: str = "settings.yaml") -> FastAPI:
    return CalendarAPI(db_path, yaml_path, configure_logging=True).app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app())

"""FastAPI application: local HTTP surface for the UI.

Every record route requires the session guard to be in the
``authenticated`` state.  Application errors are mapped to responses
here and only here:

- ``ValidationFailure`` → 422
- ``AuthFailure`` → 401 (423 while locked out)
- ``NotFound`` → 404
- ``StorageFailure`` → 500

Run with ``uvicorn foodabuser.web.main:app``.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from foodabuser.bootstrap import AppContainer, build_container
from foodabuser.core.config import get_settings
from foodabuser.core.errors import (
    AuthFailure,
    FoodAbuserError,
    NotFound,
    StorageFailure,
    ValidationFailure,
)
from foodabuser.core.time import Period
from foodabuser.core.version import get_version
from foodabuser.db.schemas import (
    MealRecord,
    SettingsRecord,
    WaterRecord,
    WeightRecord,
)
from foodabuser.i18n import normalize_lang
from foodabuser.reports.charts import calorie_series, weight_series
from foodabuser.reports.recommendations import recommend_meals, recommend_weight
from foodabuser.reports.stats import (
    compute_meal_stats,
    compute_period_stats,
    compute_water_stats,
    compute_weight_stats,
)
from foodabuser.services.food_estimate import (
    estimate_food,
    food_categories,
    format_estimate,
    popular_foods,
)
from foodabuser.services.guard import GuardStatus
from foodabuser.services.transfer import export_all, import_all, write_backup

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class PinSetup(BaseModel):
    pin: str
    confirm: str


class PinEntry(BaseModel):
    pin: str


class BiometricToggle(BaseModel):
    enabled: bool


class ImportRequest(BaseModel):
    document: dict[str, Any]
    overwrite: bool = False


class EstimateRequest(BaseModel):
    description: str = ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _run_migrations() -> None:
    """Run ``alembic upgrade head`` via subprocess.

    Uses subprocess because ``alembic/env.py`` calls ``asyncio.run()``
    internally; invoking it from the running event loop would fail.
    """
    logger.info("Running database migrations", extra={"event": "migrations_start"})
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.error(
            "Migration failed: %s",
            result.stderr,
            extra={"event": "migrations_failed"},
        )
        raise RuntimeError(f"Alembic migration failed:\n{result.stderr}")
    logger.info("Database migrations complete", extra={"event": "migrations_done"})


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_lang(request: Request) -> str:
    default = request.app.state.container.settings.DEFAULT_LANGUAGE
    return normalize_lang(request.query_params.get("lang") or default)


def require_auth(container: AppContainer = Depends(get_container)) -> AppContainer:
    """Dependency: the guard must be authenticated."""
    if not container.guard.is_authenticated:
        raise AuthFailure("err_not_authenticated")
    return container


def _status_body(status: GuardStatus) -> dict[str, Any]:
    return {
        "state": status.state.value,
        "pin_set": status.pin_set,
        "biometric_available": status.biometric_available,
        "biometric_enabled": status.biometric_enabled,
        "biometric_offered": status.biometric_offered,
        "failed_attempts": status.failed_attempts,
        "lockout_remaining_seconds": status.lockout_remaining_seconds,
        "reset_available": status.reset_available,
        "degraded": status.degraded,
    }


_STATUS_CODES: tuple[tuple[type[FoodAbuserError], int], ...] = (
    (ValidationFailure, 422),
    (NotFound, 404),
    (StorageFailure, 500),
    (AuthFailure, 401),
)


async def _handle_app_error(request: Request, exc: FoodAbuserError) -> JSONResponse:
    status_code = 400
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    body: dict[str, Any] = {"error": exc.key, "message": exc.message(get_lang(request))}
    if isinstance(exc, AuthFailure):
        if exc.locked:
            status_code = 423
        body["remaining_attempts"] = exc.remaining_attempts
        body["lockout_remaining_seconds"] = exc.lockout_remaining_seconds
    if status_code >= 500:
        logger.error("Request failed: %s", exc.key, extra={"event": "request_failed"})
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(container: AppContainer | None = None) -> FastAPI:
    """Build the API around *container* (built on startup when omitted)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = container is None
        if owned:
            settings = get_settings()
            if settings.RUN_MIGRATIONS:
                _run_migrations()
            app.state.container = await build_container(settings)
        else:
            app.state.container = container
        yield
        if owned:
            await app.state.container.aclose()
            logger.info("Store closed", extra={"event": "shutdown"})

    app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None)
    if container is not None:
        app.state.container = container
    app.add_exception_handler(FoodAbuserError, _handle_app_error)

    # --- health / auth ---------------------------------------------------------
    @app.get("/health")
    async def health(c: AppContainer = Depends(get_container)) -> dict[str, Any]:
        return {"status": "ok", "version": get_version(), "store_available": c.store.available}

    @app.get("/auth/status")
    async def auth_status(c: AppContainer = Depends(get_container)) -> dict[str, Any]:
        return _status_body(await c.guard.status())

    @app.post("/auth/pin")
    async def auth_set_pin(body: PinSetup, c: AppContainer = Depends(get_container)) -> dict:
        state = await c.guard.set_pin(body.pin, body.confirm)
        return {"state": state.value}

    @app.post("/auth/verify")
    async def auth_verify(body: PinEntry, c: AppContainer = Depends(get_container)) -> dict:
        state = await c.guard.verify_pin(body.pin)
        return {"state": state.value}

    @app.post("/auth/biometric")
    async def auth_biometric(c: AppContainer = Depends(get_container)) -> dict:
        state = await c.guard.authenticate_with_biometric()
        return {"state": state.value}

    @app.put("/auth/biometric")
    async def auth_biometric_toggle(
        body: BiometricToggle, c: AppContainer = Depends(require_auth)
    ) -> dict:
        await c.guard.set_biometric_enabled(body.enabled)
        return {"biometric_enabled": body.enabled}

    @app.post("/auth/logout")
    async def auth_logout(c: AppContainer = Depends(get_container)) -> dict:
        state = await c.guard.logout()
        return {"state": state.value}

    @app.post("/auth/reset")
    async def auth_reset(c: AppContainer = Depends(get_container)) -> dict:
        state = await c.guard.reset()
        return {"state": state.value}

    # --- meals -----------------------------------------------------------------
    @app.get("/meals")
    async def list_meals(
        period: str = "week", user_id: str | None = None, c: AppContainer = Depends(require_auth)
    ) -> list[MealRecord]:
        return await c.store.load_meals(period, user_id)

    @app.post("/meals", status_code=201)
    async def create_meal(
        payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> MealRecord:
        return await c.store.add_meal(payload)

    @app.put("/meals/{record_id}")
    async def replace_meal(
        record_id: str, payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> MealRecord:
        return await c.store.update_meal({**payload, "id": record_id})

    @app.delete("/meals/{record_id}")
    async def remove_meal(record_id: str, c: AppContainer = Depends(require_auth)) -> dict:
        return {"deleted": await c.store.delete_meal(record_id)}

    # --- water -----------------------------------------------------------------
    @app.get("/water")
    async def list_water(
        period: str = "week", user_id: str | None = None, c: AppContainer = Depends(require_auth)
    ) -> list[WaterRecord]:
        return await c.store.load_water(period, user_id)

    @app.post("/water", status_code=201)
    async def create_water(
        payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> WaterRecord:
        return await c.store.add_water(payload)

    @app.put("/water/{record_id}")
    async def replace_water(
        record_id: str, payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> WaterRecord:
        return await c.store.update_water({**payload, "id": record_id})

    @app.delete("/water/{record_id}")
    async def remove_water(record_id: str, c: AppContainer = Depends(require_auth)) -> dict:
        return {"deleted": await c.store.delete_water(record_id)}

    # --- weight ----------------------------------------------------------------
    @app.get("/weight")
    async def list_weight(
        period: str = "month", user_id: str | None = None, c: AppContainer = Depends(require_auth)
    ) -> list[WeightRecord]:
        return await c.store.load_weight(period, user_id)

    @app.post("/weight", status_code=201)
    async def create_weight(
        payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> WeightRecord:
        return await c.store.add_weight(payload)

    @app.put("/weight/{record_id}")
    async def replace_weight(
        record_id: str, payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> WeightRecord:
        return await c.store.update_weight({**payload, "id": record_id})

    @app.delete("/weight/{record_id}")
    async def remove_weight(record_id: str, c: AppContainer = Depends(require_auth)) -> dict:
        return {"deleted": await c.store.delete_weight(record_id)}

    # --- settings --------------------------------------------------------------
    @app.get("/settings")
    async def read_settings(
        user_id: str | None = None, c: AppContainer = Depends(require_auth)
    ) -> SettingsRecord | None:
        return await c.store.get_settings(user_id)

    @app.post("/settings", status_code=201)
    async def create_settings(
        payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> SettingsRecord:
        return await c.store.add_settings(payload)

    @app.put("/settings/{record_id}")
    async def replace_settings(
        record_id: str, payload: dict[str, Any] = Body(...), c: AppContainer = Depends(require_auth)
    ) -> SettingsRecord:
        return await c.store.update_settings({**payload, "id": record_id})

    @app.delete("/settings/{record_id}")
    async def remove_settings(record_id: str, c: AppContainer = Depends(require_auth)) -> dict:
        return {"deleted": await c.store.delete_settings(record_id)}

    # --- statistics ------------------------------------------------------------
    @app.get("/stats/meals")
    async def meal_stats(
        request: Request, period: str = "week", c: AppContainer = Depends(require_auth)
    ) -> dict[str, Any]:
        """Totals over *period*; the day/week/month buckets only see meals inside *period*."""
        meals = await c.store.load_meals(period)
        stats = compute_meal_stats(meals)
        period_stats = compute_period_stats(meals, c.store.now(), c.settings.tz)
        lang = get_lang(request)
        return {
            "stats": stats,
            "period_stats": period_stats,
            "recommendations": [r.as_dict(lang) for r in recommend_meals(stats, period_stats)],
        }

    @app.get("/stats/weight")
    async def weight_stats(
        request: Request, period: str = "month", c: AppContainer = Depends(require_auth)
    ) -> dict[str, Any]:
        records = await c.store.load_weight(period)
        settings = await c.store.get_settings()
        stats = compute_weight_stats(
            records,
            settings.initial_weight_kg if settings else None,
            settings.target_weight_kg if settings else None,
        )
        lang = get_lang(request)
        return {
            "stats": stats,
            "recommendations": [r.as_dict(lang) for r in recommend_weight(stats)],
        }

    @app.get("/stats/water")
    async def water_stats(period: str = "week", c: AppContainer = Depends(require_auth)) -> dict:
        records = await c.store.load_water(period)
        settings = await c.store.get_settings()
        goal = settings.daily_water_goal_ml if settings else 2000
        return dict(compute_water_stats(records, goal, c.store.local_now().date()))

    @app.get("/charts/calories")
    async def calories_chart(
        request: Request, period: str = "week", c: AppContainer = Depends(require_auth)
    ) -> dict[str, Any]:
        meals = await c.store.load_meals(period)
        return calorie_series(
            meals, Period.parse(period, Period.WEEK), c.settings.tz, get_lang(request)
        )

    @app.get("/charts/weight")
    async def weight_chart(
        request: Request, period: str = "month", c: AppContainer = Depends(require_auth)
    ) -> dict[str, Any]:
        records = await c.store.load_weight(period)
        return weight_series(
            records, Period.parse(period, Period.MONTH), c.settings.tz, get_lang(request)
        )

    # --- export / import -------------------------------------------------------
    @app.get("/export")
    async def export_document(c: AppContainer = Depends(require_auth)) -> dict[str, Any]:
        return await export_all(c.store)

    @app.post("/import")
    async def import_document(body: ImportRequest, c: AppContainer = Depends(require_auth)) -> dict:
        return {"imported": await import_all(c.store, body.document, body.overwrite)}

    @app.post("/backup")
    async def backup(c: AppContainer = Depends(require_auth)) -> dict[str, str]:
        path = await write_backup(c.store)
        return {"path": str(path)}

    # --- food estimator --------------------------------------------------------
    @app.post("/estimate")
    async def estimate(request: Request, body: EstimateRequest) -> dict[str, Any]:
        lang = get_lang(request)
        result = estimate_food(body.description, lang)
        return {"estimate": result.model_dump(mode="json"), "text": format_estimate(result, lang)}

    @app.get("/foods/categories")
    async def categories() -> list[str]:
        return food_categories()

    @app.get("/foods/popular/{category}")
    async def popular(request: Request, category: str) -> list[dict]:
        if category not in food_categories():
            raise ValidationFailure("err_invalid_input", detail=f"category: {category}")
        return popular_foods(category, get_lang(request))

    return app


app = create_app()

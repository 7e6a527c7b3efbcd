"""FastAPI application factory."""

import logging
from datetime import date
from uuid import UUID

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import AwareDatetime

from nutrition_log.api.models import (
    CatalogPayload,
    CopyDayPayload,
    GoalsPayload,
    LogCreatePayload,
    LogUpdatePayload,
)
from nutrition_log.api.transfer import router as transfer_router
from nutrition_log.app_logging import configure_logging
from nutrition_log.containers import AppContainer
from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.goals import NutritionGoals
from nutrition_log.domain.logs import ResolvedLogEntry
from nutrition_log.domain.nutrition import MealType, NutritionValues
from nutrition_log.errors import (
    CatalogEntryNotFound,
    DataError,
    DuplicateKeyError,
    FileAccessError,
    InvalidServingsError,
    LogEntryNotFound,
    MasterDeletedError,
)
from nutrition_log.services.logs import PAST_ITEMS_LIMIT


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container
    app.include_router(transfer_router)

    @app.exception_handler(DataError)
    async def data_error(_: Request, exc: DataError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": str(exc),
                "row": exc.row,
                "column": exc.column,
                "reason": exc.reason.value,
            },
        )

    @app.exception_handler(InvalidServingsError)
    async def invalid_servings(_: Request, exc: InvalidServingsError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key(_: Request, exc: DuplicateKeyError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "existing_id": str(exc.existing_id)},
        )

    @app.exception_handler(MasterDeletedError)
    async def master_deleted(_: Request, exc: MasterDeletedError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(CatalogEntryNotFound)
    @app.exception_handler(LogEntryNotFound)
    async def not_found(_: Request, exc: LookupError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(FileAccessError)
    async def file_error(_: Request, exc: FileAccessError) -> JSONResponse:
        logger.error("File access failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/catalog", status_code=status.HTTP_201_CREATED)
    async def create_catalog_entry(
        payload: CatalogPayload, request: Request
    ) -> dict[str, object]:
        """Create a catalog entry."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            entry = state_container.catalog_service.create(payload.to_fields())
        return _catalog_payload(entry)

    @app.get("/catalog")
    async def search_catalog(
        request: Request,
        q: str | None = None,
        offset: int = Query(default=0, ge=0),
        limit: int = Query(default=20, ge=1),
    ) -> dict[str, object]:
        """Search the catalog, most used first."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            entries = state_container.catalog_service.search(q, offset=offset, limit=limit)
        return {"items": [_catalog_payload(entry) for entry in entries]}

    @app.put("/catalog/{entry_id}")
    async def update_catalog_entry(
        entry_id: UUID, payload: CatalogPayload, request: Request
    ) -> dict[str, object]:
        """Edit a catalog entry."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            entry = state_container.catalog_service.update(entry_id, payload.to_fields())
        return _catalog_payload(entry)

    @app.delete("/catalog/{entry_id}")
    async def delete_catalog_entry(
        entry_id: UUID, request: Request
    ) -> dict[str, object]:
        """Delete a catalog entry, detaching the log entries that use it."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            detached = state_container.backup_manager.safe_delete(entry_id)
        return {"deleted": str(entry_id), "detached_logs": detached}

    @app.post("/logs", status_code=status.HTTP_201_CREATED)
    async def create_log_entry(
        payload: LogCreatePayload, request: Request
    ) -> dict[str, object]:
        """Log a food, either from the catalog or from explicit values."""
        state_container: AppContainer = request.app.state.container
        log_service = state_container.log_service
        if payload.catalog_id is None and payload.snapshot is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Provide catalog_id or snapshot",
            )
        async with state_container.transfers.exclusive():
            entry = log_service.create(
                payload.timestamp,
                payload.meal_type,
                payload.servings,
                catalog_id=payload.catalog_id,
                snapshot=payload.snapshot.to_snapshot() if payload.snapshot else None,
            )
            return _log_payload(log_service.resolve(entry))

    @app.get("/logs")
    async def list_log_entries(
        request: Request,
        start: AwareDatetime | None = None,
        end: AwareDatetime | None = None,
        meal_type: MealType | None = None,
    ) -> dict[str, object]:
        """Return log entries in a time range, oldest first."""
        state_container: AppContainer = request.app.state.container
        log_service = state_container.log_service
        async with state_container.transfers.exclusive():
            entries = log_service.query(start, end, meal_type)
            return {
                "items": [
                    _log_payload(resolved) for resolved in log_service.iter_resolved(entries)
                ]
            }

    @app.patch("/logs/{entry_id}")
    async def update_log_entry(
        entry_id: UUID, payload: LogUpdatePayload, request: Request
    ) -> dict[str, object]:
        """Change servings or the linked catalog entry."""
        state_container: AppContainer = request.app.state.container
        log_service = state_container.log_service
        async with state_container.transfers.exclusive():
            entry = log_service.require(entry_id)
            if payload.servings is not None:
                entry = log_service.update_servings(entry_id, payload.servings)
            if payload.catalog_id is not None:
                entry = log_service.relink(entry_id, payload.catalog_id)
            return _log_payload(log_service.resolve(entry))

    @app.delete("/logs/{entry_id}")
    async def delete_log_entry(entry_id: UUID, request: Request) -> dict[str, str]:
        """Delete a log entry."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            state_container.log_service.delete(entry_id)
        return {"deleted": str(entry_id)}

    @app.post("/logs/copy-day")
    async def copy_day(payload: CopyDayPayload, request: Request) -> dict[str, object]:
        """Repeat a day's entries on another day."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            copies = state_container.log_service.copy_day(
                payload.source_day,
                payload.target_day,
                state_container.settings.timezone,
            )
        return {"copied": len(copies)}

    @app.get("/logs/summary")
    async def daily_summary(day: date, request: Request) -> dict[str, object]:
        """Return a day's totals, per meal and against the goals."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            summary = state_container.log_service.daily_summary(
                day, state_container.settings.timezone
            )
        progress = state_container.goals_service.progress(summary)
        return {
            "day": summary.day.isoformat(),
            "entries": summary.entry_count,
            "totals": _values_payload(summary.totals),
            "meals": {
                meal_type.value: _values_payload(summary.meal_totals(meal_type))
                for meal_type in MealType
            },
            "goal_progress": {
                "calories": progress.calories,
                "protein": progress.protein,
                "fat": progress.fat,
                "net_carbs": progress.net_carbs,
                "fiber": progress.fiber,
            },
        }

    @app.get("/logs/history")
    async def search_history(
        q: str, request: Request, limit: int = Query(default=PAST_ITEMS_LIMIT, ge=1)
    ) -> dict[str, object]:
        """Return past entries matching a brand or product name."""
        state_container: AppContainer = request.app.state.container
        async with state_container.transfers.exclusive():
            results = state_container.log_service.search_history(q, limit=limit)
        return {"items": [_log_payload(resolved) for resolved in results]}

    @app.get("/goals")
    async def get_goals(request: Request) -> dict[str, float]:
        """Return the nutrition goals."""
        state_container: AppContainer = request.app.state.container
        return _goals_payload(state_container.goals_service.get())

    @app.put("/goals")
    async def update_goals(payload: GoalsPayload, request: Request) -> dict[str, float]:
        """Change some nutrition goals."""
        state_container: AppContainer = request.app.state.container
        goals = state_container.goals_service.update(
            **payload.model_dump(exclude_none=True)
        )
        return _goals_payload(goals)

    @app.delete("/goals")
    async def reset_goals(request: Request) -> dict[str, float]:
        """Restore the default goals."""
        state_container: AppContainer = request.app.state.container
        return _goals_payload(state_container.goals_service.reset())

    return app


def _catalog_payload(entry: CatalogEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "brand_name": entry.brand_name,
        "product_name": entry.product_name,
        "calories": entry.calories,
        "net_carbs": entry.net_carbs,
        "dietary_fiber": entry.dietary_fiber,
        "carbohydrates": entry.carbohydrates,
        "fat": entry.fat,
        "protein": entry.protein,
        "portion_size": entry.portion_size,
        "portion_unit": entry.portion_unit,
        "usage_count": entry.usage_count,
        "last_used_at": entry.last_used_at.isoformat() if entry.last_used_at else None,
    }


def _log_payload(resolved: ResolvedLogEntry) -> dict[str, object]:
    entry = resolved.entry
    return {
        "id": str(entry.id),
        "timestamp": entry.timestamp.isoformat(),
        "meal_type": entry.meal_type.value,
        "number_of_servings": entry.number_of_servings,
        "catalog_id": str(entry.catalog_id) if entry.catalog_id else None,
        "is_master_deleted": entry.is_master_deleted,
        "brand_name": resolved.profile.brand_name,
        "product_name": resolved.profile.product_name,
        "portion_unit": resolved.profile.portion_unit,
        **_values_payload(resolved.values),
    }


def _values_payload(values: NutritionValues) -> dict[str, float]:
    return {
        "calories": values.calories,
        "protein": values.protein,
        "fat": values.fat,
        "carbs": values.carbs,
        "net_carbs": values.net_carbs,
        "dietary_fiber": values.dietary_fiber,
    }


def _goals_payload(goals: NutritionGoals) -> dict[str, float]:
    return {
        "target_protein": goals.target_protein,
        "target_fat": goals.target_fat,
        "target_net_carbs": goals.target_net_carbs,
        "target_fiber": goals.target_fiber,
        "target_calories": goals.target_calories,
    }

"""CSV transfer endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_log.api.models import TransferPayload
from nutrition_log.config import resolve_data_file

if TYPE_CHECKING:
    from pathlib import Path

    from nutrition_log.containers import AppContainer

router = APIRouter(prefix="/transfer", tags=["transfer"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _data_file(container: AppContainer, file_name: str) -> Path:
    try:
        return resolve_data_file(container.settings.data_dir, file_name)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.get("/status", dependencies=[Depends(require_admin)])
async def transfer_status(request: Request) -> dict[str, bool]:
    """Report whether a transfer is running."""
    container: AppContainer = request.app.state.container
    return {"busy": container.transfers.busy}


@router.post("/export", dependencies=[Depends(require_admin)])
async def export_csv(payload: TransferPayload, request: Request) -> dict[str, object]:
    """Write the whole log to a CSV file in the data directory."""
    container: AppContainer = request.app.state.container
    destination = _data_file(container, payload.file_name)
    written = await container.transfers.export_csv(destination)
    return {"file_name": destination.name, "rows": written}


@router.post("/import", dependencies=[Depends(require_admin)])
async def import_csv(payload: TransferPayload, request: Request) -> dict[str, object]:
    """Load log entries from a CSV file in the data directory."""
    container: AppContainer = request.app.state.container
    source = _data_file(container, payload.file_name)
    summary = await container.transfers.import_csv(source)
    return {
        "file_name": source.name,
        "imported": summary.imported,
        "total_rows": summary.total_rows,
        "cancelled": summary.cancelled,
    }

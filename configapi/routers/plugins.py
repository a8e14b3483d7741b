"""Plugin configuration REST API endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from configapi.dependencies import get_plugin_manager
from configapi.errors import (
    BadRequestError,
    ConfigAPIError,
    NotFoundError,
    SchemaDerivationError,
    UpdateTimeoutError,
)
from configapi.plugins.models import PluginConfigCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plugins", tags=["plugins"])


def _http_error(error: Exception) -> HTTPException:
    """Map a manager error to an HTTP error response."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, BadRequestError):
        detail = {"message": str(error)}
        if error.field_path:
            detail["field"] = error.field_path
        return HTTPException(status_code=400, detail=detail)
    if isinstance(error, UpdateTimeoutError):
        return HTTPException(status_code=504, detail=str(error))
    logger.error(f"Unexpected plugin API error: {error}")
    return HTTPException(status_code=500, detail=str(error))


@router.get("/list")
async def list_plugin_types():
    """List all plugin types with their configuration schemas."""
    manager = get_plugin_manager()
    try:
        types = manager.list_plugin_types()
    except SchemaDerivationError as e:
        raise _http_error(e) from e
    return [t.to_dict() for t in types]


@router.get("/running")
async def list_running_plugins():
    """List running plugins with a snapshot of their configuration."""
    manager = get_plugin_manager()
    return [p.model_dump() for p in manager.list_running_plugins()]


@router.post("/create")
async def create_plugin(body: PluginConfigCreate):
    """Create and start a plugin. Returns its ID."""
    manager = get_plugin_manager()
    try:
        plugin_id = await manager.create_plugin(body)
    except ConfigAPIError as e:
        raise _http_error(e) from e
    return {"id": plugin_id}


@router.get("/{plugin_id}/status")
async def get_plugin_status(plugin_id: str):
    """Get a plugin's lifecycle state; unknown IDs report 'dead'."""
    manager = get_plugin_manager()
    return {"id": plugin_id, "status": manager.get_plugin_status(plugin_id).value}


@router.put("/{plugin_id}")
async def update_plugin(plugin_id: str, body: PluginConfigCreate):
    """Replace a running plugin with a new configuration, keeping its ID."""
    manager = get_plugin_manager()
    try:
        await manager.update_plugin(plugin_id, body)
    except ConfigAPIError as e:
        raise _http_error(e) from e
    return {"id": plugin_id}


@router.delete("/{plugin_id}")
async def delete_plugin(plugin_id: str):
    """Request a running plugin to stop. Poll /status to confirm."""
    manager = get_plugin_manager()
    try:
        manager.delete_plugin(plugin_id)
    except ConfigAPIError as e:
        raise _http_error(e) from e
    return {"message": f"Plugin '{plugin_id}' stopping"}

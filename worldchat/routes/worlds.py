"""World CRUD routes proxied to the AI backend."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..backend_client import BackendClient, BackendError, get_backend_client
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.auth import EMAIL_PATTERN
from ..models.world import WorldWriteRequest
from ..utils.responses import backend_error_response

logger = get_logger(__name__)

router = APIRouter(prefix="/worlds", tags=["worlds"])


async def _forward(backend: BackendClient, settings: Settings, payload: Dict[str, Any], tag: str) -> JSONResponse:
    try:
        data = await backend.call(
            settings.backend_worlds_url,
            payload,
            setting_name="AI_BACKEND_WORLDS_URL",
            tag=tag,
        )
    except BackendError as exc:
        return backend_error_response(exc)

    logger.info(f"[{tag}] {'ok' if data.get('ok', True) else 'rejected'}")
    return JSONResponse(data)


@router.get("")
async def list_worlds(
    email: str = Query(pattern=EMAIL_PATTERN),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    return await _forward(backend, settings, {"action": "list worlds", "email": email}, "WORLDS")


@router.post("")
async def create_world(
    request: WorldWriteRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    payload = {"action": "create world", "email": request.email, "world": request.world.to_wire()}
    return await _forward(backend, settings, payload, "WORLD-CREATE")


@router.put("/{world_id}")
async def update_world(
    world_id: str,
    request: WorldWriteRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    payload = {
        "action": "update world",
        "email": request.email,
        "worldId": world_id,
        "world": request.world.to_wire(),
    }
    return await _forward(backend, settings, payload, "WORLD-UPDATE")


@router.delete("/{world_id}")
async def delete_world(
    world_id: str,
    email: str = Query(pattern=EMAIL_PATTERN),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    payload = {"action": "delete world", "email": email, "worldId": world_id}
    return await _forward(backend, settings, payload, "WORLD-DELETE")


__all__ = ["router"]

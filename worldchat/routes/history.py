"""Chat history routes for the default context and for worlds."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..backend_client import BackendClient, BackendError, get_backend_client
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.auth import EMAIL_PATTERN
from ..utils.responses import backend_error_response

logger = get_logger(__name__)

router = APIRouter(tags=["history"])


async def _forward_history(
    backend: BackendClient,
    settings: Settings,
    payload: Dict[str, Any],
    tag: str,
) -> JSONResponse:
    try:
        data = await backend.call(
            settings.backend_history_url,
            payload,
            setting_name="AI_BACKEND_HISTORY_URL",
            tag=tag,
        )
    except BackendError as exc:
        return backend_error_response(exc)
    return JSONResponse(data)


@router.get("/chat/history")
async def get_default_history(
    email: str = Query(pattern=EMAIL_PATTERN),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    """Flat history of the default context."""
    payload = {"action": "get history", "email": email, "worldId": None}
    return await _forward_history(backend, settings, payload, "HISTORY")


@router.delete("/chat/history/{remote_id}")
async def delete_default_turn(
    remote_id: str,
    email: str = Query(pattern=EMAIL_PATTERN),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    payload = {"action": "delete message", "email": email, "worldId": None, "id": remote_id}
    return await _forward_history(backend, settings, payload, "HISTORY-DELETE")


@router.get("/worlds/{world_id}/history")
async def get_world_history(
    world_id: str,
    email: str = Query(pattern=EMAIL_PATTERN),
    continuation_token: Optional[str] = Query(default=None, alias="continuationToken"),
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1, le=100),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    """One page of a world's history, newest page first."""
    payload = {
        "action": "get history",
        "email": email,
        "worldId": world_id,
        "pageSize": page_size or settings.history_page_size,
    }
    if continuation_token:
        payload["continuationToken"] = continuation_token
    return await _forward_history(backend, settings, payload, "WORLD-HISTORY")


@router.delete("/worlds/{world_id}/history/{remote_id}")
async def delete_world_turn(
    world_id: str,
    remote_id: str,
    email: str = Query(pattern=EMAIL_PATTERN),
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    payload = {"action": "delete message", "email": email, "worldId": world_id, "id": remote_id}
    return await _forward_history(backend, settings, payload, "WORLD-HISTORY-DELETE")


__all__ = ["router"]

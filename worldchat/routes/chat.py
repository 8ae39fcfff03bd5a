"""Chat route: forwards a turn plus its history window to the AI backend."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..backend_client import BackendClient, BackendError, get_backend_client
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.chat import ChatRequest
from ..utils.responses import error_response

logger = get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def send_chat(
    request: ChatRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    """Send a message to the AI backend and return its reply unchanged."""

    body = {
        "email": request.sender,
        "text": request.message,
        "history": [entry.model_dump() for entry in request.history],
    }
    if request.settings is not None:
        body["settings"] = request.settings.to_wire()
    if request.world_id:
        body["worldId"] = request.world_id

    logger.info(
        f"[CHAT] Forwarding turn (history={len(request.history)}, "
        f"world={request.world_id or 'default'})"
    )

    try:
        data = await backend.call(
            settings.backend_chat_url,
            body,
            setting_name="AI_BACKEND_CHAT_URL",
            tag="CHAT",
        )
    except BackendError as exc:
        logger.error(f"[CHAT] Error calling AI backend: {exc.kind}")
        return error_response("Failed to process message", status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"[CHAT] Response received {'successfully' if data.get('ok', True) else 'with error'}")
    return JSONResponse(data)


__all__ = ["router"]

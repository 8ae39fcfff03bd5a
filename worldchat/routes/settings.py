"""User settings routes proxied to the AI backend."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..backend_client import BackendClient, BackendError, get_backend_client
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.settings import SettingsGetRequest, SettingsSaveRequest
from ..utils.responses import backend_error_response

logger = get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.post("/get")
async def get_user_settings(
    request: SettingsGetRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    try:
        data = await backend.call(
            settings.backend_settings_url,
            {"action": "get settings", "email": request.email},
            setting_name="AI_BACKEND_SETTINGS_URL",
            tag="SETTINGS",
        )
    except BackendError as exc:
        return backend_error_response(exc)
    return JSONResponse(data)


@router.post("/save")
async def save_user_settings(
    request: SettingsSaveRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    try:
        data = await backend.call(
            settings.backend_settings_url,
            {"action": "save settings", "email": request.email, "settings": request.settings.to_wire()},
            setting_name="AI_BACKEND_SETTINGS_URL",
            tag="SETTINGS-SAVE",
        )
    except BackendError as exc:
        return backend_error_response(exc)

    logger.info(f"[SETTINGS-SAVE] Save {'accepted' if data.get('ok') else 'rejected'}")
    return JSONResponse(data)


__all__ = ["router"]

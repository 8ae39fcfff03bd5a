"""Authentication routes proxied to the AI backend."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..backend_client import BackendClient, BackendError, get_backend_client
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.auth import LoginRequest, SignupRequest
from ..utils.responses import backend_error_response

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    request: LoginRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    """Authenticate a user against the AI backend."""

    try:
        data = await backend.call(
            settings.backend_auth_url,
            {"action": "login", "email": request.email, "password": request.password},
            setting_name="AI_BACKEND_AUTH_URL",
            tag="LOGIN",
        )
    except BackendError as exc:
        return backend_error_response(exc)

    # Only success/failure is logged; the payload may carry tokens
    logger.info(f"[LOGIN] Authentication {'successful' if data.get('ok') else 'failed'}")
    return JSONResponse(data)


@router.post("/signup")
async def signup(
    request: SignupRequest,
    settings: Settings = Depends(get_settings),
    backend: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    """Create an account on the AI backend."""

    try:
        data = await backend.call(
            settings.backend_auth_url,
            {
                "action": request.action or "create account",
                "email": request.email,
                "password": request.password,
                "name": request.name,
            },
            setting_name="AI_BACKEND_AUTH_URL",
            tag="SIGNUP",
        )
    except BackendError as exc:
        return backend_error_response(exc)

    logger.info(f"[SIGNUP] Account creation {'successful' if data.get('ok') else 'failed'}")
    return JSONResponse(data)


__all__ = ["router"]

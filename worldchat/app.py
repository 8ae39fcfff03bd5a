from __future__ import annotations

import json

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .logging_config import configure_logging, get_logger
from .routes import api_router

logger = get_logger(__name__)


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error", extra={"path": str(request.url.path)})
        # Inputs are dropped from the detail so passwords never echo back
        detail = [{"loc": err.get("loc"), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]
        return JSONResponse(
            {"ok": False, "error": "Invalid request", "detail": detail},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": str(request.url.path)},
        )
        detail = exc.detail
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return JSONResponse({"ok": False, "error": detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": str(request.url.path)})
        return JSONResponse(
            {"ok": False, "error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


configure_logging()
_settings = get_settings()

app = FastAPI(
    title=_settings.app_name,
    version=_settings.app_version,
    docs_url=_settings.resolved_docs_url,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)


@app.on_event("startup")
# Report which AI backend functions are reachable before taking traffic
async def _report_backend_configuration() -> None:
    settings = get_settings()
    endpoints = {
        "AI_BACKEND_AUTH_URL": settings.backend_auth_url,
        "AI_BACKEND_CHAT_URL": settings.backend_chat_url,
        "AI_BACKEND_HISTORY_URL": settings.backend_history_url,
        "AI_BACKEND_SETTINGS_URL": settings.backend_settings_url,
        "AI_BACKEND_WORLDS_URL": settings.backend_worlds_url,
    }
    missing = [name for name, url in endpoints.items() if not url]
    if missing:
        logger.warning(f"World Chat gateway starting without: {', '.join(missing)}")
    else:
        logger.info("World Chat gateway starting with all AI backend endpoints configured")


__all__ = ["app"]

"""Response utility functions."""

from fastapi import status
from fastapi.responses import JSONResponse

from ..backend_client import BackendError


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        content={"ok": False, "error": message},
        status_code=status_code
    )


def backend_error_response(exc: BackendError) -> JSONResponse:
    """Map a backend failure onto the gateway's error response."""
    if exc.kind == BackendError.STATUS and exc.status_code:
        return error_response(exc.message, exc.status_code)
    if exc.kind == BackendError.NOT_CONFIGURED:
        return error_response(exc.message, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return error_response(exc.message, status.HTTP_502_BAD_GATEWAY)

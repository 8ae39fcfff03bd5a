"""API routes for World Chat."""

from fastapi import APIRouter

from .auth import router as auth_router
from .chat import router as chat_router
from .history import router as history_router
from .settings import router as settings_router
from .worlds import router as worlds_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(chat_router)
api_router.include_router(history_router)
api_router.include_router(settings_router)
api_router.include_router(worlds_router)

__all__ = ["api_router"]

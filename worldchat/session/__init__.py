"""Chat-session core: turn store, context selection, sends and pagination."""

from .context import ContextBusyError, ContextSelector
from .controller import APOLOGY_TEXT, ChatSessionController
from .models import ChatTurn, HistoryPage, PaginationCursor, UserSession
from .normalize import NO_REPLY_TEXT, normalize_history_page
from .pagination import NullViewport, PaginationLoader, Viewport, restore_scroll_top
from .remote import ChatRemote, GatewayClient, RemoteError
from .store import MessageStore
from .user_settings import SettingsError, SettingsSession
from .worlds import WorldDirectory, WorldValidationError, build_world_settings

__all__ = [
    "APOLOGY_TEXT",
    "ChatRemote",
    "ChatSessionController",
    "ChatTurn",
    "ContextBusyError",
    "ContextSelector",
    "GatewayClient",
    "HistoryPage",
    "MessageStore",
    "NO_REPLY_TEXT",
    "NullViewport",
    "PaginationCursor",
    "PaginationLoader",
    "RemoteError",
    "SettingsError",
    "SettingsSession",
    "UserSession",
    "Viewport",
    "WorldDirectory",
    "WorldValidationError",
    "build_world_settings",
    "normalize_history_page",
]

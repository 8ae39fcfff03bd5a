"""Request, response and settings models shared by the gateway and the chat client."""

from .auth import LoginRequest, SignupRequest
from .chat import ChatRequest, HistoryEntry
from .settings import (
    AiSettings,
    CONVERSATION_STYLES,
    RESPONSE_STYLES,
    SUPPORTED_MODELS,
    SettingsGetRequest,
    SettingsSaveRequest,
    UserSettings,
)
from .world import World, WorldSettings, WorldWriteRequest, WORLD_NAME_PATTERN

__all__ = [
    "AiSettings",
    "ChatRequest",
    "CONVERSATION_STYLES",
    "HistoryEntry",
    "LoginRequest",
    "RESPONSE_STYLES",
    "SUPPORTED_MODELS",
    "SettingsGetRequest",
    "SettingsSaveRequest",
    "SignupRequest",
    "UserSettings",
    "World",
    "WorldSettings",
    "WorldWriteRequest",
    "WORLD_NAME_PATTERN",
]

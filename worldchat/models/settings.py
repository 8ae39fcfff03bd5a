"""AI parameter models for user settings and world contexts."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .auth import EMAIL_PATTERN

SUPPORTED_MODELS: Tuple[str, ...] = (
    "gpt-5-nano",
    "gpt-4o-mini",
    "gpt-5-mini",
    "gpt-5",
    "gpt-4o",
    "gpt-4.5",
    "o1-pro",
    "gpt-3.5-turbo",
    "gpt-4",
    "gpt-4-turbo",
)

RESPONSE_STYLES: Tuple[str, ...] = (
    "concise",
    "balanced",
    "detailed",
    "comprehensive",
    "bullet-points",
    "step-by-step",
    "narrative",
    "dramatic",
    "immersive",
    "action-packed",
)

CONVERSATION_STYLES: Tuple[str, ...] = (
    "professional",
    "casual",
    "friendly",
    "technical",
    "enthusiastic",
    "witty",
    "empathetic",
    "academic",
    "socratic",
    "playful",
    "adventurous",
    "sarcastic",
    "flirtatious",
    "mysterious",
    "dramatic",
    "comedic",
    "edgy",
)

MAX_TEXT_FIELD = 5000


class AiSettings(BaseModel):
    """AI parameters that accompany an outgoing chat turn.

    Instances are immutable; edits produce a new copy via ``model_copy``.
    Field names are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=2000, ge=100, le=4000)
    response_style: str = "balanced"
    conversation_style: str = "friendly"
    custom_personality: str = Field(default="", max_length=MAX_TEXT_FIELD)

    @field_validator("model")
    @classmethod
    def _check_model(cls, value: str) -> str:
        if value not in SUPPORTED_MODELS:
            raise ValueError(f"unsupported model '{value}'")
        return value

    @field_validator("response_style")
    @classmethod
    def _check_response_style(cls, value: str) -> str:
        if value not in RESPONSE_STYLES:
            raise ValueError(f"unknown response style '{value}'")
        return value

    @field_validator("conversation_style")
    @classmethod
    def _check_conversation_style(cls, value: str) -> str:
        if value not in CONVERSATION_STYLES:
            raise ValueError(f"unknown conversation style '{value}'")
        return value

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class UserSettings(AiSettings):
    """Per-user default AI settings."""


class SettingsGetRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)


class SettingsSaveRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    settings: UserSettings

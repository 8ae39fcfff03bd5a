"""Chat request models."""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .world import WorldSettings
from .settings import AiSettings

HISTORY_WINDOW_LIMIT = 10


class HistoryEntry(BaseModel):
    """One turn of the trailing history window."""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Chat turn sent by the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None  # older clients sent the email here
    history: List[HistoryEntry] = Field(default_factory=list, max_length=HISTORY_WINDOW_LIMIT)
    settings: Optional[Union[WorldSettings, AiSettings]] = None
    world_id: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value

    @property
    def sender(self) -> str:
        return self.email or self.name or "user@example.com"

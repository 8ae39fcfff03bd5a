"""World (named conversation context) models."""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .auth import EMAIL_PATTERN
from .settings import AiSettings, MAX_TEXT_FIELD

WORLD_NAME_PATTERN = r"^[a-zA-Z0-9_\- ]+$"


class WorldSettings(AiSettings):
    """AI parameters plus the persona fields of a world."""

    name: str = Field(min_length=1, pattern=WORLD_NAME_PATTERN)
    description: str = Field(default="", max_length=MAX_TEXT_FIELD)
    characters: str = Field(default="", max_length=MAX_TEXT_FIELD)
    events: str = Field(default="", max_length=MAX_TEXT_FIELD)
    scenario: str = Field(default="", max_length=MAX_TEXT_FIELD)
    places: str = Field(default="", max_length=MAX_TEXT_FIELD)
    additional_settings: str = Field(default="", max_length=MAX_TEXT_FIELD)


class World(WorldSettings):
    """A world as stored by the AI backend."""

    id: str
    user_id: Optional[str] = None
    created_at: Optional[Union[int, str]] = None

    @property
    def settings(self) -> WorldSettings:
        """Settings portion of this world, detached from its identity."""
        return WorldSettings.model_validate(self.model_dump(include=set(WorldSettings.model_fields)))


class WorldWriteRequest(BaseModel):
    """Body of world create/update requests."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str = Field(pattern=EMAIL_PATTERN)
    world: WorldSettings

"""Client-side world list with name validation and durability checks."""

import re
from typing import Any, List, Optional, Set

from pydantic import ValidationError

from ..logging_config import get_logger
from ..models.world import World, WorldSettings, WORLD_NAME_PATTERN
from .models import UserSession
from .normalize import normalize_world, normalize_worlds
from .remote import GatewayClient

logger = get_logger(__name__)

_NAME_RE = re.compile(WORLD_NAME_PATTERN)

NAME_REQUIRED = "World name is required"
NAME_INVALID = "World name can only contain letters, numbers, dashes, underscores, and spaces"
NAME_TAKEN = "A world with this name already exists. Please choose a different name."


class WorldValidationError(ValueError):
    """World form input rejected before it reaches the remote."""


def build_world_settings(**fields: Any) -> WorldSettings:
    """Build ``WorldSettings`` from form fields with user-facing errors."""
    name = (fields.get("name") or "").strip()
    if not name:
        raise WorldValidationError(NAME_REQUIRED)
    if not _NAME_RE.match(name):
        raise WorldValidationError(NAME_INVALID)
    try:
        return WorldSettings.model_validate({**fields, "name": name})
    except ValidationError as e:
        raise WorldValidationError(str(e)) from e


class WorldDirectory:
    """Worlds of the logged-in user.

    Remote errors propagate as ``RemoteError`` for the caller to surface.
    After every write the list is re-read from the remote. An update whose
    re-read does not match what was sent puts the world id in
    ``durability_warnings``.
    """

    def __init__(self, session: UserSession, remote: GatewayClient) -> None:
        self.session = session
        self.remote = remote
        self._worlds: List[World] = []
        self.durability_warnings: Set[str] = set()

    @property
    def worlds(self) -> List[World]:
        return list(self._worlds)

    def get(self, world_id: str) -> Optional[World]:
        for world in self._worlds:
            if world.id == world_id:
                return world
        return None

    def validate(self, settings: WorldSettings, editing_id: Optional[str] = None) -> None:
        wanted = settings.name.lower()
        for world in self._worlds:
            if world.id != editing_id and world.name.lower() == wanted:
                raise WorldValidationError(NAME_TAKEN)

    async def refresh(self) -> List[World]:
        data = await self.remote.list_worlds(self.session)
        self._worlds = normalize_worlds(data)
        return self.worlds

    async def create(self, settings: WorldSettings) -> Optional[World]:
        self.validate(settings)
        data = await self.remote.create_world(self.session, settings)
        created = normalize_world(data["world"]) if isinstance(data.get("world"), dict) else None
        await self.refresh()
        if created is not None and self.get(created.id) is not None:
            return self.get(created.id)
        for world in self._worlds:
            if world.name.lower() == settings.name.lower():
                return world
        return created

    async def update(self, world_id: str, settings: WorldSettings) -> Optional[World]:
        self.validate(settings, editing_id=world_id)
        await self.remote.update_world(self.session, world_id, settings)
        await self.refresh()

        stored = self.get(world_id)
        if stored is None or stored.settings != settings:
            logger.warning(f"World {world_id} update reported success but was not persisted")
            self.durability_warnings.add(world_id)
        else:
            self.durability_warnings.discard(world_id)
        return stored

    async def delete(self, world_id: str) -> None:
        await self.remote.delete_world(self.session, world_id)
        self.durability_warnings.discard(world_id)
        await self.refresh()

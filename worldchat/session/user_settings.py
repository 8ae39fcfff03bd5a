"""Per-user AI settings with explicit save confirmation.

Local edits are authoritative while ``pending`` is set. A save is followed
by a confirming read: if the remote returns what was sent the edit is
committed, otherwise the remote copy wins and ``durability_warning`` is
raised so the UI can tell the user the change did not stick.
"""

from typing import Any, Optional

from pydantic import ValidationError

from ..logging_config import get_logger
from ..models.settings import UserSettings
from .models import UserSession
from .normalize import normalize_user_settings
from .remote import GatewayClient, RemoteError

logger = get_logger(__name__)


class SettingsError(Exception):
    """Settings could not be edited or saved."""


class SettingsSession:
    def __init__(self, session: UserSession, remote: GatewayClient) -> None:
        self.session = session
        self.remote = remote
        self.settings = UserSettings()
        self._confirmed = UserSettings()
        self.pending = False
        self.durability_warning = False

    async def _read_remote(self) -> Optional[UserSettings]:
        data = await self.remote.get_user_settings(self.session)
        raw = data.get("settings")
        if not isinstance(raw, dict):
            return None
        return normalize_user_settings(raw)

    async def load(self) -> UserSettings:
        """Fetch settings, falling back to defaults when the fetch fails."""
        try:
            remote_settings = await self._read_remote()
        except RemoteError as e:
            logger.warning(f"Using default settings, fetch failed: {e}")
            return self.settings

        if self.pending:
            logger.debug("Keeping unconfirmed local settings over fetched copy")
            return self.settings

        if remote_settings is not None:
            self.settings = remote_settings
            self._confirmed = remote_settings
        return self.settings

    def update(self, **changes: Any) -> UserSettings:
        """Apply edits locally (snake_case field names) and mark them pending."""
        try:
            updated = UserSettings.model_validate({**self.settings.model_dump(), **changes})
        except ValidationError as e:
            raise SettingsError(str(e)) from e
        self.settings = updated
        self.pending = True
        return updated

    async def save(self, confirm: bool = True) -> UserSettings:
        """Send local settings; on failure roll back to the last confirmed copy."""
        try:
            await self.remote.save_user_settings(self.session, self.settings)
        except RemoteError as e:
            logger.error(f"Error saving settings: {e}")
            self.settings = self._confirmed
            self.pending = False
            raise SettingsError("Failed to save settings") from e

        if confirm:
            await self.confirm()
        return self.settings

    async def confirm(self) -> Optional[bool]:
        """Read back after a save.

        True when the remote matches, False when it contradicts (remote copy
        adopted), None when the read gave no answer and the edit stays pending.
        """
        try:
            remote_settings = await self._read_remote()
        except RemoteError as e:
            logger.warning(f"Could not confirm saved settings: {e}")
            return None
        if remote_settings is None:
            return None

        self.pending = False
        if remote_settings == self.settings:
            self._confirmed = self.settings
            self.durability_warning = False
            return True

        logger.warning("Remote settings differ from the saved copy; the save did not persist")
        self.settings = remote_settings
        self._confirmed = remote_settings
        self.durability_warning = True
        return False

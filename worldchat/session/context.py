"""Active conversation context and the settings that go with it."""

from typing import Optional

from ..logging_config import get_logger
from ..models.settings import AiSettings
from .models import PaginationCursor
from .store import MessageStore

logger = get_logger(__name__)


class ContextBusyError(RuntimeError):
    """Raised when switching context while a send is in flight."""


class ContextSelector:
    """Tracks which context is active.

    ``active_id`` is ``None`` for the default context or a world id. Every
    switch bumps ``epoch``; async work captures the epoch when it starts and
    drops its result if the epoch has moved on, which also covers switching
    away and back to the same world.
    """

    def __init__(self, store: MessageStore, cursor: PaginationCursor) -> None:
        self._store = store
        self._cursor = cursor
        self._active_id: Optional[str] = None
        self._settings: Optional[AiSettings] = None
        self._epoch = 0
        self._send_in_flight = False

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_world(self) -> bool:
        return self._active_id is not None

    @property
    def send_in_flight(self) -> bool:
        return self._send_in_flight

    def mark_send(self, in_flight: bool) -> None:
        self._send_in_flight = in_flight

    def is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    def set_active(self, context_id: Optional[str], settings: Optional[AiSettings] = None) -> int:
        """Switch context, clearing the store and pagination cursor.

        ``settings`` is copied so later edits to the world do not leak into
        requests made from this context. Returns the new epoch.
        """
        if self._send_in_flight:
            raise ContextBusyError("cannot switch context while a message is being sent")

        self._active_id = context_id
        self._settings = settings.model_copy(deep=True) if settings is not None else None
        self._epoch += 1
        self._cursor.reset()
        self._store.clear()

        logger.info(f"Active context is now {context_id or 'default'} (epoch {self._epoch})")
        return self._epoch

    def current_settings(self) -> Optional[AiSettings]:
        """Settings snapshot for the next outgoing turn, if any."""
        return self._settings

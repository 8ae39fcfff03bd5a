"""Send/receive cycle of the chat view."""

import asyncio
from typing import Optional

from ..config import get_settings
from ..logging_config import get_logger
from ..models.settings import AiSettings
from .context import ContextBusyError, ContextSelector
from .models import ChatTurn, PaginationCursor, UserSession
from .normalize import extract_reply
from .pagination import NullViewport, PaginationLoader, Viewport
from .remote import ChatRemote, RemoteError
from .store import MessageStore

logger = get_logger(__name__)

APOLOGY_TEXT = "Sorry, I encountered an error. Please try again."


class ChatSessionController:
    """Drives sends for the active context.

    One send at a time: while a send is pending further sends are ignored
    and context switches raise ``ContextBusyError``. A failed send appends
    an apology turn and is not retried.
    """

    def __init__(
        self,
        session: UserSession,
        remote: ChatRemote,
        store: Optional[MessageStore] = None,
        viewport: Optional[Viewport] = None,
        history_window: Optional[int] = None,
        reload_delay: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.session = session
        self.remote = remote
        self.store = store if store is not None else MessageStore()
        self.cursor = PaginationCursor()
        self.selector = ContextSelector(self.store, self.cursor)
        self.viewport = viewport if viewport is not None else NullViewport()
        self.loader = PaginationLoader(session, remote, self.store, self.selector, self.cursor, self.viewport)
        self.history_window = history_window if history_window is not None else settings.history_window_size
        self.reload_delay = reload_delay if reload_delay is not None else settings.world_reload_delay
        self._reload_task: Optional[asyncio.Task] = None

    @property
    def is_sending(self) -> bool:
        return self.selector.send_in_flight

    @property
    def active_context(self) -> Optional[str]:
        return self.selector.active_id

    async def switch_context(self, context_id: Optional[str], settings: Optional[AiSettings] = None) -> bool:
        """Make ``context_id`` active and load its newest history."""
        if self.is_sending:
            raise ContextBusyError("cannot switch context while a message is being sent")
        self._cancel_reload()
        self.selector.set_active(context_id, settings)
        return await self.loader.load_initial()

    async def send(self, text: str) -> Optional[ChatTurn]:
        """Send one user turn; returns the assistant (or apology) turn.

        Blank input and sends while another is pending are no-ops and
        return None.
        """
        content = (text or "").strip()
        if not content or self.is_sending:
            return None

        context_id = self.selector.active_id
        epoch = self.selector.epoch
        settings = self.selector.current_settings()
        history = self.store.history_window(self.history_window)

        self.store.append_local(ChatTurn(role="user", content=content))
        self.viewport.scroll_to_bottom()

        self.selector.mark_send(True)
        try:
            try:
                payload = await self.remote.send_turn(self.session, content, history, settings, context_id)
                reply = ChatTurn(role="assistant", content=extract_reply(payload))
                succeeded = True
            except RemoteError as e:
                logger.error(f"Error sending message ({e.kind}): {e}")
                reply = ChatTurn(role="assistant", content=APOLOGY_TEXT)
                succeeded = False
        finally:
            self.selector.mark_send(False)

        if not self.selector.is_current(epoch):
            logger.debug("Dropping reply for a context that is no longer active")
            return None

        self.store.append_local(reply)
        self.viewport.scroll_to_bottom()

        if succeeded and context_id is not None:
            self._schedule_reload(epoch)
        return reply

    async def delete_turn(self, remote_id: str) -> bool:
        """Delete a persisted exchange and drop its turns locally on success."""
        context_id = self.selector.active_id
        epoch = self.selector.epoch
        try:
            ok = await self.remote.delete_turn(self.session, context_id, remote_id)
        except RemoteError as e:
            logger.error(f"Failed to delete {remote_id}: {e}")
            return False

        if not ok or not self.selector.is_current(epoch):
            return False
        removed = self.store.remove_by_remote_id(remote_id)
        logger.info(f"Deleted {removed} turns for {remote_id}")
        return True

    def _schedule_reload(self, epoch: int) -> None:
        # Worlds reconcile with the remote copy, which assigns durable ids
        self._cancel_reload()
        self._reload_task = asyncio.create_task(self._reload_after_delay(epoch))

    async def _reload_after_delay(self, epoch: int) -> None:
        await asyncio.sleep(self.reload_delay)
        if self.selector.is_current(epoch) and not self.is_sending:
            await self.loader.load_initial()

    def _cancel_reload(self) -> None:
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
        self._reload_task = None

    async def wait_for_reload(self) -> None:
        """Wait for a pending world reload, if one is scheduled."""
        task = self._reload_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def aclose(self) -> None:
        task = self._reload_task
        self._cancel_reload()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

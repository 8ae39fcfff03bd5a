"""Loading older history on demand without moving the reader's viewpoint."""

from typing import Optional, Protocol

from ..config import get_settings
from ..logging_config import get_logger
from .context import ContextSelector
from .models import PaginationCursor, UserSession
from .normalize import normalize_history_page
from .remote import ChatRemote, RemoteError
from .store import MessageStore

logger = get_logger(__name__)


class Viewport(Protocol):
    """Scrollable message list as seen by the session code.

    ``scroll_height`` must reflect the rendered content at the time it is
    read, so that reading it after a merge gives the new height.
    """

    scroll_top: float

    @property
    def scroll_height(self) -> float: ...

    def scroll_to_bottom(self) -> None: ...


class NullViewport:
    """Viewport for headless sessions: records positions, renders nothing."""

    def __init__(self) -> None:
        self.scroll_top = 0.0
        self.scroll_height = 0.0

    def scroll_to_bottom(self) -> None:
        self.scroll_top = self.scroll_height


def restore_scroll_top(old_scroll_height: float, old_scroll_top: float, new_scroll_height: float) -> float:
    """Scroll offset that keeps the same content in view after a prepend."""
    return new_scroll_height - old_scroll_height + old_scroll_top


class PaginationLoader:
    """Extends the store upward with older pages, and performs initial loads."""

    def __init__(
        self,
        session: UserSession,
        remote: ChatRemote,
        store: MessageStore,
        selector: ContextSelector,
        cursor: PaginationCursor,
        viewport: Optional[Viewport] = None,
        threshold: Optional[int] = None,
    ) -> None:
        self.session = session
        self.remote = remote
        self.store = store
        self.selector = selector
        self.cursor = cursor
        self.viewport = viewport if viewport is not None else NullViewport()
        self.threshold = threshold if threshold is not None else get_settings().scroll_load_threshold
        self._loading = False
        # Bumped by every initial load so a late older page cannot rewind the cursor
        self._generation = 0

    @property
    def is_loading(self) -> bool:
        return self._loading

    def should_load_older(self) -> bool:
        return (
            not self._loading
            and self.cursor.token is not None
            and self.viewport.scroll_top <= self.threshold
        )

    async def on_scroll(self) -> int:
        """Scroll handler: loads an older page when near the top."""
        if not self.should_load_older():
            return 0
        return await self.load_older()

    async def load_older(self) -> int:
        """Fetch and merge the next older page; returns turns added.

        Failures are logged and leave the store and cursor untouched so the
        next scroll can retry.
        """
        context_id = self.selector.active_id
        token = self.cursor.token
        if self._loading or token is None or context_id is None:
            return 0

        epoch = self.selector.epoch
        generation = self._generation
        old_height = self.viewport.scroll_height
        old_top = self.viewport.scroll_top
        self._loading = True
        try:
            payload = await self.remote.fetch_older_history(self.session, context_id, token)
        except RemoteError as e:
            logger.error(f"Failed to load older history for {context_id}: {e}")
            return 0
        finally:
            self._loading = False

        if not self.selector.is_current(epoch):
            logger.debug(f"Discarding older page for {context_id}: context changed")
            return 0
        if generation != self._generation:
            logger.debug(f"Discarding older page for {context_id}: history was reloaded")
            return 0

        page = normalize_history_page(payload)
        added = self.store.merge_older(page.turns)
        self.cursor.advance(page.continuation_token)
        self.viewport.scroll_top = restore_scroll_top(old_height, old_top, self.viewport.scroll_height)

        logger.debug(f"Merged {added} older turns for {context_id} (has_more={self.cursor.has_more})")
        return added

    async def load_initial(self) -> bool:
        """Replace the store with the newest page of the active context.

        Returns False when the fetch failed or the context changed before
        the result arrived.
        """
        context_id = self.selector.active_id
        epoch = self.selector.epoch
        self._generation += 1
        try:
            payload = await self.remote.fetch_initial_history(self.session, context_id)
        except RemoteError as e:
            logger.error(f"Failed to load history for {context_id or 'default'}: {e}")
            return False

        if not self.selector.is_current(epoch):
            logger.debug(f"Discarding initial history for {context_id or 'default'}: context changed")
            return False

        page = normalize_history_page(payload)
        self.store.initialize(page.turns)
        # The default context is a flat list with no older pages
        self.cursor.advance(page.continuation_token if context_id is not None else None)
        self.viewport.scroll_to_bottom()
        return True

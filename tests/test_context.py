"""ContextSelector switching rules and settings snapshots."""

import pytest

from worldchat.models.world import WorldSettings
from worldchat.session.context import ContextBusyError, ContextSelector
from worldchat.session.models import PaginationCursor
from worldchat.session.store import MessageStore

from fakes import turn


class TestContextSelector:
    def setup_method(self):
        self.store = MessageStore()
        self.cursor = PaginationCursor()
        self.selector = ContextSelector(self.store, self.cursor)

    def test_starts_on_default_without_settings(self):
        assert self.selector.active_id is None
        assert self.selector.current_settings() is None

    def test_switch_clears_store_and_cursor(self):
        self.store.append_local(turn("user", "hi", 1))
        self.cursor.advance("tok")
        self.selector.set_active("w1")
        assert len(self.store) == 0
        assert self.cursor.token is None
        assert not self.cursor.has_more

    def test_each_switch_bumps_epoch(self):
        first = self.selector.set_active("w1")
        self.selector.set_active(None)
        second = self.selector.set_active("w1")
        assert second > first
        assert not self.selector.is_current(first)
        assert self.selector.is_current(second)

    def test_switch_refused_while_sending(self):
        self.selector.mark_send(True)
        with pytest.raises(ContextBusyError):
            self.selector.set_active("w1")
        assert self.selector.active_id is None

    def test_settings_snapshot_is_detached(self):
        world = WorldSettings(name="Noir", temperature=0.3)
        self.selector.set_active("w1", world)
        snapshot = self.selector.current_settings()

        edited = world.model_copy(update={"temperature": 1.9})
        assert edited.temperature == 1.9
        assert snapshot.temperature == 0.3
        assert snapshot == world
        assert snapshot is not world

    def test_default_context_can_carry_an_override(self):
        world = WorldSettings(name="Noir")
        self.selector.set_active(None, world)
        assert self.selector.current_settings() == world

"""ChatSessionController send cycle, failure fallback and stale guards."""

import asyncio

import httpx
import pytest

from worldchat.models.world import WorldSettings
from worldchat.session.context import ContextBusyError
from worldchat.session.controller import APOLOGY_TEXT, ChatSessionController
from worldchat.session.normalize import NO_REPLY_TEXT
from worldchat.session.remote import GatewayClient, RemoteError

from fakes import FakeRemote, FakeViewport, make_session, network_down, record, turn


def _controller(remote, **kwargs):
    kwargs.setdefault("reload_delay", 0)
    return ChatSessionController(make_session(), remote, **kwargs)


class TestSend:
    def setup_method(self):
        self.remote = FakeRemote()
        self.controller = _controller(self.remote)

    def test_blank_input_is_a_no_op(self):
        async def scenario():
            assert await self.controller.send("") is None
            assert await self.controller.send("   ") is None

        asyncio.run(scenario())
        assert len(self.controller.store) == 0
        assert self.remote.sent == []

    def test_appends_user_then_reply(self):
        reply = asyncio.run(self.controller.send("  hello  "))
        turns = self.controller.store.turns
        assert [(t.role, t.content) for t in turns] == [("user", "hello"), ("assistant", "echo: hello")]
        assert reply is turns[-1]
        assert self.remote.sent[0]["text"] == "hello"

    def test_missing_reply_field_uses_fallback(self):
        self.remote.replies.append({"ok": True})
        reply = asyncio.run(self.controller.send("hi"))
        assert reply.content == NO_REPLY_TEXT

    def test_history_window_is_last_ten_turns_before_the_new_one(self):
        self.controller.store.initialize([turn("user", f"m{i}", i) for i in range(12)])
        asyncio.run(self.controller.send("next"))
        history = self.remote.sent[0]["history"]
        assert len(history) == 10
        assert history[0]["content"] == "m2"
        assert history[-1]["content"] == "m11"
        assert all(set(entry) == {"role", "content"} for entry in history)

    def test_default_context_sends_no_settings(self):
        asyncio.run(self.controller.send("hi"))
        assert self.remote.sent[0]["settings"] is None
        assert self.remote.sent[0]["context_id"] is None

    def test_failure_appends_apology(self):
        self.remote.replies.append(network_down())
        reply = asyncio.run(self.controller.send("hello"))
        assert [(t.role, t.content) for t in self.controller.store.turns] == [
            ("user", "hello"),
            ("assistant", APOLOGY_TEXT),
        ]
        assert reply.content == APOLOGY_TEXT
        assert not self.controller.is_sending

    @pytest.mark.parametrize("kind", [
        RemoteError.STATUS, RemoteError.EMPTY, RemoteError.INVALID_JSON, RemoteError.REJECTED,
    ])
    def test_every_failure_class_degrades_to_apology(self, kind):
        self.controller.store.initialize([turn("user", "earlier", 1), turn("assistant", "kept", 2)])
        self.remote.replies.append(RemoteError(kind, "boom"))
        asyncio.run(self.controller.send("hello"))
        assert [t.content for t in self.controller.store.turns] == ["earlier", "kept", "hello", APOLOGY_TEXT]

    def test_second_send_while_pending_is_ignored(self):
        async def scenario():
            self.remote.gate = asyncio.Event()
            first = asyncio.create_task(self.controller.send("one"))
            await asyncio.sleep(0)
            assert self.controller.is_sending
            assert await self.controller.send("two") is None
            self.remote.gate.set()
            await first

        asyncio.run(scenario())
        assert [s["text"] for s in self.remote.sent] == ["one"]
        assert [t.content for t in self.controller.store.turns] == ["one", "echo: one"]

    def test_user_turn_visible_before_reply(self):
        async def scenario():
            self.remote.gate = asyncio.Event()
            task = asyncio.create_task(self.controller.send("hello"))
            await asyncio.sleep(0)
            assert [t.role for t in self.controller.store.turns] == ["user"]
            self.remote.gate.set()
            await task

        asyncio.run(scenario())
        assert [t.role for t in self.controller.store.turns] == ["user", "assistant"]

    def test_scrolls_to_bottom_after_each_append(self):
        viewport = FakeViewport(self.controller.store)
        controller = _controller(self.remote, store=self.controller.store, viewport=viewport)
        asyncio.run(controller.send("hello"))
        assert viewport.bottom_scrolls == 2


class TestNetworkFailure:
    def test_rejected_connection_yields_user_turn_and_apology(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            async with GatewayClient(base_url="http://gateway.test", transport=httpx.MockTransport(refuse)) as remote:
                controller = _controller(remote)
                await controller.send("hello")
                return controller.store.turns

        turns = asyncio.run(scenario())
        assert [(t.role, t.content) for t in turns] == [("user", "hello"), ("assistant", APOLOGY_TEXT)]


class TestWorldContext:
    def setup_method(self):
        self.remote = FakeRemote()
        self.controller = _controller(self.remote)
        self.world = WorldSettings(name="Noir", temperature=1.1)

    def test_switch_loads_newest_page(self):
        self.remote.initial_pages["w1"] = [
            {"items": [record("r1", "q", "a", 1)], "continuationToken": "older"},
        ]
        assert asyncio.run(self.controller.switch_context("w1", self.world))
        assert [t.content for t in self.controller.store.turns] == ["q", "a"]
        assert self.controller.cursor.token == "older"

    def test_send_carries_world_settings_and_reloads(self):
        self.remote.initial_pages["w1"] = [
            {"items": []},
            {"items": [record("r1", "hello", "persisted reply", 5)]},
        ]

        async def scenario():
            await self.controller.switch_context("w1", self.world)
            await self.controller.send("hello")
            await self.controller.wait_for_reload()

        asyncio.run(scenario())
        sent = self.remote.sent[0]
        assert sent["context_id"] == "w1"
        assert sent["settings"] == self.world
        assert self.remote.initial_requests == ["w1", "w1"]
        turns = self.controller.store.turns
        assert [(t.content, t.remote_id) for t in turns] == [("hello", "r1"), ("persisted reply", "r1")]

    def test_failed_send_does_not_reload(self):
        self.remote.replies.append(network_down())

        async def scenario():
            await self.controller.switch_context("w1", self.world)
            await self.controller.send("hello")
            await self.controller.wait_for_reload()

        asyncio.run(scenario())
        assert self.remote.initial_requests == ["w1"]

    def test_aclose_waits_for_cancelled_reload(self):
        controller = _controller(self.remote, reload_delay=60)

        async def scenario():
            await controller.switch_context("w1", self.world)
            await controller.send("hello")
            task = controller._reload_task
            assert task is not None and not task.done()
            await controller.aclose()
            return task

        task = asyncio.run(scenario())
        assert task.cancelled()
        assert self.remote.initial_requests == ["w1"]

    def test_switch_refused_while_sending(self):
        async def scenario():
            self.remote.gate = asyncio.Event()
            task = asyncio.create_task(self.controller.send("hello"))
            await asyncio.sleep(0)
            with pytest.raises(ContextBusyError):
                await self.controller.switch_context("w1", self.world)
            self.remote.gate.set()
            await task

        asyncio.run(scenario())
        assert self.controller.active_context is None

    def test_late_history_for_previous_context_is_discarded(self):
        self.remote.initial_pages["A"] = [{"items": [record("ra", "from A", "reply A", 1)]}]
        self.remote.initial_pages["B"] = [{"items": [record("rb", "from B", "reply B", 2)]}]

        async def scenario():
            self.remote.gate = asyncio.Event()
            load_a = asyncio.create_task(self.controller.switch_context("A"))
            await asyncio.sleep(0)
            self.controller.selector.set_active("B")
            self.remote.gate.set()
            assert await load_a is False
            assert len(self.controller.store) == 0
            assert await self.controller.loader.load_initial()

        asyncio.run(scenario())
        assert [t.content for t in self.controller.store.turns] == ["from B", "reply B"]


class TestDeleteTurn:
    def setup_method(self):
        self.remote = FakeRemote()
        self.controller = _controller(self.remote)
        self.controller.store.initialize([
            turn("user", "q1", 1, "r1"), turn("assistant", "a1", 1, "r1"),
            turn("user", "q2", 2, "r2"), turn("assistant", "a2", 2, "r2"),
        ])

    def test_success_removes_pair(self):
        assert asyncio.run(self.controller.delete_turn("r1"))
        assert [t.content for t in self.controller.store.turns] == ["q2", "a2"]
        assert self.remote.deleted == [(None, "r1")]

    def test_failure_keeps_turns(self):
        self.remote.delete_results.append(network_down())
        assert not asyncio.run(self.controller.delete_turn("r1"))
        assert len(self.controller.store) == 4

    def test_remote_refusal_keeps_turns(self):
        self.remote.delete_results.append(False)
        assert not asyncio.run(self.controller.delete_turn("r1"))
        assert len(self.controller.store) == 4

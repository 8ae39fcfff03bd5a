"""MessageStore ordering, merge and removal behaviour."""

from worldchat.session.normalize import normalize_history_page
from worldchat.session.store import MessageStore

from fakes import turn


def _contents(store):
    return [t.content for t in store.turns]


class TestInitialize:
    def test_sorts_by_timestamp(self):
        store = MessageStore()
        store.initialize([turn("user", "c", 3), turn("user", "a", 1), turn("assistant", "b", 2)])
        assert _contents(store) == ["a", "b", "c"]

    def test_ties_keep_insertion_order(self):
        store = MessageStore()
        store.initialize([turn("user", "q", 5, "r1"), turn("assistant", "a", 5, "r1")])
        assert [t.role for t in store.turns] == ["user", "assistant"]

    def test_replaces_existing_contents(self):
        store = MessageStore()
        store.append_local(turn("user", "old", 1))
        store.initialize([turn("user", "new", 2)])
        assert _contents(store) == ["new"]

    def test_copies_input(self):
        source = [turn("user", "a", 1)]
        store = MessageStore()
        store.initialize(source)
        source.append(turn("user", "b", 2))
        assert len(store) == 1


class TestAppendLocal:
    def test_appends_without_resorting(self):
        store = MessageStore()
        store.initialize([turn("user", "late", 10)])
        store.append_local(turn("user", "early", 1))
        assert _contents(store) == ["late", "early"]


class TestMergeOlder:
    def test_merges_and_sorts(self):
        store = MessageStore()
        store.initialize([turn("user", "q3", 30, "r3"), turn("assistant", "a3", 30, "r3")])
        added = store.merge_older([
            turn("user", "q1", 10, "r1"), turn("assistant", "a1", 10, "r1"),
            turn("user", "q2", 20, "r2"), turn("assistant", "a2", 20, "r2"),
        ])
        assert added == 4
        assert _contents(store) == ["q1", "a1", "q2", "a2", "q3", "a3"]

    def test_skips_turns_already_present(self):
        store = MessageStore()
        store.initialize([turn("user", "q2", 20, "r2"), turn("assistant", "a2", 20, "r2")])
        added = store.merge_older([
            turn("user", "q1", 10, "r1"), turn("assistant", "a1", 10, "r1"),
            turn("user", "q2", 20, "r2"), turn("assistant", "a2", 20, "r2"),
        ])
        assert added == 2
        assert _contents(store) == ["q1", "a1", "q2", "a2"]

    def test_same_page_twice_is_idempotent(self):
        page = [turn("user", "q1", 10, "r1"), turn("assistant", "a1", 10, "r1")]
        once = MessageStore()
        once.initialize([turn("user", "now", 60, "r9")])
        once.merge_older(page)

        twice = MessageStore()
        twice.initialize([turn("user", "now", 60, "r9")])
        twice.merge_older(page)
        assert twice.merge_older(page) == 0

        assert twice.turns == once.turns

    def test_turns_without_remote_id_are_idempotent_too(self):
        page = [turn("user", "hi", 1), turn("assistant", "hello", 2)]
        store = MessageStore()
        store.merge_older(page)
        store.merge_older(page)
        assert _contents(store) == ["hi", "hello"]

    def test_undated_page_without_ids_merges_once(self):
        payload = {"items": [{"input": "q", "aiReply": "a"}]}
        store = MessageStore()
        store.merge_older(normalize_history_page(payload).turns)
        store.merge_older(normalize_history_page(payload).turns)
        assert _contents(store) == ["q", "a"]

    def test_interleaved_appends_and_merges_equal_sorted_union(self):
        store = MessageStore()
        local_user = turn("user", "fresh", 100)
        local_reply = turn("assistant", "reply", 101)
        page_a = [turn("user", "q2", 20, "r2"), turn("assistant", "a2", 21, "r2")]
        page_b = [turn("user", "q1", 10, "r1"), turn("assistant", "a1", 11, "r1"), page_a[0]]

        store.append_local(local_user)
        store.merge_older(page_a)
        store.append_local(local_reply)
        store.merge_older(page_b)

        expected = sorted(
            [local_user, local_reply, *page_a, page_b[0], page_b[1]],
            key=lambda t: t.timestamp,
        )
        assert sorted(store.turns, key=lambda t: t.timestamp) == expected
        assert len(store) == len(expected)


class TestRemoveByRemoteId:
    def test_removes_the_whole_exchange(self):
        store = MessageStore()
        store.initialize([
            turn("user", "q1", 10, "r1"), turn("assistant", "a1", 10, "r1"),
            turn("user", "q2", 20, "r2"), turn("assistant", "a2", 20, "r2"),
        ])
        assert store.remove_by_remote_id("r1") == 2
        assert _contents(store) == ["q2", "a2"]

    def test_unknown_id_is_a_no_op(self):
        store = MessageStore()
        store.initialize([turn("user", "q1", 10, "r1")])
        assert store.remove_by_remote_id("nope") == 0
        assert len(store) == 1


class TestHistoryWindow:
    def test_last_turns_oldest_first(self):
        store = MessageStore()
        store.initialize([turn("user", f"m{i}", i) for i in range(15)])
        window = store.history_window(10)
        assert len(window) == 10
        assert window[0] == {"role": "user", "content": "m5"}
        assert window[-1] == {"role": "user", "content": "m14"}

    def test_shorter_history_returned_whole(self):
        store = MessageStore()
        store.initialize([turn("user", "a", 1), turn("assistant", "b", 2)])
        assert store.history_window(10) == [
            {"role": "user", "content": "a"},
            {"role": "assistant", "content": "b"},
        ]

"""In-memory turn store for the active conversation context."""

from typing import Hashable, Iterable, List

from .models import ChatTurn


def _dedupe_key(turn: ChatTurn) -> Hashable:
    # A user/assistant pair shares one remote id; the role keeps them apart
    if turn.remote_id is not None:
        return ("remote", turn.remote_id, turn.role)
    return ("local", turn.role, turn.timestamp, turn.content)


def _chronological(turns: Iterable[ChatTurn]) -> List[ChatTurn]:
    # sorted() is stable, so equal timestamps keep insertion order
    return sorted(turns, key=lambda turn: turn.timestamp)


class MessageStore:
    """Ordered turns of the active context.

    Operations are local and never perform I/O. Turns are kept in ascending
    timestamp order except for ``append_local``, which trusts that appended
    turns are the newest.
    """

    def __init__(self) -> None:
        self._turns: List[ChatTurn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(list(self._turns))

    @property
    def turns(self) -> List[ChatTurn]:
        return list(self._turns)

    def initialize(self, turns: Iterable[ChatTurn]) -> None:
        """Replace the contents with a sorted copy of ``turns``."""
        self._turns = _chronological(turns)

    def clear(self) -> None:
        self._turns = []

    def append_local(self, turn: ChatTurn) -> None:
        self._turns.append(turn)

    def merge_older(self, turns: Iterable[ChatTurn]) -> int:
        """Merge a page of older turns, skipping ones already present.

        Returns the number of turns added. Merging the same page twice adds
        nothing the second time.
        """
        seen = {_dedupe_key(turn) for turn in self._turns}
        fresh: List[ChatTurn] = []
        for turn in turns:
            key = _dedupe_key(turn)
            if key in seen:
                continue
            seen.add(key)
            fresh.append(turn)

        if fresh:
            self._turns = _chronological(self._turns + fresh)
        return len(fresh)

    def remove_by_remote_id(self, remote_id: str) -> int:
        """Drop every turn backed by ``remote_id``; returns how many were removed."""
        kept = [turn for turn in self._turns if turn.remote_id != remote_id]
        removed = len(self._turns) - len(kept)
        self._turns = kept
        return removed

    def history_window(self, limit: int) -> List[dict]:
        """Last ``limit`` turns as role/content pairs, oldest first."""
        if limit <= 0:
            return []
        return [turn.as_history_entry() for turn in self._turns[-limit:]]

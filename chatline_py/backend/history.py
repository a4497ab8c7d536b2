"""In-memory conversation history for the development backend."""

from __future__ import annotations

from collections.abc import Iterable

import anyio

from chatline_py.model import Message


class ConversationHistory:
    """Messages exchanged so far, shared by every request.

    ``lock`` is held for a whole turn so two turns never interleave their
    chunks in the stored history.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = [m.model_copy(deep=True) for m in messages]
        self.lock = anyio.Lock()

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message.model_copy(deep=True))

    def snapshot(self) -> list[Message]:
        """Return a copy that callers may freely modify."""
        return [m.model_copy(deep=True) for m in self._messages]

    def to_wire(self) -> list[dict]:
        return [m.to_wire() for m in self._messages]

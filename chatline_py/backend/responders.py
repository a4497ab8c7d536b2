"""Reply generators for the development backend."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Protocol

import anyio

from chatline_py.model import Message, Role, TextPart, text_of


class Responder(Protocol):
    """Produces the chunks of one reply from the conversation so far."""

    def respond(self, history: Sequence[Message]) -> AsyncIterator[Message]:
        """Yield reply chunks; the last history message is the user's turn."""
        ...


def _last_user_text(history: Sequence[Message]) -> str:
    for message in reversed(history):
        if message.role == Role.USER:
            return "".join(text_of(part) for part in message.parts)
    return ""


class EchoResponder:
    """Streams the user's text back, a few words per chunk."""

    def __init__(self, delay: float = 0.0, words_per_chunk: int = 1) -> None:
        self._delay = max(delay, 0.0)
        self._words_per_chunk = max(words_per_chunk, 1)

    async def respond(self, history: Sequence[Message]) -> AsyncIterator[Message]:
        words = f"You said: {_last_user_text(history)}".split(" ")
        for start in range(0, len(words), self._words_per_chunk):
            chunk = " ".join(words[start : start + self._words_per_chunk])
            if start + self._words_per_chunk < len(words):
                chunk += " "
            if self._delay:
                await anyio.sleep(self._delay)
            yield Message(role=Role.MODEL, parts=[TextPart(text=chunk)])


class ScriptedResponder:
    """Replays the same fixed chunks for every turn."""

    def __init__(self, chunks: Iterable[Message], delay: float = 0.0) -> None:
        self._chunks = list(chunks)
        self._delay = max(delay, 0.0)

    async def respond(self, history: Sequence[Message]) -> AsyncIterator[Message]:
        _ = history
        for chunk in self._chunks:
            if self._delay:
                await anyio.sleep(self._delay)
            yield chunk.model_copy(deep=True)

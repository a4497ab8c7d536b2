"""Pytest fixtures for chatline_py tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from chatline_py.client import ChatTransportError
from chatline_py.model import Message
from chatline_py.transcript import TranscriptEntry


@dataclass
class FakeEvent:
    """Minimal stand-in for an httpx_sse.ServerSentEvent."""

    data: str
    event: str = "message"


def chunk(role: str, *parts: dict[str, Any]) -> FakeEvent:
    """Build a message event carrying one JSON-encoded message."""
    return FakeEvent(json.dumps({"role": role, "parts": list(parts)}))


def text(value: str) -> dict[str, Any]:
    return {"type": "text", "text": value}


class RecordingSurface:
    """Surface that records every call made by the controller."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.input_enabled = True
        self.shown: list[TranscriptEntry] = []

    def reset(self, entries: Sequence[TranscriptEntry]) -> None:
        self.shown = list(entries)
        self.calls.append(("reset", len(self.shown)))

    def entry_appended(self, index: int, entry: TranscriptEntry) -> None:
        self.shown.append(entry)
        self.calls.append(("appended", index))

    def entry_updated(self, index: int, entry: TranscriptEntry) -> None:
        self.shown[index] = entry
        self.calls.append(("updated", index))

    def scroll_to_end(self) -> None:
        self.calls.append(("scroll", None))

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled
        self.calls.append(("input", enabled))

    def focus_input(self) -> None:
        self.calls.append(("focus", None))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@dataclass
class FakeBackend:
    """Backend returning canned history and stream events."""

    history: list[Message] = field(default_factory=list)
    events: list[FakeEvent] = field(default_factory=list)
    history_error: ChatTransportError | None = None
    stream_error: ChatTransportError | None = None
    fail_after: int | None = None
    sent: list[Message] = field(default_factory=list)

    async def fetch_history(self) -> list[Message]:
        if self.history_error is not None:
            raise self.history_error
        return self.history

    async def stream_turn(self, message: Message) -> AsyncIterator[FakeEvent]:
        self.sent.append(message)
        if self.stream_error is not None and self.fail_after is None:
            raise self.stream_error
        for index, event in enumerate(self.events):
            if self.fail_after is not None and index == self.fail_after:
                assert self.stream_error is not None
                raise self.stream_error
            yield event


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear chatline-related environment variables."""
    env_vars = [
        "CHAT_URL",
        "CHAT_PATH",
        "CHAT_TIMEOUT",
        "CHAT_UI",
        "NO_COLOR",
        "CHAT_ASCII",
        "CHAT_LOG_LEVEL",
        "CHAT_LOG_FILE",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

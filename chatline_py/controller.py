"""Turn controller: drives history load and one request/response cycle at a time."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from enum import Enum
from typing import Protocol

import anyio

from chatline_py.client import ChatTransportError, StreamError
from chatline_py.model import Message, MessageParseError, parse_message
from chatline_py.transcript import (
    TranscriptEntry,
    TranscriptStore,
    merge_history,
    merge_live,
)
from chatline_py.ui.base import Surface

logger = logging.getLogger(__name__)

CONNECTION_ERROR_TEXT = "Connection error. Please try again."
HISTORY_ERROR_PREFIX = "Error loading history"


class TurnState(str, Enum):
    IDLE = "idle"
    LOADING_HISTORY = "loading_history"
    AWAITING_FIRST_CHUNK = "awaiting_first_chunk"
    STREAMING = "streaming"
    ERROR = "error"


class StreamEvent(Protocol):
    """The parts of a server-sent event the controller reads."""

    event: str
    data: str


class Backend(Protocol):
    """Protocol for the conversation backend the controller talks to."""

    async def fetch_history(self) -> list[Message]:
        """Return the stored conversation, raising ChatTransportError on failure."""
        ...

    def stream_turn(self, message: Message) -> AsyncIterator[StreamEvent]:
        """Send ``message`` and yield the reply events."""
        ...


class TurnController:
    """Sole writer of a session's transcript store.

    ``submit`` and ``load_history`` flip the state before their first await,
    so a submit issued while either is running is rejected instead of
    overlapping.
    """

    def __init__(
        self,
        backend: Backend,
        surface: Surface,
        store: TranscriptStore | None = None,
    ) -> None:
        self._backend = backend
        self._surface = surface
        self.store = store if store is not None else TranscriptStore()
        self._state = TurnState.IDLE
        self._scope: anyio.CancelScope | None = None

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state in {
            TurnState.LOADING_HISTORY,
            TurnState.AWAITING_FIRST_CHUNK,
            TurnState.STREAMING,
        }

    @property
    def input_enabled(self) -> bool:
        return not self.busy

    async def load_history(self) -> bool:
        """Replace the transcript with the merged conversation history.

        Input stays disabled until the history is in place, so no turn can
        start against a store that is about to be replaced. Returns False
        when a load or turn is already running.
        """
        if self.busy:
            logger.debug("History load ignored: controller busy (%s)", self._state.value)
            return False
        self._set_state(TurnState.LOADING_HISTORY)
        self._surface.set_input_enabled(False)
        try:
            try:
                messages = await self._backend.fetch_history()
            except ChatTransportError as exc:
                logger.error("Failed to load chat history: %s", exc)
                entries = [TranscriptEntry.system(f"{HISTORY_ERROR_PREFIX}: {exc}")]
            else:
                entries = merge_history(messages)
                logger.info(
                    "Loaded %d history messages into %d entries", len(messages), len(entries)
                )
            self.store.replace(entries)
            self._surface.reset(self.store)
            self._surface.scroll_to_end()
        finally:
            self._finish(TurnState.IDLE)
        return True

    async def submit(self, text: str) -> bool:
        """Run one turn for ``text``.

        Returns False without side effects for blank input, while the history
        is loading or while another turn is active.
        """
        trimmed = text.strip()
        if not trimmed:
            return False
        if self.busy:
            logger.debug("Submit ignored: controller busy (%s)", self._state.value)
            return False

        message = Message.user(trimmed)
        self._apply(message)
        self._set_state(TurnState.AWAITING_FIRST_CHUNK)
        self._surface.set_input_enabled(False)

        try:
            with anyio.CancelScope() as scope:
                self._scope = scope
                await self._consume(message, scope)
        except ChatTransportError as exc:
            logger.warning("Turn stream failed: %s", exc)
            self._append(TranscriptEntry.system(CONNECTION_ERROR_TEXT))
            self._finish(TurnState.ERROR)
        else:
            self._finish(TurnState.IDLE)
        finally:
            self._scope = None
            if self.busy:
                self._finish(TurnState.IDLE)
        return True

    def close(self) -> None:
        """Stop the active stream; no further chunk is applied."""
        if self._scope is not None:
            logger.debug("Closing active stream")
            self._scope.cancel()

    async def _consume(self, message: Message, scope: anyio.CancelScope) -> None:
        async with aclosing(self._backend.stream_turn(message)) as events:
            async for event in events:
                if scope.cancel_called:
                    break
                if event.event == "error":
                    raise StreamError(f"server reported an error: {event.data}")
                if event.event and event.event != "message":
                    logger.debug("Ignoring %r event", event.event)
                    continue
                self._handle_chunk(event.data)
        logger.info("Stream finished and closed")

    def _handle_chunk(self, data: str) -> None:
        if not data:
            return
        try:
            chunk = parse_message(data)
        except MessageParseError as exc:
            logger.warning("Failed to parse stream chunk %r: %s", data, exc)
            return
        if self._state == TurnState.AWAITING_FIRST_CHUNK:
            self._set_state(TurnState.STREAMING)
        self._apply(chunk)

    def _apply(self, message: Message) -> None:
        result = merge_live(self.store, message)
        entry = self.store[result.index]
        if result.created:
            self._surface.entry_appended(result.index, entry)
        else:
            self._surface.entry_updated(result.index, entry)
        self._surface.scroll_to_end()

    def _append(self, entry: TranscriptEntry) -> None:
        index = self.store.append(entry)
        self._surface.entry_appended(index, entry)
        self._surface.scroll_to_end()

    def _finish(self, state: TurnState) -> None:
        self._set_state(state)
        self._surface.set_input_enabled(True)
        if state == TurnState.IDLE:
            self._surface.focus_input()

    def _set_state(self, state: TurnState) -> None:
        if state != self._state:
            logger.debug("Turn state %s -> %s", self._state.value, state.value)
        self._state = state

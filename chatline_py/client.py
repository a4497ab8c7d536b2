"""HTTP client for the conversation resource (history fetch and turn stream)."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from types import TracebackType

import httpx
from httpx_sse import ServerSentEvent, SSEError, aconnect_sse

from chatline_py.model import Message, MessageParseError, parse_history

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/chat"


class ChatTransportError(Exception):
    """Base error for failures talking to the conversation backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HistoryLoadError(ChatTransportError):
    """The history fetch failed or returned unusable data."""


class StreamError(ChatTransportError):
    """The turn stream could not be opened or broke mid-way."""


class ConversationClient:
    """Async client for one conversation resource."""

    def __init__(
        self,
        base_url: str,
        path: str = DEFAULT_PATH,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._path = path
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def url(self) -> str:
        return str(self._client.base_url.join(self._path))

    async def fetch_history(self) -> list[Message]:
        """Fetch and parse the full conversation history."""
        try:
            response = await self._client.get(
                self._path, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as exc:
            raise HistoryLoadError(f"request failed: {exc}") from exc

        if not response.is_success:
            raise HistoryLoadError(
                f"HTTP error! Status: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            messages = parse_history(response.content)
        except MessageParseError as exc:
            raise HistoryLoadError(f"invalid history payload: {exc}") from exc
        logger.debug("Fetched %d history messages from %s", len(messages), self.url)
        return messages

    async def stream_turn(self, message: Message) -> AsyncIterator[ServerSentEvent]:
        """Post a user message and yield the server-sent events of the reply.

        No read timeout applies to the stream; chunks may be far apart while
        the agent runs tools.
        """
        try:
            async with aconnect_sse(
                self._client,
                "POST",
                self._path,
                json=message.to_wire(),
                timeout=httpx.Timeout(self._timeout, read=None),
            ) as source:
                response = source.response
                if not response.is_success:
                    raise StreamError(
                        f"HTTP error! Status: {response.status_code}",
                        status_code=response.status_code,
                    )
                logger.debug("Stream opened (%s)", response.status_code)
                async for event in source.aiter_sse():
                    yield event
        except SSEError as exc:
            raise StreamError(f"response is not an event stream: {exc}") from exc
        except httpx.HTTPError as exc:
            raise StreamError(f"stream failed: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ConversationClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

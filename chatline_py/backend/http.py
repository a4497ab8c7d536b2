"""HTTP app for the development conversation backend."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    Response,
    StreamingResponse,
)
from starlette.routing import Route

from chatline_py.backend.history import ConversationHistory
from chatline_py.backend.responders import EchoResponder, Responder
from chatline_py.model import Message, MessageParseError, parse_message
from chatline_py.render import render_page
from chatline_py.transcript import merge_history

logger = logging.getLogger(__name__)

_NO_CACHE = {"Cache-Control": "no-cache"}


def sse_frame(message: Message) -> str:
    """Encode one message as a server-sent ``message`` event."""
    return f"data: {json.dumps(message.to_wire(), ensure_ascii=False)}\n\n"


def start(
    *,
    host: str | None,
    port: int | None,
    responder: Responder | None = None,
    log_level: str = "info",
) -> None:
    """Serve the development backend until interrupted."""
    app = build_app(responder=responder)
    uvicorn.run(app, host=host or "127.0.0.1", port=port or 8080, log_level=log_level)


def build_app(
    history: ConversationHistory | None = None,
    responder: Responder | None = None,
    path: str = "/chat",
) -> Starlette:
    conversation = history if history is not None else ConversationHistory()
    reply = responder if responder is not None else EchoResponder()

    async def turn_events(message: Message) -> AsyncIterator[str]:
        async with conversation.lock:
            conversation.append(message)
            try:
                async for chunk in reply.respond(conversation.snapshot()):
                    conversation.append(chunk)
                    yield sse_frame(chunk)
            except Exception as exc:
                # reported to the client as a chunk, not stored in history
                logger.exception("Responder failed")
                error = Message.system(f"Error while generating stream content: {exc}")
                yield sse_frame(error)

    async def get_chat(_: Request) -> Response:
        return JSONResponse(conversation.to_wire(), headers=_NO_CACHE)

    async def post_chat(request: Request) -> Response:
        body = await request.body()
        try:
            message = parse_message(body)
        except MessageParseError as exc:
            return PlainTextResponse(str(exc), status_code=400)
        logger.info("Turn started (%d messages in history)", len(conversation))
        return StreamingResponse(
            turn_events(message),
            status_code=201,
            media_type="text/event-stream",
            headers=_NO_CACHE,
        )

    async def index(_: Request) -> Response:
        page = render_page(merge_history(conversation.snapshot()), title="chatline")
        return HTMLResponse(page, headers=_NO_CACHE)

    routes = [
        Route(path, endpoint=get_chat, methods=["GET"]),
        Route(path, endpoint=post_chat, methods=["POST"]),
        Route("/", endpoint=index, methods=["GET"]),
    ]
    return Starlette(routes=routes)

"""Development backend serving the conversation resource."""

from chatline_py.backend.history import ConversationHistory
from chatline_py.backend.http import build_app, sse_frame, start
from chatline_py.backend.responders import EchoResponder, Responder, ScriptedResponder

__all__ = [
    "ConversationHistory",
    "EchoResponder",
    "Responder",
    "ScriptedResponder",
    "build_app",
    "sse_frame",
    "start",
]

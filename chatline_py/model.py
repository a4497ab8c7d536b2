"""Message and part models shared by history, live stream and rendering."""

from __future__ import annotations

import copy
import json
from enum import Enum
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class MessageParseError(ValueError):
    """Raised when wire data cannot be read as a message or part."""


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    MODEL = "model"
    TOOL = "tool"
    SYSTEM = "system"


class TextPart(BaseModel):
    """Free text, rendered as markdown."""

    model_config = ConfigDict(extra="allow")

    type: Literal["text"] = "text"
    text: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class FunctionCallPart(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(extra="allow")

    type: Literal["function_call"] = "function_call"
    name: str = ""
    args: Any = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class FunctionResponsePart(BaseModel):
    """The value a tool returned for an earlier invocation."""

    model_config = ConfigDict(extra="allow")

    type: Literal["function_response"] = "function_response"
    name: str = ""
    response: Any = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class UnknownPart(BaseModel):
    """Any part whose type tag is not recognised.

    The complete wire object is kept as ``payload`` so it can be shown and
    sent back without losing anything.
    """

    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def type(self) -> str | None:
        value = self.payload.get("type")
        return value if isinstance(value, str) else None

    def to_wire(self) -> dict[str, Any]:
        return copy.deepcopy(self.payload)


Part = Union[TextPart, FunctionCallPart, FunctionResponsePart, UnknownPart]

_PART_CLASSES = (TextPart, FunctionCallPart, FunctionResponsePart, UnknownPart)
_KNOWN_PARTS: dict[str, type[BaseModel]] = {
    "text": TextPart,
    "function_call": FunctionCallPart,
    "function_response": FunctionResponsePart,
}


def is_text(part: Part | None) -> bool:
    """Return True for text parts."""
    return isinstance(part, TextPart)


def is_non_text(part: Part | None) -> bool:
    """Return True for parts that are rendered as structured blocks."""
    return part is not None and not isinstance(part, TextPart)


def text_of(part: Part | None) -> str:
    """Return the text carried by a part, or an empty string."""
    if isinstance(part, TextPart) and part.text:
        return part.text
    return ""


def parse_part(raw: Any) -> Part:
    """Build a part from its wire object, falling back to ``UnknownPart``."""
    if isinstance(raw, _PART_CLASSES):
        return raw
    if not isinstance(raw, Mapping):
        raise MessageParseError(f"part must be an object (got {type(raw).__name__})")

    part_type = raw.get("type")
    model = _KNOWN_PARTS.get(part_type) if isinstance(part_type, str) else None
    if model is None:
        return UnknownPart(payload=dict(raw))
    try:
        return model.model_validate(dict(raw))  # type: ignore[return-value]
    except ValidationError as exc:
        raise MessageParseError(f"invalid {part_type} part: {exc}") from exc


class Message(BaseModel):
    """A role-tagged, ordered sequence of parts."""

    role: Role
    parts: list[Part]

    @field_validator("parts", mode="before")
    @classmethod
    def _parse_parts(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            return value
        # null entries carry no content
        return [parse_part(raw) for raw in value if raw is not None]

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=Role.USER, parts=[TextPart(text=text)])

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role=Role.SYSTEM, parts=[TextPart(text=text)])

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready wire form of the message."""
        return {
            "role": self.role.value,
            "parts": [part.to_wire() for part in self.parts],
        }


def _load_json(data: str | bytes | Any) -> Any:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MessageParseError(f"payload is not valid UTF-8: {exc}") from exc
    if isinstance(data, str):
        try:
            return json.loads(data)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise MessageParseError(f"payload is not valid JSON: {exc}") from exc
    return data


def parse_message(data: str | bytes | Mapping[str, Any]) -> Message:
    """Parse one message from JSON text or an already decoded object."""
    payload = _load_json(data)
    if not isinstance(payload, Mapping):
        raise MessageParseError(
            f"message must be a JSON object (got {type(payload).__name__})"
        )
    try:
        return Message.model_validate(dict(payload))
    except ValidationError as exc:
        raise MessageParseError(f"invalid message: {exc}") from exc


def parse_history(data: str | bytes | list[Any]) -> list[Message]:
    """Parse a JSON array of messages."""
    payload = _load_json(data)
    if not isinstance(payload, list):
        raise MessageParseError(
            f"history must be a JSON array (got {type(payload).__name__})"
        )
    return [parse_message(item) for item in payload]

"""Tests for HTML rendering."""

from __future__ import annotations

import html
import json
import re
import sys

import pytest

from chatline_py.model import (
    FunctionCallPart,
    FunctionResponsePart,
    Message,
    Role,
    TextPart,
    UnknownPart,
    parse_message,
)
from chatline_py.render import (
    UNKNOWN_LABEL,
    default_markdown,
    dump_payload,
    part_label,
    render_content,
    render_entry,
    render_page,
    render_part,
    render_transcript,
)
from chatline_py.transcript import TranscriptEntry, TranscriptStore, merge_history, merge_live


def _entry(role: Role, raw_text: str = "", *parts) -> TranscriptEntry:
    return TranscriptEntry(role=role, raw_text=raw_text, non_text_parts=list(parts))


class TestDumpPayload:
    """Tests for dump_payload."""

    def test_pretty_prints_json(self) -> None:
        assert dump_payload({"x": 1}) == '{\n  "x": 1\n}'

    def test_non_json_values_fall_back_to_str(self) -> None:
        assert "{1, 2}" in dump_payload({"s": {1, 2}})

    def test_circular_payload_does_not_raise(self) -> None:
        payload: dict = {"name": "loop"}
        payload["self"] = payload
        out = dump_payload(payload)
        assert "loop" in out

    def test_deeply_nested_payload_does_not_raise(self) -> None:
        payload: list = []
        for _ in range(3000):
            payload = [payload]
        assert isinstance(dump_payload(payload), str)


class TestRenderPart:
    """Tests for render_part."""

    def test_none_renders_nothing(self) -> None:
        assert render_part(None) == ""

    def test_text_part_goes_through_markdown(self) -> None:
        assert render_part(TextPart(text="**hi**")) == "<p><strong>hi</strong></p>\n"

    def test_text_part_without_text(self) -> None:
        assert render_part(TextPart(), markdown=lambda s: f"[{s}]") == "[]"

    def test_function_call_block(self) -> None:
        out = render_part(FunctionCallPart(name="calc", args={"x": 1}))
        assert out.startswith('<details class="accordion"><summary>Function Call: calc</summary>')
        assert "&quot;x&quot;: 1" in out

    def test_function_response_label(self) -> None:
        part = FunctionResponsePart(name="calc", response={"y": 2})
        assert part_label(part) == "Function Response: calc"
        assert "Function Response: calc" in render_part(part)

    def test_unknown_part_fallback(self) -> None:
        part = UnknownPart(payload={"type": "inline_data", "mime_type": "image/png"})
        out = render_part(part)
        assert f"<summary>{UNKNOWN_LABEL}</summary>" in out
        assert "image/png" in out

    def test_payload_and_label_are_escaped(self) -> None:
        part = FunctionCallPart(name="<b>x</b>", args={"html": "<script>alert(1)</script>"})
        out = render_part(part)
        assert "<script>" not in out
        assert "<b>x</b>" not in out
        assert "&lt;script&gt;" in out


class TestRenderEntry:
    """Tests for entry and transcript rendering."""

    def test_markdown_rendered_from_whole_text(self) -> None:
        seen: list[str] = []

        def markdown(text: str) -> str:
            seen.append(text)
            return default_markdown(text)

        entry = _entry(Role.MODEL, "```py\nprint(1)\n```")
        out = render_content(entry, markdown)
        assert seen == ["```py\nprint(1)\n```"]
        assert '<code class="language-py">print(1)' in out

    def test_text_precedes_parts(self) -> None:
        entry = _entry(Role.MODEL, "answer", FunctionCallPart(name="calc"))
        out = render_content(entry)
        assert out.index("answer") < out.index("Function Call: calc")

    def test_empty_text_renders_parts_only(self) -> None:
        entry = _entry(Role.TOOL, "", FunctionResponsePart(name="f", response=None))
        out = render_content(entry)
        assert not out.startswith("<p>")
        assert "Function Response: f" in out

    def test_raw_html_in_text_is_escaped(self) -> None:
        out = render_content(_entry(Role.MODEL, "<img src=x onerror=alert(1)>"))
        assert "<img" not in out

    def test_entry_wrapper_carries_role(self) -> None:
        out = render_entry(_entry(Role.USER, "hi"))
        assert out.startswith('<div class="message user" data-role="user">')
        assert '<div class="role">user</div>' in out

    def test_transcript_keeps_order(self) -> None:
        out = render_transcript([_entry(Role.USER, "first"), _entry(Role.MODEL, "second")])
        assert out.index("first") < out.index("second")

    def test_page_is_standalone(self) -> None:
        page = render_page([_entry(Role.SYSTEM, "oops")], title="<Chat>")
        assert page.startswith("<!doctype html>")
        assert "<title>&lt;Chat&gt;</title>" in page
        assert '<div id="chat-log">' in page
        assert "message system" in page


def _nested(depth: int) -> list:
    value: list = []
    for index in range(depth):
        value = [index, value]
    return value


def _code_blocks(page: str) -> list[str]:
    return [html.unescape(body) for body in re.findall(r"<pre><code>(.*?)</code></pre>", page, re.S)]


class TestDeepPayloadRendering:
    """Deeply nested payloads taken from the wire through merge and render."""

    @pytest.mark.parametrize("depth", [50, 300])
    def test_payload_is_recoverable_from_rendered_block(self, depth: int) -> None:
        payload = {"type": "blob", "v": _nested(depth)}
        wire = json.dumps({"role": "model", "parts": [{"type": "text", "text": "see"}, payload]})
        message = parse_message(wire)

        store = TranscriptStore()
        merge_live(store, message)
        for entry in (store[0], merge_history([message])[0]):
            blocks = _code_blocks(render_entry(entry))
            assert len(blocks) == 1
            assert json.loads(blocks[0]) == payload

    def test_payload_past_recursion_limit_renders(self) -> None:
        depth = sys.getrecursionlimit() + 100
        message = Message(
            role=Role.MODEL,
            parts=[UnknownPart(payload={"type": "blob", "v": _nested(depth)})],
        )
        entries = merge_history([message, message])
        assert len(entries) == 1
        out = render_entry(entries[0])
        assert out.count(f"<summary>{UNKNOWN_LABEL}</summary>") == 2

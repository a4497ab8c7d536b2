"""HTML rendering for transcript entries.

Text is always re-rendered from the full accumulated raw text: markdown is
not well formed at arbitrary cut points mid-stream, so rendered fragments are
never appended. Structured parts follow the text as collapsible blocks.
"""

from __future__ import annotations

import html
import json
from collections.abc import Callable, Iterable
from typing import Any

from markdown_it import MarkdownIt

from chatline_py.model import (
    FunctionCallPart,
    FunctionResponsePart,
    Part,
    TextPart,
    UnknownPart,
)
from chatline_py.transcript import TranscriptEntry

MarkdownRenderer = Callable[[str], str]

UNKNOWN_LABEL = "Unknown Part"

_markdown: MarkdownIt | None = None


def default_markdown(text: str) -> str:
    """Render markdown with raw HTML disabled."""
    global _markdown
    if _markdown is None:
        _markdown = MarkdownIt("commonmark", {"html": False}).enable("table")
    return _markdown.render(text)


def dump_payload(value: Any) -> str:
    """Pretty-print a structured payload; never raises."""
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        pass
    try:
        return repr(value)
    except RecursionError:
        return f"<{type(value).__name__} too deeply nested to display>"


def part_label(part: Part) -> str:
    """Header text for a structured part."""
    if isinstance(part, FunctionCallPart):
        return f"Function Call: {part.name}"
    if isinstance(part, FunctionResponsePart):
        return f"Function Response: {part.name}"
    return UNKNOWN_LABEL


def part_payload(part: Part) -> Any:
    """The value shown in a structured part's body."""
    if isinstance(part, FunctionCallPart):
        return part.args
    if isinstance(part, FunctionResponsePart):
        return part.response
    if isinstance(part, UnknownPart):
        return part.payload
    return part.model_dump(mode="json")


def _details(label: str, body: str) -> str:
    return (
        '<details class="accordion">'
        f"<summary>{html.escape(label)}</summary>"
        f"<pre><code>{html.escape(body)}</code></pre>"
        "</details>"
    )


def render_part(part: Part | None, markdown: MarkdownRenderer | None = None) -> str:
    """Render a single part; ``None`` renders as nothing."""
    if part is None:
        return ""
    if isinstance(part, TextPart):
        return (markdown or default_markdown)(part.text or "")
    return _details(part_label(part), dump_payload(part_payload(part)))


def render_content(entry: TranscriptEntry, markdown: MarkdownRenderer | None = None) -> str:
    """Render the inner content of an entry from scratch."""
    chunks: list[str] = []
    if entry.raw_text:
        chunks.append((markdown or default_markdown)(entry.raw_text))
    chunks.extend(render_part(part, markdown) for part in entry.non_text_parts)
    return "".join(chunks)


def render_entry(entry: TranscriptEntry, markdown: MarkdownRenderer | None = None) -> str:
    """Render an entry as a message bubble."""
    role = html.escape(entry.role.value)
    return (
        f'<div class="message {role}" data-role="{role}">'
        f'<div class="role">{role}</div>'
        f'<div class="content">{render_content(entry, markdown)}</div>'
        "</div>"
    )


def render_transcript(
    entries: Iterable[TranscriptEntry], markdown: MarkdownRenderer | None = None
) -> str:
    return "\n".join(render_entry(entry, markdown) for entry in entries)


_PAGE_CSS = """
body { font-family: system-ui, sans-serif; background: #0b1016; color: #e3e9f0; margin: 0; }
main { max-width: 860px; margin: 0 auto; padding: 24px; }
h1 { font-size: 20px; color: #f1c27a; }
.message { border-radius: 8px; padding: 10px 14px; margin: 12px 0; background: #141a22; }
.message.user { background: #1a2330; margin-left: 15%; }
.message.system { border: 1px solid #e07a7a; }
.message.tool { border-left: 3px solid #f1c27a; }
.role { font-size: 11px; text-transform: uppercase; color: #8aa0b6; margin-bottom: 6px; }
.accordion { margin: 6px 0; }
.accordion summary { cursor: pointer; color: #6aa2ff; }
pre { background: #0b1016; padding: 8px; overflow-x: auto; }
"""


def render_page(
    entries: Iterable[TranscriptEntry],
    title: str = "Conversation",
    markdown: MarkdownRenderer | None = None,
) -> str:
    """Build a standalone HTML page for a transcript."""
    safe_title = html.escape(title)
    body = render_transcript(entries, markdown)
    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{safe_title}</title>
<style>{_PAGE_CSS}</style>
</head>
<body>
<main>
<h1>{safe_title}</h1>
<div id="chat-log">
{body}
</div>
</main>
</body>
</html>
"""

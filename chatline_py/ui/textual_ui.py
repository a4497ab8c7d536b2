"""Textual chat application and its surface adapter."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.syntax import Syntax
from textual.app import App, ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import Collapsible, Footer, Input, Label, Markdown, Static

from chatline_py.controller import Backend, TurnController
from chatline_py.model import Role
from chatline_py.render import dump_payload, part_label, part_payload

if TYPE_CHECKING:
    from chatline_py.model import Part
    from chatline_py.transcript import TranscriptEntry

ROLE_LABELS = {
    Role.USER: "USER",
    Role.MODEL: "AI",
    Role.TOOL: "TOOL",
    Role.SYSTEM: "SYS",
}

APP_CSS = """
Screen {
    background: #0b1016;
}

#header {
    height: 1;
    padding: 0 1;
    background: #1a2330;
    color: #f1c27a;
    text-style: bold;
}

#transcript {
    height: 1fr;
    padding: 0 1;
}

.entry {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
    border-left: thick #8aa0b6;
    background: #141a22;
}

.entry.role-user {
    border-left: thick #7cc7a5;
    background: #1a2330;
}

.entry.role-model {
    border-left: thick #6aa2ff;
}

.entry.role-tool {
    border-left: thick #f1c27a;
}

.entry.role-system {
    border-left: thick #e07a7a;
}

.entry-role {
    color: #8aa0b6;
    text-style: bold;
}

.entry-text {
    height: auto;
    margin: 0;
}

.entry-parts {
    height: auto;
}

#prompt {
    dock: bottom;
    margin: 0 1 1 1;
}
"""


class TranscriptResetMessage(Message):
    def __init__(self, entries: list[TranscriptEntry]) -> None:
        self.entries = entries
        super().__init__()


class EntryAppendedMessage(Message):
    def __init__(self, index: int, entry: TranscriptEntry) -> None:
        self.index = index
        self.entry = entry
        super().__init__()


class EntryUpdatedMessage(Message):
    def __init__(self, index: int, entry: TranscriptEntry) -> None:
        self.index = index
        self.entry = entry
        super().__init__()


class InputStateMessage(Message):
    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled
        super().__init__()


class ScrollEndMessage(Message):
    pass


class FocusInputMessage(Message):
    pass


def _part_block(part: Part) -> Collapsible:
    body = Static(Syntax(dump_payload(part_payload(part)), "json", word_wrap=True))
    return Collapsible(body, title=escape(part_label(part)), collapsed=True)


class EntryView(Vertical):
    """One transcript bubble, rebuilt wholesale from its entry."""

    def __init__(self, entry: TranscriptEntry) -> None:
        super().__init__(classes=f"entry role-{entry.role.value}")
        self.entry = entry

    def compose(self) -> ComposeResult:
        label = ROLE_LABELS.get(self.entry.role, self.entry.role.value.upper())
        yield Label(label, classes="entry-role")
        text = Markdown(self.entry.raw_text, classes="entry-text")
        text.display = bool(self.entry.raw_text)
        yield text
        with Vertical(classes="entry-parts"):
            for part in self.entry.non_text_parts:
                yield _part_block(part)

    async def refresh_entry(self, entry: TranscriptEntry) -> None:
        self.entry = entry
        text = self.query_one(".entry-text", Markdown)
        text.display = bool(entry.raw_text)
        await text.update(entry.raw_text)
        parts = self.query_one(".entry-parts", Vertical)
        await parts.remove_children()
        await parts.mount_all([_part_block(part) for part in entry.non_text_parts])


class ChatApp(App[int]):
    CSS = APP_CSS

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+s", "toggle_scroll", "Toggle scroll"),
    ]

    def __init__(
        self,
        backend: Backend,
        title: str = "chatline",
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        super().__init__()
        self._title = title
        self._on_close = on_close
        self._auto_scroll = True
        self._views: list[EntryView] = []
        self._timeline: VerticalScroll | None = None
        self._input: Input | None = None
        self.ui = TextualUI(self)
        self.controller: TurnController = TurnController(backend, self.ui)

    def compose(self) -> ComposeResult:
        yield Label(self._title, id="header")
        yield VerticalScroll(id="transcript")
        # enabled once the history is loaded
        yield Input(placeholder="Type a message and press Enter", id="prompt", disabled=True)
        yield Footer()

    def on_mount(self) -> None:
        self._timeline = self.query_one("#transcript", VerticalScroll)
        self._input = self.query_one("#prompt", Input)
        self.run_worker(self.controller.load_history(), group="history")

    async def on_unmount(self) -> None:
        self.controller.close()
        if self._on_close is not None:
            await self._on_close()

    def action_toggle_scroll(self) -> None:
        self._auto_scroll = not self._auto_scroll
        self.notify("scroll: follow" if self._auto_scroll else "scroll: locked")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if not event.value.strip() or not self.controller.input_enabled:
            return
        value = event.value
        event.input.value = ""
        self.run_worker(self.controller.submit(value), group="turn")

    async def on_transcript_reset_message(self, message: TranscriptResetMessage) -> None:
        if self._timeline is None:
            return
        await self._timeline.remove_children()
        self._views = [EntryView(entry) for entry in message.entries]
        await self._timeline.mount_all(self._views)

    async def on_entry_appended_message(self, message: EntryAppendedMessage) -> None:
        if self._timeline is None:
            return
        view = EntryView(message.entry)
        self._views.append(view)
        await self._timeline.mount(view)

    async def on_entry_updated_message(self, message: EntryUpdatedMessage) -> None:
        if 0 <= message.index < len(self._views):
            await self._views[message.index].refresh_entry(message.entry)

    def on_input_state_message(self, message: InputStateMessage) -> None:
        if self._input is not None:
            self._input.disabled = not message.enabled

    def on_scroll_end_message(self, _: ScrollEndMessage) -> None:
        if self._timeline is not None and self._auto_scroll:
            self._timeline.call_after_refresh(self._timeline.scroll_end, animate=False)

    def on_focus_input_message(self, _: FocusInputMessage) -> None:
        if self._input is not None:
            self._input.focus()


class TextualUI:
    """Surface adapter that forwards controller calls to the app as messages."""

    def __init__(self, app: ChatApp):
        self._app = app

    def reset(self, entries: Sequence[TranscriptEntry]) -> None:
        self._app.post_message(TranscriptResetMessage(list(entries)))

    def entry_appended(self, index: int, entry: TranscriptEntry) -> None:
        self._app.post_message(EntryAppendedMessage(index, entry))

    def entry_updated(self, index: int, entry: TranscriptEntry) -> None:
        self._app.post_message(EntryUpdatedMessage(index, entry))

    def scroll_to_end(self) -> None:
        self._app.post_message(ScrollEndMessage())

    def set_input_enabled(self, enabled: bool) -> None:
        self._app.post_message(InputStateMessage(enabled))

    def focus_input(self) -> None:
        self._app.post_message(FocusInputMessage())


def run_textual_app(
    backend: Backend,
    title: str = "chatline",
    on_close: Callable[[], Awaitable[None]] | None = None,
) -> int:
    app = ChatApp(backend, title=title, on_close=on_close)
    app.run()
    return 0

"""Rich-based terminal surface."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from chatline_py.model import Role
from chatline_py.render import dump_payload, part_label, part_payload

if TYPE_CHECKING:
    from typing import TextIO

    from chatline_py.model import Part
    from chatline_py.transcript import TranscriptEntry

ROLE_COLORS = {
    Role.USER: "green",
    Role.MODEL: "cyan",
    Role.TOOL: "yellow",
    Role.SYSTEM: "red",
}

ROLE_LABELS = {
    Role.USER: "USER",
    Role.MODEL: "AI",
    Role.TOOL: "TOOL",
    Role.SYSTEM: "SYS",
}


class RichUI:
    """Rich surface; the growing entry lives in a ``Live`` region.

    Every update rebuilds the entry's renderable from its raw text and parts
    and swaps it in whole.
    """

    def __init__(
        self,
        no_color: bool = False,
        ascii_only: bool = False,
        file: TextIO | None = None,
    ):
        self.no_color = no_color
        self.ascii_only = ascii_only
        self._file = file or sys.stdout
        self.console = Console(file=self._file, no_color=no_color)
        self._box = box.ASCII if ascii_only else box.ROUNDED
        self._live: Live | None = None
        self._live_index: int | None = None

    def _part_panel(self, part: Part) -> Panel:
        # titles are Text, so tool output cannot inject console markup
        body = Syntax(
            dump_payload(part_payload(part)),
            "json",
            word_wrap=True,
            background_color="default",
        )
        return Panel(
            body,
            title=Text(part_label(part), style="bold yellow"),
            title_align="left",
            border_style="yellow",
            box=self._box,
        )

    def render_entry(self, entry: TranscriptEntry) -> RenderableType:
        """Build the full renderable for an entry."""
        color = ROLE_COLORS.get(entry.role, "white")
        blocks: list[RenderableType] = []
        if entry.raw_text:
            blocks.append(Markdown(entry.raw_text))
        blocks.extend(self._part_panel(part) for part in entry.non_text_parts)
        label = ROLE_LABELS.get(entry.role, entry.role.value.upper())
        return Panel(
            Group(*blocks),
            title=Text(label, style=f"bold {color}"),
            title_align="left",
            border_style=color,
            box=self._box,
        )

    def _stop_live(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None
        self._live_index = None

    def _start_live(self, index: int, entry: TranscriptEntry) -> None:
        self._live = Live(
            self.render_entry(entry),
            console=self.console,
            refresh_per_second=12,
            vertical_overflow="visible",
        )
        self._live_index = index
        self._live.start()

    def reset(self, entries: Sequence[TranscriptEntry]) -> None:
        self._stop_live()
        for entry in entries:
            self.console.print(self.render_entry(entry))

    def entry_appended(self, index: int, entry: TranscriptEntry) -> None:
        self._stop_live()
        if entry.role == Role.USER:
            self.console.print(self.render_entry(entry))
            return
        self._start_live(index, entry)

    def entry_updated(self, index: int, entry: TranscriptEntry) -> None:
        if self._live is not None and self._live_index == index:
            self._live.update(self.render_entry(entry))
            return
        self._stop_live()
        self._start_live(index, entry)

    def scroll_to_end(self) -> None:
        if self._live is not None:
            self._live.refresh()

    def set_input_enabled(self, enabled: bool) -> None:
        if enabled:
            self._stop_live()

    def focus_input(self) -> None:
        return

    def prompt(self) -> str:
        """Read one line of user input."""
        return self.console.input(Text("you > ", style="bold green"))

    def info(self, text: str) -> None:
        """Display info message (dim)."""
        self.console.print(Text(text, style="dim"))

    def err(self, text: str) -> None:
        """Display error message (red)."""
        self.console.print(Text(f"ERROR: {text}", style="bold red"))

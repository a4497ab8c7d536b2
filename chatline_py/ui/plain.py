"""Plain text surface (no Rich dependency)."""

from __future__ import annotations

import shutil
import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING

from chatline_py.model import Role
from chatline_py.render import dump_payload, part_label, part_payload

if TYPE_CHECKING:
    from typing import TextIO

    from chatline_py.transcript import TranscriptEntry

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_black": "\033[90m",
}

ROLE_TAGS = {
    Role.USER: "USER",
    Role.MODEL: "AI",
    Role.TOOL: "TOOL",
    Role.SYSTEM: "SYS",
}

ROLE_COLORS = {
    Role.USER: "green",
    Role.MODEL: "cyan",
    Role.TOOL: "yellow",
    Role.SYSTEM: "red",
}


class PlainUI:
    """Plain text surface with optional ANSI colors.

    Output cannot be rewritten, so an entry that may still grow is held back
    and written once it is complete: when the next entry starts or the input
    is re-enabled at the end of the turn.
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
        self._hr_char = "-" if ascii_only else "─"
        self._block_left = "|" if ascii_only else "│"
        self._block_tl = "+" if ascii_only else "┌"
        self._block_tr = "+" if ascii_only else "┐"
        self._block_bl = "+" if ascii_only else "└"
        self._block_br = "+" if ascii_only else "┘"
        self._width = min(shutil.get_terminal_size((80, 24)).columns, 100)
        self._pending: TranscriptEntry | None = None

    def _color(self, text: str, *styles: str) -> str:
        """Apply color codes if colors are enabled."""
        if self.no_color:
            return text
        prefix = "".join(COLORS.get(s, "") for s in styles)
        return f"{prefix}{text}{COLORS['reset']}" if prefix else text

    def _print(self, text: str = "") -> None:
        print(text, file=self._file)

    def _block_header_line(self, label: str) -> str:
        label_text = f" {label} "
        width = max(self._width, len(label_text) + 2)
        fill_len = width - len(label_text) - 2
        return f"{self._block_tl}{label_text}{self._hr_char * fill_len}{self._block_tr}"

    def _block_footer_line(self) -> str:
        width = max(self._width, 2)
        return f"{self._block_bl}{self._hr_char * (width - 2)}{self._block_br}"

    def _write_entry(self, entry: TranscriptEntry) -> None:
        color = ROLE_COLORS.get(entry.role, "bold")
        tag = ROLE_TAGS.get(entry.role, entry.role.value.upper())
        self._print(self._color(self._block_header_line(tag), color))
        for line in entry.raw_text.splitlines():
            self._print(f"{self._color(self._block_left, 'dim')} {line}")
        for part in entry.non_text_parts:
            self._print(
                f"{self._color(self._block_left, 'dim')} "
                f"{self._color('[' + part_label(part) + ']', 'yellow')}"
            )
            for line in dump_payload(part_payload(part)).splitlines():
                self._print(f"{self._color(self._block_left, 'dim')}   {self._color(line, 'dim')}")
        self._print(self._color(self._block_footer_line(), color))

    def _flush(self) -> None:
        if self._pending is None:
            return
        entry, self._pending = self._pending, None
        self._write_entry(entry)

    def reset(self, entries: Sequence[TranscriptEntry]) -> None:
        self._pending = None
        for entry in entries:
            self._write_entry(entry)

    def entry_appended(self, index: int, entry: TranscriptEntry) -> None:
        _ = index
        self._flush()
        if entry.role == Role.USER:
            self._write_entry(entry)
        else:
            self._pending = entry

    def entry_updated(self, index: int, entry: TranscriptEntry) -> None:
        _ = index
        self._pending = entry

    def scroll_to_end(self) -> None:
        return

    def set_input_enabled(self, enabled: bool) -> None:
        if enabled:
            self._flush()

    def focus_input(self) -> None:
        return

    def info(self, text: str) -> None:
        """Display info message (dim)."""
        print(self._color(text, "dim"), file=sys.stderr)

    def err(self, text: str) -> None:
        """Display error message (red)."""
        print(self._color(f"ERROR: {text}", "red", "bold"), file=sys.stderr)

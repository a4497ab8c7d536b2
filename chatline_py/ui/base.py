"""Base surface protocol for transcript display."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chatline_py.transcript import TranscriptEntry


class Surface(Protocol):
    """Protocol for anything that shows a transcript and owns the input."""

    def reset(self, entries: Sequence[TranscriptEntry]) -> None:
        """Replace everything shown with ``entries``."""
        ...

    def entry_appended(self, index: int, entry: TranscriptEntry) -> None:
        """Show a new entry at the end of the transcript."""
        ...

    def entry_updated(self, index: int, entry: TranscriptEntry) -> None:
        """Re-render an existing entry wholesale."""
        ...

    def scroll_to_end(self) -> None:
        """Bring the newest content into view."""
        ...

    def set_input_enabled(self, enabled: bool) -> None:
        """Allow or block new submissions."""
        ...

    def focus_input(self) -> None:
        """Return keyboard focus to the input."""
        ...

"""Display surfaces for chatline transcripts."""

from chatline_py.ui.base import Surface
from chatline_py.ui.plain import PlainUI
from chatline_py.ui.rich_ui import RichUI

__all__ = ["Surface", "RichUI", "PlainUI", "get_ui", "resolve_ui_mode"]


def resolve_ui_mode(mode: str = "auto", interactive: bool = True) -> str:
    """Resolve ``auto`` to a concrete mode for the current environment."""
    import sys

    normalized = (mode or "auto").strip().lower()
    if normalized in {"plain", "off", "no", "0"}:
        return "plain"
    if normalized in {"rich", "textual"}:
        return normalized
    if not sys.stdout.isatty():
        return "plain"
    return "textual" if interactive else "rich"


def get_ui(
    mode: str = "auto",
    no_color: bool = False,
    ascii_only: bool = False,
) -> Surface:
    """Get a line-oriented surface (plain or rich) for the given mode.

    The textual mode owns the whole screen and is started through
    ``chatline_py.ui.textual_ui.run_textual_app`` instead.
    """
    resolved = resolve_ui_mode(mode, interactive=False)
    if resolved == "plain":
        return PlainUI(no_color=no_color, ascii_only=ascii_only)
    return RichUI(no_color=no_color, ascii_only=ascii_only)

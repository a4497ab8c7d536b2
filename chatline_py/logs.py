"""Logging setup for the chatline CLI."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_HANDLER_MARK = "_chatline_handler"


def configure_logging(
    level: int = logging.WARNING,
    log_file: Path | None = None,
    console: bool = True,
    no_color: bool = False,
) -> logging.Logger:
    """Attach chatline handlers to the ``chatline_py`` logger.

    Calling it again replaces the handlers installed by a previous call.
    Under the full-screen UI ``console`` must be False so log records do not
    draw over the screen.
    """
    logger = logging.getLogger("chatline_py")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(
            RichHandler(
                console=Console(stderr=True, no_color=no_color),
                show_path=False,
                markup=False,
                rich_tracebacks=True,
            )
        )
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger

"""Configuration handling for chatline."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

UI_MODES = {"auto", "textual", "rich", "plain"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool(value: str | None) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return False
    return bool(re.match(r"^(1|true|yes)$", value.lower()))


def _parse_mode(value: str | None, default: str, allowed: set[str]) -> str:
    """Parse a mode value with allowed options."""
    if value is None:
        return default
    lowered = value.lower().strip()
    if lowered in allowed:
        return lowered
    return default


def _parse_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class ChatConfig:
    """Configuration for a chat client session."""

    base_url: str = "http://127.0.0.1:8080"
    chat_path: str = "/chat"
    timeout: float = 30.0

    # UI config
    ui_mode: str = "auto"  # auto|textual|rich|plain
    no_color: bool = False
    ascii_only: bool = False

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None

    @classmethod
    def from_env(cls) -> ChatConfig:
        """Load configuration from environment variables."""
        log_file = os.environ.get("CHAT_LOG_FILE")
        return cls(
            base_url=os.environ.get("CHAT_URL", "http://127.0.0.1:8080"),
            chat_path=os.environ.get("CHAT_PATH", "/chat"),
            timeout=_parse_float(os.environ.get("CHAT_TIMEOUT"), 30.0),
            ui_mode=_parse_mode(os.environ.get("CHAT_UI"), "auto", UI_MODES),
            no_color="NO_COLOR" in os.environ,
            ascii_only=_parse_bool(os.environ.get("CHAT_ASCII")),
            log_level=os.environ.get("CHAT_LOG_LEVEL", "WARNING").strip().upper(),
            log_file=Path(log_file) if log_file else None,
        )

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level) if self.log_level in LOG_LEVELS else logging.WARNING

    def validate(self) -> list[str]:
        """Validate configuration, returning list of errors."""
        errors: list[str] = []

        parsed = urlparse(self.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            errors.append(f"CHAT_URL must be an http(s) URL (got: {self.base_url})")

        if not self.chat_path.startswith("/"):
            errors.append(f"CHAT_PATH must start with '/' (got: {self.chat_path})")

        if self.timeout <= 0:
            errors.append(f"CHAT_TIMEOUT must be positive (got: {self.timeout})")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if self.ui_mode not in UI_MODES:
            errors.append(f"Unknown UI mode: {self.ui_mode}")

        return errors

"""Transcript entries and the rules that merge messages into them.

History and live updates share one contract: a message whose role matches
the previous entry (and is not ``user``) extends that entry, anything else
starts a new one. Entries keep the cumulative raw text so the renderer can
re-render it from scratch on every change.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from chatline_py.model import Message, Part, Role, is_non_text, is_text, text_of


@dataclass
class TranscriptEntry:
    """One turn bubble: merged text plus structured parts in arrival order."""

    role: Role
    raw_text: str = ""
    non_text_parts: list[Part] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: Message) -> TranscriptEntry:
        """Seed a new entry from a message without sharing its parts."""
        entry = cls(role=message.role)
        entry._absorb(message.parts)
        return entry

    @classmethod
    def system(cls, text: str) -> TranscriptEntry:
        return cls(role=Role.SYSTEM, raw_text=text)

    def accepts(self, message: Message) -> bool:
        """Return True when ``message`` continues this entry."""
        return self.role == message.role and message.role != Role.USER

    def fold(self, message: Message) -> None:
        """Extend this entry in place with the parts of ``message``."""
        if not self.accepts(message):
            raise ValueError(
                f"cannot fold {message.role.value} message into {self.role.value} entry"
            )
        self._absorb(message.parts)

    def _absorb(self, parts: Iterable[Part | None]) -> None:
        for part in parts:
            if is_text(part):
                self.raw_text += text_of(part)
            elif is_non_text(part):
                self.non_text_parts.append(_copy_part(part))  # type: ignore[arg-type]


def _copy_part(part: Part) -> Part:
    try:
        return part.model_copy(deep=True)
    except RecursionError:
        # payload nested past the interpreter limit: share it, keep the wrapper fresh
        return part.model_copy()


class TranscriptStore(Sequence[TranscriptEntry]):
    """Ordered entries currently shown for one conversation session."""

    def __init__(self, entries: Iterable[TranscriptEntry] = ()) -> None:
        self._entries: list[TranscriptEntry] = list(entries)

    def __getitem__(self, index):  # type: ignore[override]
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(self._entries)

    @property
    def last(self) -> TranscriptEntry | None:
        return self._entries[-1] if self._entries else None

    def append(self, entry: TranscriptEntry) -> int:
        """Append an entry and return its index."""
        self._entries.append(entry)
        return len(self._entries) - 1

    def replace(self, entries: Iterable[TranscriptEntry]) -> None:
        """Replace every entry, as a fresh history load does."""
        self._entries = list(entries)

    def clear(self) -> None:
        self._entries = []


@dataclass(frozen=True)
class MergeResult:
    """Where a merged message landed in the store."""

    index: int
    created: bool


def merge_history(messages: Iterable[Message]) -> list[TranscriptEntry]:
    """Fold historical messages into adjacency-merged entries."""
    entries: list[TranscriptEntry] = []
    for message in messages:
        last_entry = entries[-1] if entries else None
        if last_entry is not None and last_entry.accepts(message):
            last_entry.fold(message)
        else:
            entries.append(TranscriptEntry.from_message(message))
    return entries


def merge_live(store: TranscriptStore, message: Message) -> MergeResult:
    """Append ``message`` as a new entry or extend the last one in place."""
    last_entry = store.last
    if last_entry is None or not last_entry.accepts(message):
        index = store.append(TranscriptEntry.from_message(message))
        return MergeResult(index=index, created=True)
    last_entry.fold(message)
    return MergeResult(index=len(store) - 1, created=False)

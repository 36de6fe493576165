"""Seam between the assistant and the host editor.

The host supplies something satisfying `Editor` (cursor, selection and text
replacement) and `Notifier` (user-facing notices). `TextDocument` is a plain
in-memory editor used by the command bridge and by tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Literal, Protocol

import structlog

log = structlog.get_logger()

CursorSide = Literal["from", "to", "head", "anchor"]

LOADING_MARKER = "%%Loading...%%"


@dataclass(frozen=True)
class Position:
    line: int
    ch: int


class Editor(Protocol):
    def get_selection(self) -> str: ...

    def get_value(self) -> str: ...

    def set_value(self, value: str) -> None: ...

    def get_cursor(self, which: CursorSide = "head") -> Position: ...

    def set_cursor(self, pos: Position) -> None: ...

    def replace_range(self, text: str, start: Position, end: Position | None = None) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


@dataclass
class NoticeLog:
    messages: list[str] = field(default_factory=list)

    def notify(self, message: str) -> None:
        log.info("notice", message=message)
        self.messages.append(message)


def offset_at(text: str, pos: Position) -> int:
    lines = text.split("\n")
    line = min(max(pos.line, 0), len(lines) - 1)
    ch = min(max(pos.ch, 0), len(lines[line]))
    return sum(len(prev) + 1 for prev in lines[:line]) + ch


def position_at(text: str, offset: int) -> Position:
    offset = min(max(offset, 0), len(text))
    line_start = text.rfind("\n", 0, offset) + 1
    return Position(line=text.count("\n", 0, offset), ch=offset - line_start)


class TextDocument:
    """In-memory `Editor` over a string with an anchor/head selection."""

    def __init__(self, text: str = "", *, anchor: int | None = None, head: int | None = None):
        self.text = text
        end = len(text)
        self.anchor = min(max(anchor if anchor is not None else end, 0), end)
        self.head = min(max(head if head is not None else self.anchor, 0), end)

    def _offset(self, which: CursorSide) -> int:
        if which == "from":
            return min(self.anchor, self.head)
        if which == "to":
            return max(self.anchor, self.head)
        if which == "anchor":
            return self.anchor
        return self.head

    def get_selection(self) -> str:
        return self.text[self._offset("from") : self._offset("to")]

    def get_value(self) -> str:
        return self.text

    def set_value(self, value: str) -> None:
        self.text = value
        self.anchor = min(self.anchor, len(value))
        self.head = min(self.head, len(value))

    def get_cursor(self, which: CursorSide = "head") -> Position:
        return position_at(self.text, self._offset(which))

    def set_cursor(self, pos: Position) -> None:
        self.anchor = self.head = offset_at(self.text, pos)

    def replace_range(self, text: str, start: Position, end: Position | None = None) -> None:
        s = offset_at(self.text, start)
        e = offset_at(self.text, end) if end is not None else s
        if e < s:
            s, e = e, s
        self.text = self.text[:s] + text + self.text[e:]
        delta = len(text) - (e - s)

        def _shift(off: int) -> int:
            if off <= s:
                return off
            if off >= e:
                return off + delta
            return s + len(text)

        self.anchor = _shift(self.anchor)
        self.head = _shift(self.head)

    def cursor_offset(self) -> int:
        return self.head


def remove_placeholder(editor: Editor, position: Position, marker: str = LOADING_MARKER) -> None:
    value = editor.get_value()
    offset = offset_at(value, position)
    if value.startswith(marker, offset):
        value = value[:offset] + value[offset + len(marker) :]
    elif marker in value:
        # Text before the placeholder changed while the request was in flight.
        value = value.replace(marker, "", 1)
    else:
        log.warning("placeholder_missing", line=position.line, ch=position.ch)
    editor.set_value(value)
    editor.set_cursor(position)


@contextmanager
def loading_placeholder(editor: Editor, marker: str = LOADING_MARKER) -> Iterator[Position]:
    """Show `marker` at the selection end while the body runs; always remove it once."""
    position = editor.get_cursor("to")
    editor.replace_range(marker, position)
    try:
        yield position
    finally:
        remove_placeholder(editor, position, marker)

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

WORD_SIZE = 4


class HalfByte(Enum):
    LEFT = "left"
    RIGHT = "right"


class Place(Enum):
    HEX = "hex"
    ASCII = "ascii"


class Direction(Enum):
    PREV_HALF = "prev_half"
    NEXT_HALF = "next_half"
    PREV_BYTE = "prev_byte"
    NEXT_BYTE = "next_byte"
    PREV_WORD = "prev_word"
    NEXT_WORD = "next_word"
    LINE_BEGIN = "line_begin"
    LINE_END = "line_end"
    LINE_UP = "line_up"
    LINE_DOWN = "line_down"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    FILE_BEGIN = "file_begin"
    FILE_END = "file_end"


@dataclass(frozen=True)
class Absolute:
    """Jump to `offset`, preferring `base` as the page start if it shows it."""

    offset: int
    base: int | None = None


Intent = Direction | Absolute


@dataclass(frozen=True)
class Cursor:
    offset: int = 0
    half: HalfByte = HalfByte.LEFT
    place: Place = Place.HEX

    def switched(self) -> Cursor:
        place = Place.ASCII if self.place is Place.HEX else Place.HEX
        return replace(self, place=place, half=HalfByte.LEFT)


@dataclass(frozen=True)
class PageView:
    base: int = 0
    columns: int = 16
    rows: int = 16

    def __post_init__(self) -> None:
        if self.columns <= 0 or self.rows <= 0:
            raise ValueError("columns and rows must be positive")

    @property
    def page_size(self) -> int:
        return self.rows * self.columns

    def visible(self, offset: int) -> bool:
        return self.base <= offset < self.base + self.page_size

    def with_base(self, base: int) -> PageView:
        return replace(self, base=base)


def last_page_base(file_size: int, columns: int, rows: int) -> int:
    """Base of the page whose last row holds the final byte (0 for short files)."""
    rounded = -(-file_size // columns) * columns
    return max(0, rounded - rows * columns)


def _row_start(offset: int, columns: int) -> int:
    return offset - offset % columns


def _follow(offset: int, base: int, columns: int, page_size: int) -> int:
    # scroll by whole rows until offset is on the page
    if offset < base:
        return _row_start(offset, columns)
    if offset >= base + page_size:
        return _row_start(offset, columns) - page_size + columns
    return base


def move(intent: Intent, cursor: Cursor, view: PageView, file_size: int) -> tuple[Cursor, int]:
    """Apply a movement intent.

    Returns the new cursor and the new page base. The result always satisfies
    `0 <= offset < file_size`, `base % columns == 0` and
    `base <= offset < base + rows * columns`.
    """
    assert file_size > 0, "file must not be empty"
    assert 0 <= cursor.offset < file_size, "cursor outside the file"

    cols = view.columns
    page = view.page_size
    last = file_size - 1
    offset = cursor.offset
    half = cursor.half
    base = _row_start(max(0, view.base), cols)
    hex_place = cursor.place is Place.HEX

    if intent is Direction.PREV_HALF and not hex_place:
        intent = Direction.PREV_BYTE
    elif intent is Direction.NEXT_HALF and not hex_place:
        intent = Direction.NEXT_BYTE

    if isinstance(intent, Absolute):
        offset = min(max(intent.offset, 0), last)
        half = HalfByte.LEFT
        if intent.base is not None:
            base = _row_start(max(0, intent.base), cols)
        if not (base <= offset < base + page):
            row = offset // cols
            base = max(0, row - view.rows // 3) * cols
        base = min(base, last_page_base(file_size, cols, view.rows))

    elif intent is Direction.PREV_HALF:
        if half is HalfByte.RIGHT:
            half = HalfByte.LEFT
        elif offset > 0:
            offset -= 1
            half = HalfByte.RIGHT
        base = _follow(offset, base, cols, page)

    elif intent is Direction.NEXT_HALF:
        if half is HalfByte.LEFT:
            half = HalfByte.RIGHT
        elif offset < last:
            offset += 1
            half = HalfByte.LEFT
        base = _follow(offset, base, cols, page)

    elif intent is Direction.PREV_BYTE:
        half = HalfByte.LEFT
        if offset > 0:
            offset -= 1
        base = _follow(offset, base, cols, page)

    elif intent is Direction.NEXT_BYTE:
        half = HalfByte.LEFT
        if offset < last:
            offset += 1
        base = _follow(offset, base, cols, page)

    elif intent is Direction.PREV_WORD:
        half = HalfByte.LEFT
        if offset > 0:
            offset = (offset - 1) // WORD_SIZE * WORD_SIZE
        base = _follow(offset, base, cols, page)

    elif intent is Direction.NEXT_WORD:
        half = HalfByte.LEFT
        offset = min((offset // WORD_SIZE + 1) * WORD_SIZE, last)
        base = _follow(offset, base, cols, page)

    elif intent is Direction.LINE_BEGIN:
        half = HalfByte.LEFT
        offset = _row_start(offset, cols)

    elif intent is Direction.LINE_END:
        half = HalfByte.LEFT
        offset = min(_row_start(offset, cols) + cols - 1, last)

    elif intent is Direction.LINE_UP:
        if offset >= cols:
            offset -= cols
        base = _follow(offset, base, cols, page)

    elif intent is Direction.LINE_DOWN:
        if offset + cols <= last:
            offset += cols
        elif _row_start(offset, cols) + cols <= last:
            # partial last row: land on the final byte
            offset = last
            half = HalfByte.LEFT
        base = _follow(offset, base, cols, page)

    elif intent is Direction.SCROLL_UP:
        if base > 0:
            base -= cols
            offset -= cols

    elif intent is Direction.SCROLL_DOWN:
        if base + page <= last:
            base += cols
            offset = min(offset + cols, last)

    elif intent is Direction.PAGE_UP:
        if base >= page:
            base -= page
            offset -= page
        else:
            base = 0
            if offset < page:
                offset = 0
                half = HalfByte.LEFT
            else:
                offset -= page

    elif intent is Direction.PAGE_DOWN:
        target = offset + page
        if target > last:
            target = last
            half = HalfByte.LEFT
        offset = target
        base = min(base + page, last_page_base(file_size, cols, view.rows))
        base = _follow(offset, base, cols, page)

    elif intent is Direction.FILE_BEGIN:
        offset = 0
        base = 0
        half = HalfByte.LEFT

    elif intent is Direction.FILE_END:
        offset = last
        base = last_page_base(file_size, cols, view.rows)
        half = HalfByte.LEFT

    else:  # pragma: no cover - exhaustive over Direction
        raise ValueError(f"unknown movement: {intent!r}")

    base = _follow(offset, base, cols, page)
    assert 0 <= offset < file_size
    assert base % cols == 0 and base <= offset < base + page
    return replace(cursor, offset=offset, half=half), base

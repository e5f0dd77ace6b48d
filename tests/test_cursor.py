from __future__ import annotations

import itertools

import pytest

from hexedit.core.cursor import (
    Absolute,
    Cursor,
    Direction,
    HalfByte,
    PageView,
    Place,
    last_page_base,
    move,
)


def _starting_states():
    for size, cols, rows in itertools.product((1, 5, 16, 17, 100, 1000), (8, 16), (1, 4)):
        page = cols * rows
        for offset in sorted({0, 1, size // 2, size - 2, size - 1} & set(range(size))):
            row_start = offset - offset % cols
            for base in sorted({row_start, max(0, row_start - page + cols)}):
                for half in HalfByte:
                    for place in Place:
                        yield size, Cursor(offset, half, place), PageView(base, cols, rows)


STATES = list(_starting_states())
INTENTS = list(Direction) + [Absolute(0), Absolute(-7), Absolute(37), Absolute(10**9), Absolute(40, base=32)]


@pytest.mark.parametrize("intent", INTENTS, ids=str)
def test_every_intent_keeps_cursor_on_page(intent) -> None:
    for size, cursor, view in STATES:
        new, base = move(intent, cursor, view, size)
        assert 0 <= new.offset < size
        assert base % view.columns == 0
        assert base <= new.offset < base + view.page_size
        assert new.place is cursor.place


def _mv(intent, offset=0, size=100, cols=16, rows=4, base=None, half=HalfByte.LEFT, place=Place.HEX):
    if base is None:
        base = offset - offset % cols
        base = min(base, last_page_base(size, cols, rows))
    cur, new_base = move(intent, Cursor(offset, half, place), PageView(base, cols, rows), size)
    return cur.offset, cur.half, new_base


def test_half_steps_toggle_nibble() -> None:
    assert _mv(Direction.NEXT_HALF, 5)[:2] == (5, HalfByte.RIGHT)
    assert _mv(Direction.NEXT_HALF, 5, half=HalfByte.RIGHT)[:2] == (6, HalfByte.LEFT)
    assert _mv(Direction.PREV_HALF, 5, half=HalfByte.RIGHT)[:2] == (5, HalfByte.LEFT)
    assert _mv(Direction.PREV_HALF, 5)[:2] == (4, HalfByte.RIGHT)


def test_half_steps_stop_at_file_boundaries() -> None:
    assert _mv(Direction.PREV_HALF, 0)[:2] == (0, HalfByte.LEFT)
    assert _mv(Direction.NEXT_HALF, 99, half=HalfByte.RIGHT)[:2] == (99, HalfByte.RIGHT)


def test_half_steps_move_whole_bytes_in_ascii_place() -> None:
    assert _mv(Direction.NEXT_HALF, 5, place=Place.ASCII)[:2] == (6, HalfByte.LEFT)
    assert _mv(Direction.PREV_HALF, 5, place=Place.ASCII)[:2] == (4, HalfByte.LEFT)


@pytest.mark.parametrize(
    "intent,start,expected",
    [
        (Direction.PREV_WORD, 6, 4),
        (Direction.PREV_WORD, 4, 0),
        (Direction.PREV_WORD, 0, 0),
        (Direction.NEXT_WORD, 5, 8),
        (Direction.NEXT_WORD, 8, 12),
        (Direction.NEXT_WORD, 97, 99),
        (Direction.LINE_BEGIN, 21, 16),
        (Direction.LINE_END, 21, 31),
        (Direction.LINE_END, 98, 99),
        (Direction.LINE_UP, 20, 4),
        (Direction.LINE_UP, 3, 3),
        (Direction.LINE_DOWN, 4, 20),
        (Direction.PREV_BYTE, 0, 0),
        (Direction.NEXT_BYTE, 99, 99),
        (Direction.FILE_BEGIN, 77, 0),
        (Direction.FILE_END, 3, 99),
    ],
)
def test_simple_moves(intent: Direction, start: int, expected: int) -> None:
    assert _mv(intent, start)[0] == expected


def test_line_down_into_partial_last_row_lands_on_last_byte() -> None:
    assert _mv(Direction.LINE_DOWN, 10, size=20)[0] == 19
    # already on the last row: stays
    assert _mv(Direction.LINE_DOWN, 17, size=20)[0] == 17


def test_file_end_shows_last_full_page() -> None:
    offset, _, base = _mv(Direction.FILE_END, 0, size=100, cols=16, rows=4)
    assert offset == 99
    assert base == 48


def test_page_down_and_up() -> None:
    offset, _, base = _mv(Direction.PAGE_DOWN, 0)
    assert (offset, base) == (64, 48)
    offset, _, base = _mv(Direction.PAGE_DOWN, 60)
    assert offset == 99
    offset, half, base = _mv(Direction.PAGE_UP, 10, half=HalfByte.RIGHT)
    assert (offset, half, base) == (0, HalfByte.LEFT, 0)
    offset, _, base = _mv(Direction.PAGE_UP, 90, size=1000, base=80)
    assert (offset, base) == (26, 16)


def test_scroll_moves_window_and_cursor_together() -> None:
    offset, _, base = _mv(Direction.SCROLL_DOWN, 5, base=0)
    assert (offset, base) == (21, 16)
    offset, _, base = _mv(Direction.SCROLL_UP, 21, base=16)
    assert (offset, base) == (5, 0)
    # nothing left to scroll
    assert _mv(Direction.SCROLL_DOWN, 60, base=48)[::2] == (60, 48)
    assert _mv(Direction.SCROLL_UP, 5, base=0)[::2] == (5, 0)


def test_scroll_down_reaches_row_of_final_byte() -> None:
    # final byte 112 sits alone on the row just below the page
    offset, _, base = _mv(Direction.SCROLL_DOWN, 60, size=113, base=48)
    assert (offset, base) == (76, 64)
    assert base == last_page_base(113, 16, 4)
    assert _mv(Direction.SCROLL_DOWN, 76, size=113, base=64)[::2] == (76, 64)


def test_absolute_recenters_a_third_from_top() -> None:
    offset, half, base = _mv(Absolute(500), 0, size=1000, cols=16, rows=6, half=HalfByte.RIGHT)
    assert (offset, half) == (500, HalfByte.LEFT)
    assert base == (500 // 16 - 2) * 16


def test_absolute_keeps_visible_base() -> None:
    assert _mv(Absolute(40, base=32), 0)[::2] == (40, 32)
    # already visible under the current base
    assert _mv(Absolute(30), 20, base=16)[::2] == (30, 16)


def test_absolute_clamps_target_and_base() -> None:
    assert _mv(Absolute(-3), 50)[0] == 0
    offset, _, base = _mv(Absolute(10**6), 0)
    assert offset == 99
    assert base == last_page_base(100, 16, 4)


@pytest.mark.parametrize(
    "size,cols,rows,expected",
    [(1, 16, 4, 0), (64, 16, 4, 0), (65, 16, 4, 16), (100, 16, 4, 48), (100, 10, 1, 90)],
)
def test_last_page_base(size: int, cols: int, rows: int, expected: int) -> None:
    assert last_page_base(size, cols, rows) == expected


def test_switch_place_resets_half() -> None:
    c = Cursor(3, HalfByte.RIGHT, Place.HEX).switched()
    assert c == Cursor(3, HalfByte.LEFT, Place.ASCII)
    assert c.switched().place is Place.HEX


def test_page_view_rejects_non_positive_dimensions() -> None:
    with pytest.raises(ValueError):
        PageView(0, 0, 4)
    with pytest.raises(ValueError):
        PageView(0, 16, 0)

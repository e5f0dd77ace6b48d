from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("textual")
from rich.style import Style  # noqa: E402
from rich.text import Span  # noqa: E402

from hexedit.core.cursor import HalfByte, Place  # noqa: E402
from hexedit.core.document import Document  # noqa: E402
from hexedit.core.page import PageSnapshot  # noqa: E402
from hexedit.ui.palette import DARK, LIGHT, get_palette  # noqa: E402
from hexedit.widgets.hex_view import HexView, columns_for_width, render_page  # noqa: E402


def snapshot(data: bytes, columns: int = 8, rows: int = 2, **kw) -> PageSnapshot:
    fields = dict(
        base=0,
        columns=columns,
        rows=rows,
        data=data,
        changed=tuple(False for _ in data),
        cursor_offset=0,
        half=HalfByte.LEFT,
        place=Place.HEX,
    )
    fields.update(kw)
    return PageSnapshot(**fields)


def test_hex_and_ascii_columns() -> None:
    page = snapshot(bytes([0x41, 0x00, 0x20, 0x7F, 0x42, 0x43, 0x44, 0x45]))
    text = render_page(page, DARK)
    assert text.plain == "00000000  41 00 20 7F 42 43 44 45  |A. .BCDE|"


def test_partial_last_row_is_padded() -> None:
    page = snapshot(b"ABCDEFG", columns=4)
    lines = render_page(page).plain.split("\n")
    assert lines == ["00000000  41 42 43 44  |ABCD|", "00000004  45 46 47     |EFG|"]


def test_ascii_column_can_be_hidden() -> None:
    page = snapshot(b"AB", columns=2, rows=1)
    assert render_page(page, show_ascii=False).plain == "00000000  41 42"


def test_active_nibble_is_highlighted() -> None:
    nibble = Style(bgcolor=DARK.nibble_bg, color=DARK.cursor_fg, bold=True)
    text = render_page(snapshot(b"\x12\x34"), DARK)
    assert Span(10, 11, nibble) in text.spans
    text = render_page(snapshot(b"\x12\x34", half=HalfByte.RIGHT), DARK)
    assert Span(11, 12, nibble) in text.spans


def test_ascii_place_moves_highlight() -> None:
    page = snapshot(b"\x12\x34", columns=2, rows=1, place=Place.ASCII)
    text = render_page(page, LIGHT)
    inactive = Style(bgcolor=LIGHT.cursor_inactive_bg, color=LIGHT.cursor_fg)
    cursor = Style(bgcolor=LIGHT.cursor_bg, color=LIGHT.cursor_fg)
    assert Span(10, 12, inactive) in text.spans
    # "00000000  12 34  |" is 18 cells
    assert Span(18, 19, cursor) in text.spans


def test_changed_bytes_use_modified_colour() -> None:
    page = snapshot(b"\x12\x34\x56", changed=(False, True, False))
    text = render_page(page, DARK)
    assert Span(13, 15, Style(color=DARK.modified_fg, bold=True)) in text.spans


@pytest.mark.parametrize(
    "width,ascii_col,expected",
    [(80, True, 16), (60, True, 8), (10, True, 8), (200, True, 40), (80, False, 16)],
)
def test_columns_for_width(width: int, ascii_col: bool, expected: int) -> None:
    assert columns_for_width(width, ascii_col) == expected


def test_palette_lookup() -> None:
    assert get_palette("LIGHT") is LIGHT
    assert get_palette("unknown") is DARK


def test_widget_renders_document_page(tmp_path: Path) -> None:
    p = tmp_path / "d.bin"
    p.write_bytes(b"hello world, hexedit")
    with Document.open(p, rows=2, columns=16) as doc:
        view = HexView(doc, palette=DARK)
        text = view.render()
        assert text.plain.splitlines()[0].endswith("|hello world, hex|")
        assert text.plain.splitlines()[1].startswith("00000010  65 64 69 74")

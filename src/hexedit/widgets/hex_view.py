from __future__ import annotations

from contextlib import suppress

from rich.style import Style
from rich.text import Text
from textual.binding import Binding
from textual.events import Key, Resize
from textual.widget import Widget

from hexedit.core.cursor import Direction, HalfByte, Place
from hexedit.core.document import Document
from hexedit.core.page import PageSnapshot
from hexedit.ui.palette import DARK, Palette

OFFSET_WIDTH = 10  # "XXXXXXXX  "


def columns_for_width(width: int, show_ascii: bool = True) -> int:
    """Bytes per row that fit `width` cells, a multiple of 8 (min 8)."""
    per_byte = 4 if show_ascii else 3
    extra = OFFSET_WIDTH + (3 if show_ascii else 0)
    cols = (width - extra) // per_byte
    return max(8, cols - cols % 8)


def render_page(page: PageSnapshot, palette: Palette = DARK, *, show_ascii: bool = True) -> Text:
    """Render a page snapshot as Rich text: offsets, hex cells, ASCII column."""
    lines: list[Text] = []
    cols = page.columns
    cur = page.cursor_offset
    hex_active = page.place is Place.HEX
    cursor_style = Style(bgcolor=palette.cursor_bg, color=palette.cursor_fg)
    inactive_style = Style(bgcolor=palette.cursor_inactive_bg, color=palette.cursor_fg)
    nibble_style = Style(bgcolor=palette.nibble_bg, color=palette.cursor_fg, bold=True)

    for r in range(page.row_count()):
        offset, data, changed = page.row(r)
        line = Text()
        line.append(f"{offset:08X}  ", style=Style(color=palette.offset_fg))
        for idx, b in enumerate(data):
            cell = f"{b:02X}"
            off = offset + idx
            if off == cur and hex_active:
                left, right = (nibble_style, cursor_style) if page.half is HalfByte.LEFT else (cursor_style, nibble_style)
                line.append(cell[0], style=left)
                line.append(cell[1], style=right)
            else:
                if off == cur:
                    style = inactive_style
                elif changed[idx]:
                    style = Style(color=palette.modified_fg, bold=True)
                elif b == 0:
                    style = Style(color=palette.hex_zero_fg)
                else:
                    style = Style(color=palette.hex_fg)
                line.append(cell, style=style)
            if idx < cols - 1:
                line.append(" ")
        # Pad remaining hex cells
        for pad in range(len(data), cols):
            line.append("  ")
            if pad < cols - 1:
                line.append(" ")

        if show_ascii:
            line.append("  |")
            for idx, b in enumerate(data):
                off = offset + idx
                printable = 32 <= b <= 126
                ch = chr(b) if printable else "."
                if off == cur:
                    style = cursor_style if not hex_active else inactive_style
                elif changed[idx]:
                    style = Style(color=palette.modified_fg, bold=True)
                else:
                    style = Style(color=palette.ascii_fg if printable else palette.ascii_dot_fg)
                line.append(ch, style=style)
            line.append("|")

        lines.append(line)

    return Text("\n").join(lines)


class HexView(Widget):
    """Hex editor widget: renders the document page and turns keys into intents."""

    can_focus = True

    BINDINGS = [
        Binding("tab", "switch_place", "Hex/ASCII", priority=True),
    ]

    NAVIGATION: dict[str, Direction] = {
        "left": Direction.PREV_BYTE,
        "right": Direction.NEXT_BYTE,
        "shift+left": Direction.PREV_HALF,
        "shift+right": Direction.NEXT_HALF,
        "ctrl+left": Direction.PREV_WORD,
        "ctrl+right": Direction.NEXT_WORD,
        "up": Direction.LINE_UP,
        "down": Direction.LINE_DOWN,
        "ctrl+up": Direction.SCROLL_UP,
        "ctrl+down": Direction.SCROLL_DOWN,
        "home": Direction.LINE_BEGIN,
        "end": Direction.LINE_END,
        "ctrl+home": Direction.FILE_BEGIN,
        "ctrl+end": Direction.FILE_END,
        "pageup": Direction.PAGE_UP,
        "pagedown": Direction.PAGE_DOWN,
    }

    # hex place only; in ASCII place these characters are data
    HEX_COMMANDS: dict[str, str] = {
        "g": "go_start",
        "G": "go_end",
        "q": "quit_editor",
        ":": "open_goto",
        "/": "open_search",
        "n": "find_next",
        "N": "find_previous",
        "u": "undo",
    }

    def __init__(
        self,
        document: Document,
        *,
        palette: Palette = DARK,
        fixed_columns: int | None = None,
        show_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.document = document
        self.palette = palette
        self.fixed_columns = fixed_columns
        self.show_ascii = show_ascii

    # ---- Rendering ----
    def render(self) -> Text:
        return render_page(self.document.page, self.palette, show_ascii=self.show_ascii)

    def fit(self, width: int, height: int) -> None:
        cols = self.fixed_columns or columns_for_width(width, self.show_ascii)
        rows = max(1, height)
        view = self.document.view
        if (view.rows, view.columns) != (rows, cols):
            self.document.resize_page(rows, cols)
            self._changed()

    def on_resize(self, event: Resize) -> None:
        self.fit(event.size.width, event.size.height)

    # ---- Input ----
    def move(self, direction: Direction) -> None:
        self.document.move_cursor(direction)
        self._changed()

    def action_switch_place(self) -> None:
        if getattr(self.app, "busy", False):
            return
        self.document.switch_place()
        self._changed()

    def edit_char(self, char: str) -> bool:
        """Apply a typed character to the byte under the cursor."""
        doc = self.document
        if doc.cursor.place is Place.ASCII:
            if not (len(char) == 1 and 32 <= ord(char) <= 126):
                return False
            doc.modify(ord(char), 0xFF)
            doc.move_cursor(Direction.NEXT_BYTE)
        else:
            if len(char) != 1 or char not in "0123456789abcdefABCDEF":
                return False
            nibble = int(char, 16)
            if doc.cursor.half is HalfByte.LEFT:
                doc.modify(nibble << 4, 0xF0)
            else:
                doc.modify(nibble, 0x0F)
            doc.move_cursor(Direction.NEXT_HALF)
        self._changed()
        return True

    def on_key(self, event: Key) -> None:
        if getattr(self.app, "busy", False):
            # a worker owns the document; let Esc reach the app
            return
        direction = self.NAVIGATION.get(event.key)
        if direction is not None:
            event.stop()
            event.prevent_default()
            self.move(direction)
            return
        char = event.character or ""
        if self.document.cursor.place is Place.HEX and char in self.HEX_COMMANDS:
            event.stop()
            event.prevent_default()
            action = getattr(self.app, f"action_{self.HEX_COMMANDS[char]}", None)
            if action is not None:
                action()
            return
        if char and self.edit_char(char):
            event.stop()
            event.prevent_default()

    def _changed(self) -> None:
        self.refresh()
        # Notify app for status line
        with suppress(Exception):
            if hasattr(self.app, "on_document_changed"):
                self.app.on_document_changed()  # type: ignore[attr-defined]

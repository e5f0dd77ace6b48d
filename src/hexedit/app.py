from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Footer, Header, Input, Label, Static

from hexedit.core.config import Config
from hexedit.core.cursor import Direction
from hexedit.core.document import Document
from hexedit.core.errors import FileIOError, HexEditError, OperationCanceled, SequenceNotFound
from hexedit.core.history import History
from hexedit.core.search import parse_sequence
from hexedit.ui.palette import get_palette
from hexedit.widgets.hex_view import HexView

logger = logging.getLogger(__name__)


def parse_offset(text: str) -> int | None:
    """Decimal or 0x-prefixed hex offset; None if unparsable."""
    s = text.strip().lower()
    try:
        if s.startswith("0x"):
            return int(s, 16)
        return int(s, 10)
    except ValueError:
        return None


class StatusProgress:
    """Progress handler that mirrors percent into the status line.

    Long operations run in a worker thread; `cancel()` makes the next
    `update` return False so the document aborts the operation.
    """

    def __init__(self, app: HexeditApp, label: str) -> None:
        self.app = app
        self.label = label
        self.last = -1
        self.canceled = False

    def cancel(self) -> None:
        self.canceled = True

    def update(self, percent: int) -> bool:
        if self.canceled:
            return False
        if percent != self.last:
            self.last = percent
            hint = f"{self.label} {percent}% (Esc cancels)"
            if threading.current_thread() is threading.main_thread():
                self.app.set_status_hint(hint)
            else:
                self.app.call_from_thread(self.app.set_status_hint, hint)
        return not self.canceled


class HexeditApp(App):
    """Textual application shell for hexedit."""

    CSS_PATH = "ui/theme.tcss"

    BINDINGS = [
        ("f1", "open_help", "Help"),
        ("f2", "save", "Save"),
        ("ctrl+s", "save", "Save"),
        ("shift+f2", "open_save_as", "Save As"),
        ("f4", "open_fill", "Fill"),
        ("f5", "open_goto", "Goto"),
        ("f6", "open_insert", "Insert"),
        ("f7", "open_search", "Find"),
        ("f8", "open_cut", "Cut"),
        ("f10", "quit_editor", "Quit"),
        ("ctrl+z", "undo", "Undo"),
        ("ctrl+r", "redo", "Redo"),
        ("ctrl+y", "redo", "Redo"),
        ("escape", "cancel_operation", "Cancel"),
    ]

    def __init__(
        self,
        path: str,
        *,
        config: Config | None = None,
        history: History | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__()
        self._path = path
        self.config = config or Config()
        self.history = history
        self._start_offset = offset
        self.document: Document | None = None
        self.hex_view: HexView | None = None
        self.title = f"hexedit — {os.path.basename(path)}"
        self.status = Static(id="status")
        self._status_hint = ""
        self._quit_armed = False
        self._progress: StatusProgress | None = None

    @property
    def busy(self) -> bool:
        """True while a long operation runs in a worker thread."""
        return self._progress is not None

    def compose(self) -> ComposeResult:  # noqa: D401 - Textual API
        # Delay opening until compose to give clear UI errors
        try:
            self.document = Document.open(self._path, self.config)
        except HexEditError as exc:
            yield Static(f"Error: {exc}")
            return

        self.hex_view = HexView(
            self.document,
            palette=get_palette(self.config.theme),
            fixed_columns=self.config.columns,
            show_ascii=self.config.show_ascii,
        )
        yield Header(show_clock=False, id="header")
        yield self.hex_view
        yield self.status
        yield Footer(id="footer")

    def on_mount(self) -> None:
        if self.document is not None:
            offset = self._start_offset
            if offset is None and self.history is not None:
                offset = self.history.last_position(self.document.path)
            if offset:
                self.document.goto(offset)
        if self.hex_view is not None:
            self.set_focus(self.hex_view)
        self.update_status()

    # ---- Status ----
    def update_status(self) -> None:
        doc = self.document
        if doc is None:
            self.status.update(Text("hexedit"))
            return
        cur = doc.cursor
        # the page snapshot, not the file: a worker may be reading the handle
        got = doc.page.get(cur.offset)
        value = f"{got[0]:02X} {got[0]:3d}" if got else "-- ---"
        mark = "*" if doc.is_modified else ""
        text = (
            f"{os.path.basename(doc.path)}{mark} | {doc.size} bytes | "
            f"0x{cur.offset:08X} ({cur.offset}) | {value} | {cur.place.name.lower()}"
        )
        if self._status_hint:
            text += f" | {self._status_hint}"
        self.status.update(Text(text))

    def set_status_hint(self, text: str | None) -> None:
        self._status_hint = text or ""
        self.update_status()

    def on_document_changed(self) -> None:
        self._quit_armed = False
        self.update_status()

    def _refresh_view(self, hint: str = "") -> None:
        if self.hex_view is not None:
            self.hex_view.refresh()
        self._quit_armed = False
        self.set_status_hint(hint)

    def _run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call into the document and turn editor errors into status hints."""
        try:
            return fn(*args, **kwargs)
        except HexEditError as exc:
            self._report(exc)
        return None

    def _report(self, exc: HexEditError) -> None:
        if isinstance(exc, OperationCanceled):
            self._refresh_view("[canceled]")
        elif isinstance(exc, SequenceNotFound):
            self._refresh_view("[no match]")
        else:
            logger.warning("%s", exc)
            self._refresh_view(f"[{exc}]")

    def _can_act(self) -> bool:
        if self.document is None:
            return False
        if self.busy:
            self.set_status_hint("[busy: Esc cancels]")
            return False
        return True

    def _start(self, label: str, fn: Callable[..., Any], *args: Any, done: Callable[[Any], None]) -> None:
        """Run a long document operation in a worker thread.

        `fn` gets a `StatusProgress` as its last argument; `done` is called on
        the UI thread with the result once the operation succeeds.
        """
        progress = StatusProgress(self, label)
        self._progress = progress
        self.set_status_hint(f"{label}...")

        def work() -> None:
            try:
                result = fn(*args, progress)
            except HexEditError as exc:
                self.call_from_thread(self._finish, done, None, exc)
            else:
                self.call_from_thread(self._finish, done, result, None)

        self.run_worker(work, name=label, group="document", thread=True, exclusive=True)

    def _finish(self, done: Callable[[Any], None], result: Any, error: HexEditError | None) -> None:
        self._progress = None
        if error is not None:
            self._report(error)
        else:
            done(result)

    def action_cancel_operation(self) -> None:
        if self._progress is not None:
            self._progress.cancel()

    def _remember_pattern(self, pattern: bytes) -> None:
        if self.history is not None:
            self.history.pattern = pattern

    # ---- Navigation ----
    def action_go_start(self) -> None:
        if self.hex_view is not None and self._can_act():
            self.hex_view.move(Direction.FILE_BEGIN)

    def action_go_end(self) -> None:
        if self.hex_view is not None and self._can_act():
            self.hex_view.move(Direction.FILE_END)

    def action_open_goto(self) -> None:
        if self._can_act():
            self.push_screen(GotoScreen(), self._goto_submit)

    def _goto_submit(self, value: str | None) -> None:
        if value is None or not self._can_act():
            return
        offs = parse_offset(value)
        if offs is None or offs < 0 or offs >= self.document.size:
            self.set_status_hint("[invalid offset]")
            return
        self.document.goto(offs)
        if self.history is not None:
            self.history.add_goto(offs)
        self._refresh_view()

    # ---- Editing ----
    def action_undo(self) -> None:
        if self._can_act() and self._run(self.document.undo) is not None:
            self._refresh_view()

    def action_redo(self) -> None:
        if self._can_act() and self._run(self.document.redo) is not None:
            self._refresh_view()

    def action_open_fill(self) -> None:
        if not self._can_act():
            return
        start = self.document.cursor.offset
        pattern = self.history.pattern if self.history is not None else b"\x00"
        self.push_screen(
            FieldsScreen(
                "Fill range with pattern:",
                [("start", f"0x{start:X}"), ("end (exclusive)", f"0x{start + 1:X}"), ("pattern", pattern.hex(" "))],
            ),
            self._fill_submit,
        )

    def _fill_submit(self, values: list[str] | None) -> None:
        if values is None or not self._can_act():
            return
        start, end = parse_offset(values[0]), parse_offset(values[1])
        pattern = parse_sequence(values[2])
        if start is None or end is None or pattern is None:
            self.set_status_hint("[invalid fill parameters]")
            return
        changed = self._run(self.document.fill, start, end, pattern)
        if changed is not None:
            self._remember_pattern(pattern)
            self._refresh_view(f"[filled {changed} bytes]")

    def action_open_insert(self) -> None:
        if not self._can_act():
            return
        pattern = self.history.pattern if self.history is not None else b"\x00"
        self.push_screen(
            FieldsScreen(
                "Insert bytes:",
                [("offset", f"0x{self.document.cursor.offset:X}"), ("count", "1"), ("pattern", pattern.hex(" "))],
            ),
            self._insert_submit,
        )

    def _insert_submit(self, values: list[str] | None) -> None:
        if values is None or not self._can_act():
            return
        offset, count = parse_offset(values[0]), parse_offset(values[1])
        pattern = parse_sequence(values[2])
        if offset is None or count is None or pattern is None:
            self.set_status_hint("[invalid insert parameters]")
            return

        def done(_: Any) -> None:
            self._remember_pattern(pattern)
            self._refresh_view(f"[inserted {count} bytes]")

        self._start("inserting", self.document.insert, offset, count, pattern, done=done)

    def action_open_cut(self) -> None:
        if not self._can_act():
            return
        start = self.document.cursor.offset
        self.push_screen(
            FieldsScreen("Cut range:", [("start", f"0x{start:X}"), ("end (exclusive)", f"0x{start + 1:X}")]),
            self._cut_submit,
        )

    def _cut_submit(self, values: list[str] | None) -> None:
        if values is None or not self._can_act():
            return
        start, end = parse_offset(values[0]), parse_offset(values[1])
        if start is None or end is None:
            self.set_status_hint("[invalid range]")
            return
        self._start("cutting", self.document.cut, start, end, done=lambda _: self._refresh_view(f"[cut {end - start} bytes]"))

    # ---- Search ----
    def action_open_search(self) -> None:
        if not self._can_act():
            return
        backward = self.history.search_backward if self.history is not None else False
        last = self.document.last_search or (self.history.last_search if self.history is not None else None)
        self.push_screen(SearchScreen(last.hex(" ") if last else "", backward), self._search_submit)

    def _search_submit(self, value: tuple[str, bool] | None) -> None:
        if value is None or not self._can_act():
            return
        text, backward = value
        needle = parse_sequence(text)
        if needle is None:
            self.set_status_hint("[invalid pattern]")
            return
        if self.history is not None:
            self.history.add_search(needle)
            self.history.search_backward = backward
        self._start("searching", self.document.find, needle, backward, done=self._found)

    def _find_again(self, backward: bool) -> None:
        if not self._can_act():
            return
        if not self.document.last_search:
            self.set_status_hint("[nothing to repeat]")
            return
        self._start("searching", self.document.find_next, backward, done=self._found)

    def _found(self, offset: int) -> None:
        self._refresh_view(f"[found at 0x{offset:X}]")

    def action_find_next(self) -> None:
        self._find_again(False)

    def action_find_previous(self) -> None:
        self._find_again(True)

    # ---- Saving ----
    def action_save(self) -> None:
        if not self._can_act():
            return
        # undone-only edits still need a save to clear the log
        if self.document.tracker.is_empty():
            self.set_status_hint("[no changes]")
            return
        self._start("saving", self.document.save, done=lambda _: self._refresh_view("[saved]"))

    def action_open_save_as(self) -> None:
        if self._can_act():
            self.push_screen(SaveAsModal(self.document.path), self._save_as_submit)

    def _save_as_submit(self, path: str | None) -> None:
        if path is None or not self._can_act():
            return

        def done(_: Any) -> None:
            self.title = f"hexedit — {os.path.basename(self.document.path)}"
            self._refresh_view(f"[saved as {self.document.path}]")

        self._start("saving", self.document.save_as, os.path.expanduser(path), done=done)

    # ---- Misc ----
    def action_open_help(self) -> None:
        self.push_screen(HelpScreen())

    def action_quit_editor(self) -> None:
        if self.busy:
            self.set_status_hint("[busy: Esc cancels]")
            return
        doc = self.document
        if doc is not None and doc.is_modified and not self._quit_armed:
            self._quit_armed = True
            self._status_hint = "[unsaved changes: press quit again to discard]"
            self.update_status()
            return
        self._store_history()
        self.exit()

    def _store_history(self) -> None:
        if self.history is None or self.document is None:
            return
        self.history.set_last_position(self.document.path, self.document.cursor.offset)
        try:
            self.history.save()
        except FileIOError as exc:
            logger.warning("could not save history: %s", exc)

    def on_unmount(self) -> None:
        if self.document is not None:
            self.document.close()


# ---- Simple modals ----


class GotoScreen(ModalScreen[str | None]):
    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Label("Goto offset (hex like 0x1A2B or decimal):")
        self._input = Input(placeholder="offset")
        yield self._input

    def on_mount(self) -> None:  # type: ignore[override]
        self.set_focus(self._input)

    def on_input_submitted(self, event: Input.Submitted) -> None:  # type: ignore[override]
        self.dismiss(event.value)

    def on_key(self, event) -> None:  # type: ignore[override]
        if event.key == "escape":
            self.dismiss(None)


class SearchScreen(ModalScreen[tuple[str, bool] | None]):
    """Search pattern plus direction."""

    def __init__(self, initial: str = "", backward: bool = False) -> None:
        super().__init__()
        self._initial = initial
        self._backward = backward

    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Label("Search (hex bytes e.g. DE AD BE EF, or 'text):")
        self._input = Input(value=self._initial, placeholder="pattern")
        yield self._input
        self._direction = Checkbox("Backward", value=self._backward)
        yield self._direction

    def on_mount(self) -> None:  # type: ignore[override]
        self.set_focus(self._input)

    def on_input_submitted(self, event: Input.Submitted) -> None:  # type: ignore[override]
        self.dismiss((event.value, self._direction.value))

    def on_key(self, event) -> None:  # type: ignore[override]
        if event.key == "escape":
            self.dismiss(None)


class FieldsScreen(ModalScreen[list[str] | None]):
    """Several labelled inputs; Enter moves to the next one, the last submits."""

    def __init__(self, title: str, fields: list[tuple[str, str]]) -> None:
        super().__init__()
        self._title = title
        self._fields = fields
        self._inputs: list[Input] = []

    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Label(self._title)
        for label, value in self._fields:
            yield Label(label)
            inp = Input(value=value, placeholder=label)
            self._inputs.append(inp)
            yield inp

    def on_mount(self) -> None:  # type: ignore[override]
        self.set_focus(self._inputs[0])

    def on_input_submitted(self, event: Input.Submitted) -> None:  # type: ignore[override]
        idx = self._inputs.index(event.input)
        if idx + 1 < len(self._inputs):
            self.set_focus(self._inputs[idx + 1])
        else:
            self.dismiss([inp.value for inp in self._inputs])

    def on_key(self, event) -> None:  # type: ignore[override]
        if event.key == "escape":
            self.dismiss(None)


class SaveAsModal(ModalScreen[str | None]):
    """Modal dialog for Save As functionality."""

    def __init__(self, current: str = "") -> None:
        super().__init__()
        self._current = current

    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Label("Save file as:")
        self._input = Input(value=self._current, placeholder="path/to/file.bin")
        yield self._input
        with Horizontal():
            yield Button("Save", id="save-btn", variant="primary")
            yield Button("Cancel", id="cancel-btn")

    def on_mount(self) -> None:  # type: ignore[override]
        self.set_focus(self._input)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.dismiss(self._input.value.strip() or None)
        elif event.button.id == "cancel-btn":
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:  # type: ignore[override]
        self.dismiss(event.value.strip() or None)

    def on_key(self, event) -> None:  # type: ignore[override]
        if event.key == "escape":
            self.dismiss(None)


class HelpScreen(ModalScreen[None]):
    def compose(self) -> ComposeResult:  # type: ignore[override]
        text = (
            "Move: arrows, Home/End, PgUp/PgDn, Ctrl+Home/End, g/G\n"
            "      Ctrl+Left/Right words, Ctrl+Up/Down scroll, Shift+Left/Right nibbles\n"
            "Edit: hex digits (hex column) or text (ASCII column); Tab switches\n"
            "Undo: u / Ctrl+Z   Redo: Ctrl+R / Ctrl+Y\n"
            "Save: F2 / Ctrl+S   Save as: Shift+F2\n"
            "Goto: F5 / :   Find: F7 / /   Next/previous: n / N\n"
            "Fill: F4   Insert: F6   Cut: F8 (unsaved changes must be saved first)\n"
            "Esc cancels a running save, insert, cut or search\n"
            "Quit: F10 / q (press twice to discard changes)"
        )
        yield Static(text)

    def on_key(self, event) -> None:  # type: ignore[override]
        if event.key in {"escape", "enter", "q"}:
            self.dismiss(None)

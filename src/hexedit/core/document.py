"""Editable document: a file on disk plus pending byte changes and a view."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import suppress
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Callable

from hexedit.core.changes import ByteChange, ChangeTracker, apply_overlay
from hexedit.core.config import Config
from hexedit.core.cursor import Absolute, Cursor, HalfByte, Intent, PageView, move
from hexedit.core.errors import (
    EmptyFileError,
    FileIOError,
    InvalidRange,
    ModifiedGuardError,
    OperationCanceled,
)
from hexedit.core.io import FileCache
from hexedit.core.page import PageSnapshot
from hexedit.core.progress import NullProgress, ProgressHandler, percent
from hexedit.core.search import find_sequence

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 16
DEFAULT_ROWS = 16


def _open_read(path: str) -> tuple[BinaryIO, int]:
    if not os.path.isfile(path):
        if not os.path.exists(path):
            raise FileIOError(path, "open", "no such file")
        raise FileIOError(path, "open", "not a regular file")
    try:
        fh = open(path, "rb")  # noqa: SIM115 - owned by the document
    except OSError as exc:
        raise FileIOError(path, "open", str(exc)) from exc
    try:
        size = os.fstat(fh.fileno()).st_size
    except OSError as exc:
        fh.close()
        raise FileIOError(path, "open", str(exc)) from exc
    return fh, size


def _discard(path: str | os.PathLike[str]) -> None:
    with suppress(OSError):
        os.unlink(path)


class _StreamWriter:
    """Chunked writer reporting progress once per block."""

    def __init__(self, out: BinaryIO, total: int, block: int, progress: ProgressHandler) -> None:
        self.out = out
        self.total = total
        self.block = block
        self.progress = progress
        self.done = 0

    def _tick(self) -> None:
        logger.debug("streamed %d/%d bytes", self.done, self.total)
        if not self.progress.update(percent(self.done, self.total)):
            raise OperationCanceled("aborted by user")

    def copy(self, read: Callable[[int, int], bytes], start: int, end: int) -> None:
        pos = start
        while pos < end:
            self._tick()
            data = read(pos, min(self.block, end - pos))
            if not data:
                raise OSError(f"unexpected end of file at 0x{pos:x}")
            self.out.write(data)
            pos += len(data)
            self.done += len(data)

    def fill(self, pattern: bytes, count: int) -> None:
        # whole pattern repeats per block; keep the phase across blocks
        phase = 0
        remaining = count
        while remaining > 0:
            self._tick()
            size = min(self.block, remaining)
            reps = (phase + size) // len(pattern) + 1
            chunk = (pattern * reps)[phase : phase + size]
            self.out.write(chunk)
            phase = (phase + size) % len(pattern)
            remaining -= size
            self.done += size


class Document:
    """A file opened for editing.

    Owns the file handle, the change tracker, the read cache, the cursor and
    the page view. Byte edits are kept as pending changes and overlaid on
    reads until `save()`; insert/cut rewrite the file directly.
    """

    def __init__(
        self,
        fh: BinaryIO,
        path: str,
        size: int,
        *,
        config: Config | None = None,
        rows: int = DEFAULT_ROWS,
        columns: int | None = None,
    ) -> None:
        self.config = config or Config()
        self.path = path
        self._fh = fh
        self.tracker = ChangeTracker()
        self.cache = FileCache(fh, size, cache_size=self.config.cache_size, path=path)
        self.cursor = Cursor()
        self.view = PageView(base=0, columns=columns or self.config.columns or DEFAULT_COLUMNS, rows=rows)
        self.last_search: bytes | None = None
        self.search_backward = False
        self._diff: dict[int, int] = {}
        self._page: PageSnapshot | None = None
        self.refresh()

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        config: Config | None = None,
        *,
        rows: int = DEFAULT_ROWS,
        columns: int | None = None,
    ) -> Document:
        """Open `path` read-only. Raises EmptyFileError or FileIOError."""
        abs_path = str(Path(path).resolve())
        fh, size = _open_read(abs_path)
        if size == 0:
            fh.close()
            raise EmptyFileError(abs_path)
        logger.info("opened %s (%d bytes)", abs_path, size)
        return cls(fh, abs_path, size, config=config, rows=rows, columns=columns)

    # ---- lifecycle ----
    def close(self) -> None:
        with suppress(OSError):
            self._fh.close()

    def __enter__(self) -> Document:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._fh.closed

    # ---- state ----
    @property
    def size(self) -> int:
        return self.cache.size

    @property
    def is_modified(self) -> bool:
        return bool(self._diff)

    def effective_diff(self) -> dict[int, int]:
        return dict(self._diff)

    @property
    def page(self) -> PageSnapshot:
        assert self._page is not None
        return self._page

    def read(self, offset: int, size: int) -> bytes:
        """Read file content with pending changes applied."""
        return apply_overlay(self.cache.read(offset, size), offset, self._diff)

    def byte_at_cursor(self) -> int:
        return self.read(self.cursor.offset, 1)[0]

    def refresh(self) -> None:
        """Rebuild the visible page from the cache and pending changes."""
        self._diff = self.tracker.effective_diff()
        base = self.view.base
        data = self.read(base, self.view.page_size)
        changed = tuple(base + i in self._diff for i in range(len(data)))
        self._page = PageSnapshot(
            base=base,
            columns=self.view.columns,
            rows=self.view.rows,
            data=data,
            changed=changed,
            cursor_offset=self.cursor.offset,
            half=self.cursor.half,
            place=self.cursor.place,
            modified=bool(self._diff),
        )

    # ---- navigation ----
    def move_cursor(self, intent: Intent) -> bool:
        """Move the cursor; returns True if the page base changed."""
        cursor, base = move(intent, self.cursor, self.view, self.size)
        moved_page = base != self.view.base
        self.cursor = cursor
        self.view = self.view.with_base(base)
        self.refresh()
        return moved_page

    def goto(self, offset: int) -> bool:
        return self.move_cursor(Absolute(offset))

    def switch_place(self) -> None:
        self.cursor = self.cursor.switched()
        self.refresh()

    def resize_page(self, rows: int, columns: int) -> None:
        if rows <= 0 or columns <= 0:
            raise ValueError("rows and columns must be positive")
        base = self.view.base - self.view.base % columns
        self.view = PageView(base=base, columns=columns, rows=rows)
        half = self.cursor.half
        self.move_cursor(Absolute(self.cursor.offset))
        if half is HalfByte.RIGHT:
            self.cursor = replace(self.cursor, half=half)
            self.refresh()

    # ---- byte edits ----
    def modify(self, value: int, mask: int = 0xFF) -> None:
        """Replace the bits selected by `mask` in the byte under the cursor.

        Partial-byte (nibble) edits of the same cell merge into one change.
        """
        offset = self.cursor.offset
        old = self.read(offset, 1)[0]
        new = (old & ~mask & 0xFF) | (value & mask)
        self.tracker.record(offset, old, new, merge=(mask & 0xFF) != 0xFF)
        self.refresh()

    def undo(self) -> ByteChange:
        change = self.tracker.undo()
        self.move_cursor(Absolute(change.offset))
        return change

    def redo(self) -> ByteChange:
        change = self.tracker.redo()
        self.move_cursor(Absolute(change.offset))
        return change

    def _check_range(self, start: int, end: int) -> None:
        if start < 0 or end > self.size or start > end:
            raise InvalidRange(f"invalid range [0x{start:x}, 0x{end:x}) for file of {self.size} bytes")

    def fill(self, start: int, end: int, pattern: bytes) -> int:
        """Fill `[start, end)` with `pattern` repeated; returns bytes changed."""
        self._check_range(start, end)
        if not pattern:
            raise ValueError("pattern must not be empty")
        changed = 0
        block = self.config.block_size
        pos = start
        while pos < end:
            data = self.read(pos, min(block, end - pos))
            for i, old in enumerate(data):
                off = pos + i
                new = pattern[(off - start) % len(pattern)]
                if old != new:
                    self.tracker.record(off, old, new, merge=False)
                    changed += 1
            pos += len(data)
        self.refresh()
        return changed

    # ---- search ----
    def find(self, sequence: bytes, backward: bool = False, progress: ProgressHandler | None = None) -> int:
        """Find `sequence` from the cursor and move there. Returns the offset."""
        self.last_search = bytes(sequence)
        self.search_backward = backward
        found = find_sequence(
            self.read,
            self.size,
            self.cursor.offset,
            self.last_search,
            backward=backward,
            progress=progress,
            window=self.config.search_window,
        )
        self.goto(found)
        return found

    def find_next(self, backward: bool | None = None, progress: ProgressHandler | None = None) -> int:
        if not self.last_search:
            raise ValueError("no sequence searched yet")
        direction = self.search_backward if backward is None else backward
        found = find_sequence(
            self.read,
            self.size,
            self.cursor.offset,
            self.last_search,
            backward=direction,
            progress=progress,
            window=self.config.search_window,
        )
        self.goto(found)
        return found

    # ---- saving ----
    def save(self, progress: ProgressHandler | None = None) -> None:
        """Write pending changes into the file, one seek+write per byte."""
        progress = progress or NullProgress()
        diff = self.effective_diff()
        if not diff:
            # undone-only edits still leave log entries behind
            self.tracker.reset()
            self.refresh()
            return
        total = len(diff)
        try:
            with open(self.path, "r+b") as out:
                for i, (offset, value) in enumerate(diff.items()):
                    if not progress.update(percent(i, total)):
                        raise OperationCanceled("aborted by user")
                    out.seek(offset)
                    out.write(bytes((value,)))
        except OSError as exc:
            raise FileIOError(self.path, "write", str(exc)) from exc
        progress.update(100)
        logger.info("saved %d changed bytes to %s", total, self.path)
        self.tracker.reset()
        self.cache.invalidate()
        self.refresh()

    def save_as(self, path: str | os.PathLike[str], progress: ProgressHandler | None = None) -> None:
        """Write the current content (with changes) to a new file and switch to it."""
        progress = progress or NullProgress()
        target = str(Path(path).resolve())
        if target == self.path:
            self.save(progress)
            return
        try:
            with open(target, "wb") as out:
                writer = _StreamWriter(out, self.size, self.config.block_size, progress)
                writer.copy(self.read, 0, self.size)
        except (OperationCanceled, FileIOError):
            _discard(target)
            raise
        except OSError as exc:
            _discard(target)
            raise FileIOError(target, "write", str(exc)) from exc
        progress.update(100)

        fh, size = _open_read(target)
        self.close()
        self._fh = fh
        self.path = target
        self.cache.attach(fh, size, path=target)
        self.tracker.reset()
        logger.info("saved as %s", target)
        self.refresh()

    # ---- structural edits ----
    def _check_unmodified(self) -> None:
        # any log entry, including undone ones, blocks length-changing edits
        if not self.tracker.is_empty():
            raise ModifiedGuardError(f"{self.path} has unsaved changes; save or undo them first")

    def _read_raw(self, offset: int, size: int) -> bytes:
        self._fh.seek(offset)
        return self._fh.read(size)

    def _rewrite(self, produce: Callable[[_StreamWriter], None], new_size: int, op: str, progress: ProgressHandler) -> None:
        directory = os.path.dirname(self.path)
        try:
            fd, tmp = tempfile.mkstemp(prefix=".hexedit-", dir=directory)
        except OSError as exc:
            raise FileIOError(self.path, op, str(exc)) from exc
        try:
            with os.fdopen(fd, "wb") as out:
                produce(_StreamWriter(out, new_size, self.config.block_size, progress))
            shutil.copymode(self.path, tmp)
        except OperationCanceled:
            _discard(tmp)
            raise
        except OSError as exc:
            _discard(tmp)
            raise FileIOError(self.path, op, str(exc)) from exc
        progress.update(100)

        self.close()
        try:
            os.replace(tmp, self.path)
        except OSError as exc:
            _discard(tmp)
            raise FileIOError(self.path, op, str(exc)) from exc
        finally:
            fh, size = _open_read(self.path)
            self._fh = fh
            self.cache.attach(fh, size, path=self.path)

        self.tracker.reset()
        last = self.size - 1
        if self.cursor.offset > last:
            self.cursor = replace(self.cursor, offset=last, half=HalfByte.LEFT)
        self.move_cursor(Absolute(self.cursor.offset, self.view.base))

    def insert(self, offset: int, count: int, pattern: bytes, progress: ProgressHandler | None = None) -> None:
        """Insert `count` bytes filled with `pattern` before `offset`."""
        self._check_unmodified()
        if offset < 0 or offset > self.size:
            raise InvalidRange(f"insert offset 0x{offset:x} outside the file")
        if count <= 0:
            raise InvalidRange("insert count must be positive")
        if not pattern:
            raise ValueError("pattern must not be empty")
        size = self.size

        def produce(w: _StreamWriter) -> None:
            w.copy(self._read_raw, 0, offset)
            w.fill(pattern, count)
            w.copy(self._read_raw, offset, size)

        self._rewrite(produce, size + count, "insert", progress or NullProgress())
        logger.info("inserted %d bytes at 0x%x into %s", count, offset, self.path)

    def cut(self, start: int, end: int, progress: ProgressHandler | None = None) -> None:
        """Remove the bytes in `[start, end)` from the file."""
        self._check_unmodified()
        self._check_range(start, end)
        if end - start >= self.size:
            raise InvalidRange("cannot cut out the whole file")
        if start == end:
            return
        size = self.size

        def produce(w: _StreamWriter) -> None:
            w.copy(self._read_raw, 0, start)
            w.copy(self._read_raw, end, size)

        self._rewrite(produce, size - (end - start), "cut", progress or NullProgress())
        logger.info("cut [0x%x, 0x%x) from %s", start, end, self.path)

from __future__ import annotations

from dataclasses import dataclass

from hexedit.core.cursor import HalfByte, Place


@dataclass(frozen=True)
class PageSnapshot:
    """Visible page handed to a renderer: bytes with edits applied plus flags."""

    base: int
    columns: int
    rows: int
    data: bytes
    changed: tuple[bool, ...]
    cursor_offset: int
    half: HalfByte
    place: Place
    modified: bool = False

    @property
    def cursor_position(self) -> tuple[int, int]:
        """Cursor as (row, column) within the page."""
        rel = self.cursor_offset - self.base
        return rel // self.columns, rel % self.columns

    def row(self, index: int) -> tuple[int, bytes, tuple[bool, ...]]:
        """Return (offset, bytes, changed flags) for one visible row."""
        lo = index * self.columns
        hi = lo + self.columns
        return self.base + lo, self.data[lo:hi], self.changed[lo:hi]

    def row_count(self) -> int:
        return -(-len(self.data) // self.columns)

    def get(self, offset: int) -> tuple[int, bool] | None:
        if not (self.base <= offset < self.base + len(self.data)):
            return None
        i = offset - self.base
        return self.data[i], self.changed[i]

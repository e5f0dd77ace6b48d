from __future__ import annotations

from dataclasses import dataclass

from hexedit.core.errors import NothingToRedo, NothingToUndo


@dataclass
class ByteChange:
    offset: int
    old: int
    new: int


class ChangeTracker:
    """Undo/redo log of single-byte substitutions.

    Entries `[0, index)` are applied; entries `[index, len)` form the redo tail,
    which is discarded as soon as a new change is recorded.
    """

    def __init__(self) -> None:
        self._log: list[ByteChange] = []
        self._index = 0

    def __len__(self) -> int:
        return len(self._log)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> list[ByteChange]:
        return list(self._log)

    def is_empty(self) -> bool:
        return not self._log

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._log)

    def record(self, offset: int, old: int, new: int, *, merge: bool = True) -> None:
        """Record a change of the byte at `offset` from `old` to `new`.

        With `merge`, a change to the same offset as the most recent active
        entry updates that entry in place (successive nibble keystrokes end up
        as one entry).
        """
        if not (0 <= old <= 0xFF and 0 <= new <= 0xFF):
            raise ValueError("byte values must be in 0..255")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        # branch-on-edit: drop the redo tail
        if self._index < len(self._log):
            del self._log[self._index :]

        if merge and self._log and self._log[-1].offset == offset:
            self._log[-1].new = new
        else:
            self._log.append(ByteChange(offset, old, new))
        self._index = len(self._log)

    def undo(self) -> ByteChange:
        if self._index == 0:
            raise NothingToUndo("nothing to undo")
        self._index -= 1
        ch = self._log[self._index]
        return ByteChange(ch.offset, ch.old, ch.new)

    def redo(self) -> ByteChange:
        if self._index == len(self._log):
            raise NothingToRedo("nothing to redo")
        ch = self._log[self._index]
        self._index += 1
        return ByteChange(ch.offset, ch.old, ch.new)

    def reset(self) -> None:
        self._log.clear()
        self._index = 0

    def effective_diff(self) -> dict[int, int]:
        """Net changes as offset -> value, sorted by offset.

        Keeps the first `old` and the last `new` seen per offset over the
        active entries and drops offsets whose value went back to the origin.
        """
        origins: dict[int, int] = {}
        values: dict[int, int] = {}
        for ch in self._log[: self._index]:
            origins.setdefault(ch.offset, ch.old)
            values[ch.offset] = ch.new
        return {off: values[off] for off in sorted(values) if values[off] != origins[off]}


def apply_overlay(data: bytes, offset: int, diff: dict[int, int]) -> bytes:
    """Merge `diff` entries falling in `[offset, offset + len(data))` onto `data`."""
    if not diff or not data:
        return data
    end = offset + len(data)
    out: bytearray | None = None
    if len(diff) < len(data):
        for addr, value in diff.items():
            if offset <= addr < end:
                if out is None:
                    out = bytearray(data)
                out[addr - offset] = value
    else:
        for addr in range(offset, end):
            value = diff.get(addr)
            if value is not None:
                if out is None:
                    out = bytearray(data)
                out[addr - offset] = value
    return data if out is None else bytes(out)

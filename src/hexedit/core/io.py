from __future__ import annotations

import logging
from typing import BinaryIO

from hexedit.core.errors import FileIOError

logger = logging.getLogger(__name__)

CACHE_SIZE = 4096


class InvalidOffset(ValueError):
    """Raised when an invalid (e.g., negative) offset is provided."""


class FileCache:
    """Single-window read-through cache over an open binary file.

    At most one contiguous window of on-disk bytes is held at a time. A read
    that is not fully contained in the window replaces it with a fresh one
    starting at the requested offset (one seek + one read). Edited content is
    never returned here; overlaying pending changes is the caller's job.
    """

    def __init__(self, fh: BinaryIO, size: int, *, cache_size: int = CACHE_SIZE, path: str = "") -> None:
        if cache_size <= 0:
            raise ValueError("cache_size must be positive")
        self._fh = fh
        self._size = int(size)
        self._cache_size = int(cache_size)
        self._path = path or getattr(fh, "name", "")
        self._start = 0
        self._data = b""
        self.refills = 0

    @property
    def size(self) -> int:
        """File size in bytes."""
        return self._size

    @property
    def window(self) -> tuple[int, int]:
        """Current window as (start, length)."""
        return self._start, len(self._data)

    def attach(self, fh: BinaryIO, size: int, *, path: str = "") -> None:
        """Point the cache at another handle (after save-as or a rewrite)."""
        self._fh = fh
        self._size = int(size)
        if path:
            self._path = path
        self.invalidate()

    def invalidate(self) -> None:
        self._start = 0
        self._data = b""

    def _contains(self, offset: int, size: int) -> bool:
        return self._start <= offset and offset + size <= self._start + len(self._data)

    def _refill(self, offset: int, size: int) -> None:
        length = max(min(self._cache_size, self._size - offset), size)
        try:
            self._fh.seek(offset)
            data = self._fh.read(length)
        except OSError as exc:
            raise FileIOError(self._path, "read", str(exc)) from exc
        if len(data) < size:
            raise FileIOError(self._path, "read", f"short read at 0x{offset:x}")
        self._start = offset
        self._data = data
        self.refills += 1
        logger.debug("cache refill start=0x%x length=%d", offset, len(data))

    def read(self, offset: int, size: int) -> bytes:
        """Read up to `size` bytes starting at `offset`.

        - Negative `offset` or `size` raises `InvalidOffset`.
        - If `offset` >= size of the file, returns b"".
        - Reading past EOF returns the truncated data.
        """
        if offset < 0:
            raise InvalidOffset("offset must be >= 0")
        if size < 0:
            raise InvalidOffset("size must be >= 0")
        if size == 0 or offset >= self._size:
            return b""

        size = min(size, self._size - offset)
        if not self._contains(offset, size):
            self._refill(offset, size)

        start = offset - self._start
        return self._data[start : start + size]

    def byte_at(self, offset: int) -> int | None:
        """Return the on-disk byte at `offset`, or None at EOF."""
        data = self.read(offset, 1)
        return data[0] if data else None

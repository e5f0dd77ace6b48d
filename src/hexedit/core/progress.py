from __future__ import annotations

from typing import Callable, Protocol


class ProgressHandler(Protocol):
    def update(self, percent: int) -> bool:
        """Report completion in percent (0..100); return False to abort."""
        ...


class NullProgress:
    """Progress handler that never aborts."""

    def update(self, percent: int) -> bool:
        return True


class CallbackProgress:
    """Adapts a plain `fn(percent) -> bool` callable to ProgressHandler."""

    def __init__(self, fn: Callable[[int], bool]) -> None:
        self._fn = fn
        self.last = -1

    def update(self, percent: int) -> bool:
        self.last = percent
        return bool(self._fn(percent))


def percent(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return max(0, min(100, done * 100 // total))

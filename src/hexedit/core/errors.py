from __future__ import annotations


class HexEditError(Exception):
    """Base class for all editor core failures."""


class FileIOError(HexEditError):
    """Read or write failure on a backing file.

    Carries the path and the operation that failed so a front-end can offer
    retry/cancel. The originating `OSError` is chained as `__cause__`.
    """

    def __init__(self, path: str, operation: str, reason: str) -> None:
        super().__init__(f"{operation} failed for {path}: {reason}")
        self.path = path
        self.operation = operation
        self.reason = reason


class EmptyFileError(HexEditError):
    """Raised when opening a zero-length file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File is empty: {path}")
        self.path = path


class SequenceNotFound(HexEditError):
    """Search made one full revolution without a match."""


class OperationCanceled(HexEditError):
    """A progress handler asked to abort a long-running operation."""


class InvalidRange(HexEditError, ValueError):
    """Range or offset outside the file, or start > end."""


class ModifiedGuardError(HexEditError):
    """Structural edit attempted while the change log is not empty."""


class NothingToUndo(HexEditError):
    pass


class NothingToRedo(HexEditError):
    pass


class ConfigError(HexEditError, ValueError):
    """Invalid configuration value."""

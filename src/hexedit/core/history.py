"""Persistent editor history: last positions per file, searches, gotos."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hexedit.core.config import Config
from hexedit.core.errors import FileIOError

logger = logging.getLogger(__name__)


def get_history_path() -> Path:
    if os.name == "nt":  # Windows
        base = os.environ.get("LOCALAPPDATA", os.path.expanduser("~"))
        return Path(base) / "hexedit" / "history.yaml"
    base = os.environ.get("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return Path(base) / "hexedit" / "history.yaml"


def _abs(path: str) -> str:
    try:
        return str(Path(path).resolve())
    except OSError:
        return path


def _push(items: list, value: Any, limit: int) -> None:
    if value in items:
        items.remove(value)
    items.insert(0, value)
    del items[limit:]


@dataclass
class History:
    path: Path
    max_files: int = 10
    max_search: int = 10
    max_goto: int = 10
    files: list[tuple[str, int]] = field(default_factory=list)
    search: list[bytes] = field(default_factory=list)
    goto: list[int] = field(default_factory=list)
    pattern: bytes = b"\x00"
    search_backward: bool = False

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None, config: Config | None = None) -> History:
        """Load history; unreadable or malformed files give an empty history."""
        cfg = config or Config()
        hist = cls(
            path=Path(path) if path is not None else get_history_path(),
            max_files=cfg.history_files,
            max_search=cfg.history_search,
            max_goto=cfg.history_goto,
        )
        if not hist.path.exists():
            return hist
        try:
            data = yaml.safe_load(hist.path.read_text(encoding="utf-8")) or {}
            hist._parse(data)
        except (OSError, yaml.YAMLError, KeyError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("ignoring unreadable history %s: %s", hist.path, exc)
            hist.files.clear()
            hist.search.clear()
            hist.goto.clear()
            hist.pattern = b"\x00"
            hist.search_backward = False
        return hist

    def _parse(self, data: dict[str, Any]) -> None:
        for entry in data.get("files") or []:
            self.files.append((str(entry["path"]), int(entry["offset"])))
        for seq in data.get("search") or []:
            self.search.append(bytes.fromhex(str(seq)))
        for off in data.get("goto") or []:
            self.goto.append(int(off))
        if data.get("pattern"):
            self.pattern = bytes.fromhex(str(data["pattern"]))
        self.search_backward = bool(data.get("search_backward", False))
        del self.files[self.max_files :]
        del self.search[self.max_search :]
        del self.goto[self.max_goto :]

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [{"path": p, "offset": off} for p, off in self.files],
            "search": [seq.hex() for seq in self.search],
            "goto": list(self.goto),
            "pattern": self.pattern.hex(),
            "search_backward": self.search_backward,
        }

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False), encoding="utf-8")
        except OSError as exc:
            raise FileIOError(str(self.path), "write", str(exc)) from exc

    # ---- file positions ----
    def last_position(self, file: str) -> int | None:
        key = _abs(file)
        for name, off in self.files:
            if name == key:
                return off
        return None

    def set_last_position(self, file: str, offset: int) -> None:
        key = _abs(file)
        self.files = [(n, o) for n, o in self.files if n != key]
        self.files.insert(0, (key, int(offset)))
        del self.files[self.max_files :]

    # ---- search / goto / pattern ----
    def add_search(self, sequence: bytes) -> None:
        if sequence:
            _push(self.search, bytes(sequence), self.max_search)

    def add_goto(self, offset: int) -> None:
        _push(self.goto, int(offset), self.max_goto)

    @property
    def last_search(self) -> bytes | None:
        return self.search[0] if self.search else None

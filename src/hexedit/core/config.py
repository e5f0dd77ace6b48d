"""Editor configuration loaded from a YAML file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from hexedit.core.errors import ConfigError

logger = logging.getLogger(__name__)

THEMES = ("dark", "light", "dim")


@dataclass(frozen=True)
class Config:
    columns: int | None = None  # None: fit the terminal width
    show_ascii: bool = True
    theme: str = "dark"
    cache_size: int = 4096
    search_window: int = 1024
    block_size: int = 64 * 1024
    history_files: int = 10
    history_search: int = 10
    history_goto: int = 10

    def __post_init__(self) -> None:
        if self.columns is not None and self.columns <= 0:
            raise ConfigError("view.columns must be positive")
        if self.theme not in THEMES:
            raise ConfigError(f"view.theme must be one of {', '.join(THEMES)}, got {self.theme!r}")
        if self.cache_size < 16:
            raise ConfigError("cache.size must be >= 16")
        if self.search_window < 2:
            raise ConfigError("cache.search_window must be >= 2")
        if self.block_size <= 0:
            raise ConfigError("cache.block_size must be positive")
        for name in ("history_files", "history_search", "history_goto"):
            if getattr(self, name) < 0:
                raise ConfigError(f"history.{name.split('_', 1)[1]} must be >= 0")


def get_user_config_path() -> Path:
    """Platform-appropriate config file location."""
    if os.name == "nt":  # Windows
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(base) / "hexedit" / "config.yaml"
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return Path(base) / "hexedit" / "config.yaml"


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    sec = data.get(name) or {}
    if not isinstance(sec, dict):
        raise ConfigError(f"{name} must be a mapping")
    return sec


def _int(sec: dict[str, Any], key: str, label: str, default: int) -> int:
    val = sec.get(key, default)
    if isinstance(val, bool) or not isinstance(val, int):
        raise ConfigError(f"{label} must be an integer, got {val!r}")
    return val


def config_from_dict(data: dict[str, Any]) -> Config:
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")
    defaults = Config()
    view = _section(data, "view")
    cache = _section(data, "cache")
    history = _section(data, "history")

    ascii_flag = view.get("ascii", defaults.show_ascii)
    if not isinstance(ascii_flag, bool):
        raise ConfigError(f"view.ascii must be true/false, got {ascii_flag!r}")
    theme = str(view.get("theme", defaults.theme)).lower()

    # columns: null or "auto" means fit the terminal
    columns = view.get("columns")
    if columns == "auto":
        columns = None
    if columns is not None:
        columns = _int(view, "columns", "view.columns", 0)

    return Config(
        columns=columns,
        show_ascii=ascii_flag,
        theme=theme,
        cache_size=_int(cache, "size", "cache.size", defaults.cache_size),
        search_window=_int(cache, "search_window", "cache.search_window", defaults.search_window),
        block_size=_int(cache, "block_size", "cache.block_size", defaults.block_size),
        history_files=_int(history, "files", "history.files", defaults.history_files),
        history_search=_int(history, "search", "history.search", defaults.history_search),
        history_goto=_int(history, "goto", "history.goto", defaults.history_goto),
    )


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Load configuration; a missing file gives the defaults."""
    p = Path(path) if path is not None else get_user_config_path()
    if not p.exists():
        logger.debug("no config at %s, using defaults", p)
        return Config()
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read {p}: {exc}") from exc
    cfg = config_from_dict(data)
    logger.info("loaded config from %s", p)
    return cfg

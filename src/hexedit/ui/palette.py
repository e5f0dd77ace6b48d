from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Palette:
    footer_bg: str
    footer_fg: str
    accent: str
    status_bg: str
    status_fg: str
    offset_fg: str
    hex_fg: str
    hex_zero_fg: str
    ascii_fg: str
    ascii_dot_fg: str
    modified_fg: str
    cursor_bg: str
    cursor_fg: str
    cursor_inactive_bg: str
    nibble_bg: str
    error_fg: str


DARK = Palette(
    footer_bg="#1f2430",
    footer_fg="#d8dee9",
    accent="#5ea1ff",
    status_bg="#314f76",
    status_fg="#ffffff",
    offset_fg="#8892a0",
    hex_fg="#d8dee9",
    hex_zero_fg="#6b7280",
    ascii_fg="#d7ba7d",
    ascii_dot_fg="#6b7280",
    modified_fg="#ffb86c",
    cursor_bg="#b36b00",
    cursor_fg="#ffffff",
    cursor_inactive_bg="#3b4252",
    nibble_bg="#ffa657",
    error_fg="#ff5555",
)

LIGHT = Palette(
    footer_bg="#e5e9f0",
    footer_fg="#2e3440",
    accent="#0057b8",
    status_bg="#88c0d0",
    status_fg="#000000",
    offset_fg="#6b7280",
    hex_fg="#2e3440",
    hex_zero_fg="#a0a0a0",
    ascii_fg="#8a5a00",
    ascii_dot_fg="#a0a0a0",
    modified_fg="#c2410c",
    cursor_bg="#5ea1ff",
    cursor_fg="#000000",
    cursor_inactive_bg="#d8dee9",
    nibble_bg="#ffd166",
    error_fg="#cc0000",
)

DIM = Palette(
    footer_bg="#2b2b2b",
    footer_fg="#cccccc",
    accent="#a0a0a0",
    status_bg="#444444",
    status_fg="#f0f0f0",
    offset_fg="#777777",
    hex_fg="#cccccc",
    hex_zero_fg="#666666",
    ascii_fg="#bbbbbb",
    ascii_dot_fg="#666666",
    modified_fg="#e6b673",
    cursor_bg="#7a7a7a",
    cursor_fg="#000000",
    cursor_inactive_bg="#303030",
    nibble_bg="#bbbbbb",
    error_fg="#ff6666",
)

THEMES = {"dark": DARK, "light": LIGHT, "dim": DIM}


def get_palette(theme: str) -> Palette:
    return THEMES.get(theme.lower(), DARK)

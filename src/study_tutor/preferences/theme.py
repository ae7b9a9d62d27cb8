"""Console colour themes selected by the stored ``theme`` preference."""

from __future__ import annotations

from typing import Mapping, Optional

from rich.console import Console
from rich.theme import Theme

from study_tutor.core.store import THEME, THEMES, KeyValueStore

__all__ = ["DEFAULT_THEME", "resolve_theme", "build_theme", "make_console"]

DEFAULT_THEME = "system"

_PALETTES: Mapping[str, Mapping[str, str]] = {
    "light": {
        "tutor.title": "bold blue",
        "tutor.accent": "blue",
        "tutor.muted": "grey42",
        "tutor.correct": "bold green4",
        "tutor.wrong": "bold red3",
        "tutor.selected": "bold dark_orange3",
        "tutor.translation": "italic grey42",
        "tutor.bar": "blue",
    },
    "dark": {
        "tutor.title": "bold cyan",
        "tutor.accent": "cyan",
        "tutor.muted": "grey62",
        "tutor.correct": "bold green",
        "tutor.wrong": "bold red",
        "tutor.selected": "bold yellow",
        "tutor.translation": "italic grey70",
        "tutor.bar": "cyan",
    },
    # Leaves colours to the terminal's own palette.
    "system": {
        "tutor.title": "bold",
        "tutor.accent": "cyan",
        "tutor.muted": "dim",
        "tutor.correct": "bold green",
        "tutor.wrong": "bold red",
        "tutor.selected": "bold",
        "tutor.translation": "italic dim",
        "tutor.bar": "cyan",
    },
}


def resolve_theme(store: Optional[KeyValueStore]) -> str:
    if store is None:
        return DEFAULT_THEME
    value = store.get(THEME, DEFAULT_THEME)
    return value if value in THEMES else DEFAULT_THEME


def build_theme(name: str) -> Theme:
    if name not in _PALETTES:
        raise ValueError(
            f"Unknown theme '{name}'. Choose one of: {', '.join(THEMES)}"
        )
    return Theme(dict(_PALETTES[name]))


def make_console(name: str = DEFAULT_THEME, **kwargs) -> Console:
    return Console(theme=build_theme(name), **kwargs)

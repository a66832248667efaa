"""Text, JSON and colorized rendering for ``list`` output.

Listings are YAML-shaped (``name:`` headers and ``- entry`` rows), so the
Pygments YAML lexer colors them; JSON output uses the JSON lexer.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from typing import TextIO

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import JsonLexer, YamlLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .entry import Entry
from .store import ParcelStore

COLOR_MODES = ("auto", "always", "never")
DEFAULT_STYLE = "monokai"

_FORMATTERS: dict[str, Terminal256Formatter] = {}
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


def format_entries(entries: Iterable[Entry]) -> str:
    return "".join(f"- {entry.display()}\n" for entry in entries)


def format_store(store: ParcelStore) -> str:
    out: list[str] = []
    for name, entries in store.items():
        out.append(f"{name}:\n")
        out.append(format_entries(entries))
    return "".join(out)


def format_names(store: ParcelStore) -> str:
    return "".join(f"{name}\n" for name in store.names())


def format_json(store: ParcelStore, name: str | None = None) -> str:
    """JSON listing: the whole config shape, or one parcel's entry list."""
    if name is not None:
        payload: object = [entry.display() for entry in store.lookup(name)]
    else:
        payload = {"parcels": store.as_dict()}
    return json.dumps(payload, ensure_ascii=False) + "\n"


def should_color(mode: str, stream: TextIO) -> bool:
    """Resolve ``--color``: ``auto`` colors only on a TTY without ``$NO_COLOR``."""
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _normalize_style(style: str) -> str:
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE
    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter_for_style(style: str) -> Terminal256Formatter:
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        formatter = Terminal256Formatter(style=style)
        _FORMATTERS[style] = formatter
    return formatter


def colorize(text: str, as_json: bool = False, style: str = DEFAULT_STYLE) -> str:
    """Highlight listing text for a terminal; unknown styles fall back to monokai."""
    if not text:
        return text
    lexer = JsonLexer() if as_json else YamlLexer()
    return highlight(text, lexer, _formatter_for_style(_normalize_style(style)))

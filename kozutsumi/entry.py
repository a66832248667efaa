"""Entry types and the raw-string classifier.

A parcel entry is one of four closed variants: ``App``, ``File``, ``Url`` and
``Shell``. ``classify`` picks exactly one of them with an ordered rule list.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Union

SHELL_PREFIX = "sh:"
FILE_PREFIX = "fs:"
HOME_MARKER = "~"

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):(.+)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s")
_NETLOC_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "ws", "wss"})


@dataclass(frozen=True)
class App:
    """Application identifier, opened with platform app-launch semantics."""

    name: str
    kind = "app"

    def display(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class File:
    """File or directory path, already home-expanded and normalized."""

    path: Path
    kind = "file"

    def display(self) -> str:
        return str(self.path)

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class Url:
    """Absolute URI with an explicit scheme, kept exactly as written."""

    url: str
    kind = "url"

    @property
    def scheme(self) -> str:
        return self.url.split(":", 1)[0].lower()

    def display(self) -> str:
        return self.url

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class Shell:
    """Shell command text.

    DANGEROUS: running one of these executes arbitrary code through the shell,
    so ``classify`` only produces it when the shell capability is enabled.
    """

    command: str
    kind = "shell"

    def display(self) -> str:
        return self.command

    def __str__(self) -> str:
        return self.display()


Entry = Union[App, File, Url, Shell]


def normalize_path(raw: str) -> Path:
    """Expand ``~`` and collapse ``.``/``..``/duplicate separators lexically."""
    return Path(os.path.normpath(os.path.expanduser(raw)))


def is_absolute_uri(raw: str) -> bool:
    """Return whether ``raw`` is an absolute URI with an explicit scheme.

    Bare domains such as ``example.com`` have no scheme and are rejected. Web
    schemes additionally need a network location (``https:foo`` is rejected).
    """
    if _WHITESPACE_RE.search(raw):
        return False
    match = _SCHEME_RE.match(raw)
    if match is None:
        return False
    scheme, rest = match.group(1).lower(), match.group(2)
    if scheme in _NETLOC_SCHEMES:
        if not rest.startswith("//"):
            return False
        netloc = re.split(r"[/?#]", rest[2:], maxsplit=1)[0]
        return bool(netloc)
    return True


def _shell_rule(raw: str, allow_shell: bool) -> Entry | None:
    if allow_shell and raw.startswith(SHELL_PREFIX):
        return Shell(raw[len(SHELL_PREFIX):].strip())
    return None


def _path_rule(raw: str, allow_shell: bool) -> Entry | None:
    if raw.startswith(FILE_PREFIX):
        return File(normalize_path(raw[len(FILE_PREFIX):].strip()))
    if raw.startswith(HOME_MARKER) or raw.startswith("/"):
        return File(normalize_path(raw))
    return None


def _url_rule(raw: str, allow_shell: bool) -> Entry | None:
    if is_absolute_uri(raw):
        return Url(raw)
    return None


# Precedence is the list order; App is the fallback when nothing matches.
RULES: tuple[Callable[[str, bool], Entry | None], ...] = (
    _shell_rule,
    _path_rule,
    _url_rule,
)


def classify(raw: str, allow_shell: bool = False) -> Entry:
    """Classify one raw entry string into exactly one ``Entry`` variant.

    Never fails: strings that match no rule become ``App`` verbatim,
    surrounding whitespace included.
    """
    for rule in RULES:
        entry = rule(raw, allow_shell)
        if entry is not None:
            return entry
    return App(raw)

"""Exception types surfaced at the CLI boundary.

Everything here derives from ``KozutsumiError`` so ``cli.main`` can turn any
of them into a one-line message and a non-zero exit status.
"""

from __future__ import annotations

from collections.abc import Sequence


class KozutsumiError(Exception):
    """Base class for user-facing failures."""


class ConfigError(KozutsumiError):
    """Config file is missing, unreadable, malformed, or has the wrong shape."""


class ParcelNotFound(KozutsumiError, KeyError):
    """Lookup of a parcel name that the config does not define."""

    def __init__(self, name: str, available: Sequence[str], suggestions: Sequence[str] = ()) -> None:
        self.name = name
        self.available = tuple(available)
        self.suggestions = tuple(suggestions)
        super().__init__(name)

    def __str__(self) -> str:
        listed = ", ".join(self.available) if self.available else "(none)"
        message = f"Parcel `{self.name}` not found. Available parcels: {listed}"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        return message


class LaunchError(KozutsumiError):
    """Every entry of a parcel failed to open."""


class ChooserError(KozutsumiError):
    """The external finder failed in a way that is neither a cancel nor an empty pick."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)

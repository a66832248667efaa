"""Read-only parcel lookup built once from the loaded config mapping.

Entries are classified at construction time, so every later lookup returns
typed ``Entry`` values. Config-file order is kept for listing and for the
"available parcels" hint in not-found errors.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType

from .entry import Entry, classify
from .errors import ParcelNotFound
from .fuzzy import suggest


class ParcelStore:
    """Immutable ``name -> tuple[Entry, ...]`` mapping."""

    def __init__(self, parcels: Mapping[str, Sequence[Entry]]) -> None:
        self._parcels: Mapping[str, tuple[Entry, ...]] = MappingProxyType(
            {name: tuple(entries) for name, entries in parcels.items()}
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[str]], allow_shell: bool = False) -> ParcelStore:
        """Classify raw entry strings from a loaded config mapping."""
        return cls(
            {
                name: [classify(raw, allow_shell=allow_shell) for raw in raw_entries]
                for name, raw_entries in mapping.items()
            }
        )

    def lookup(self, name: str) -> tuple[Entry, ...]:
        """Return entries for ``name`` in config order.

        Raises ``ParcelNotFound`` carrying every defined name, plus close
        matches when there are any.
        """
        try:
            return self._parcels[name]
        except KeyError:
            names = self.names()
            raise ParcelNotFound(name, names, suggest(name, names)) from None

    def names(self) -> tuple[str, ...]:
        return tuple(self._parcels)

    def items(self) -> Iterator[tuple[str, tuple[Entry, ...]]]:
        return iter(self._parcels.items())

    def as_dict(self) -> dict[str, list[str]]:
        """Plain ``name -> [display strings]`` form for JSON output."""
        return {name: [entry.display() for entry in entries] for name, entries in self._parcels.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._parcels

    def __iter__(self) -> Iterator[str]:
        return iter(self._parcels)

    def __len__(self) -> int:
        return len(self._parcels)

"""Chooser outcomes and the state enum for one finder session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ChooserState(Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    STREAMING = "streaming"
    AWAITING_RESULT = "awaiting-result"
    SELECTED = "selected"
    CANCELLED = "cancelled"
    NO_MATCH = "no-match"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {ChooserState.SELECTED, ChooserState.CANCELLED, ChooserState.NO_MATCH, ChooserState.FAILED}
)


@dataclass(frozen=True)
class Selected:
    """One or more picked parcel names, in the order the finder printed them."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("Selected requires at least one name")


@dataclass(frozen=True)
class NoneSelected:
    pass


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class FinderFailed:
    diagnostic: str
    returncode: int | None = None


ChooserOutcome = Union[Selected, NoneSelected, Cancelled, FinderFailed]

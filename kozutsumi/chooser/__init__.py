"""Interactive parcel chooser backed by an external fuzzy finder."""

from __future__ import annotations

from .fzf import FzfChooser
from .outcome import Cancelled, ChooserOutcome, ChooserState, FinderFailed, NoneSelected, Selected

CHOOSER_NAMES = ("fzf",)

__all__ = [
    "CHOOSER_NAMES",
    "Cancelled",
    "ChooserOutcome",
    "ChooserState",
    "FinderFailed",
    "FzfChooser",
    "NoneSelected",
    "Selected",
]

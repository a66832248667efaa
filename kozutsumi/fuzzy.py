from __future__ import annotations

from collections.abc import Iterable

SUGGESTION_LIMIT = 3
SUGGESTION_MIN_SCORE = 0

# Parcel names are flat identifiers, so only these split words.
WORD_BREAKS = frozenset("-_. ")
MATCH_POINTS = 10
WORD_START_POINTS = 30
ADJACENT_POINTS = 15
PREFIX_POINTS = 20
GAP_POINTS = 3
MAX_GAP_PENALTY = 15


def _match_positions(needle: str, haystack: str) -> list[int] | None:
    positions: list[int] = []
    start = 0
    for char in needle:
        index = haystack.find(char, start)
        if index < 0:
            return None
        positions.append(index)
        start = index + 1
    return positions


def fuzzy_score(query: str, name: str) -> int | None:
    """Score how well ``query`` abbreviates the parcel ``name``.

    ``None`` means the query characters do not appear in ``name`` in order.
    Hits at the start of a word, adjacent hits and a shared prefix raise the
    score; skipped characters and extra name length lower it.
    """
    if not query:
        return 0
    needle = query.casefold()
    haystack = name.casefold()
    positions = _match_positions(needle, haystack)
    if positions is None:
        return None

    score = 0
    last = -1
    for index in positions:
        score += MATCH_POINTS
        if index == 0 or haystack[index - 1] in WORD_BREAKS:
            score += WORD_START_POINTS
        if last >= 0 and index == last + 1:
            score += ADJACENT_POINTS
        else:
            score -= min(MAX_GAP_PENALTY, (index - last - 1) * GAP_POINTS)
        last = index

    if haystack.startswith(needle):
        score += PREFIX_POINTS
    return score - (len(haystack) - len(needle))


def suggest(query: str, names: Iterable[str], limit: int = SUGGESTION_LIMIT) -> list[str]:
    """Return up to ``limit`` names that fuzzily match ``query``, best first.

    Matching is tried both ways (query inside name, name inside query) so a
    typo with an extra character still finds the intended parcel.
    """
    if not query:
        return []

    scored: list[tuple[int, int, str]] = []
    for order, name in enumerate(names):
        if name == query:
            continue
        forward = fuzzy_score(query, name)
        backward = fuzzy_score(name, query) if name else None
        candidates = [score for score in (forward, backward) if score is not None]
        if not candidates:
            continue
        best = max(candidates)
        if best < SUGGESTION_MIN_SCORE:
            continue
        scored.append((-best, order, name))

    scored.sort()
    return [name for _neg_score, _order, name in scored[: max(0, limit)]]

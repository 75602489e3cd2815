"""Fuzzy subsequence scoring with a recency blend."""

from typing import Optional

from trydir.models import Entry

# Tier weights. Each tier must outweigh the full range of every later one:
# recency contributes (0, 1], name length at most LENGTH_WEIGHT * MAX_NAME_LEN,
# gaps at most GAP_WEIGHT * MAX_NAME_LEN.
MAX_NAME_LEN = 4096
LENGTH_WEIGHT = 2.0
GAP_WEIGHT = LENGTH_WEIGHT * MAX_NAME_LEN + 2.0
PREFIX_BONUS = 1e8
CONTIGUOUS_BONUS = 1e9


def _recency(entry: Entry, now: float) -> float:
    """Map age to (0, 1], newer is higher."""
    hours = max(0.0, now - entry.modified_at) / 3600.0
    return 1.0 / (1.0 + hours)


def _best_match(text: str, query: str) -> Optional[tuple[bool, bool, int]]:
    """Find the best subsequence match of ``query`` in ``text``.

    Returns:
        Tuple of (contiguous, prefix, gaps), or None if ``query`` is not a
        subsequence of ``text``
    """
    if text.startswith(query):
        return True, True, 0
    if query in text:
        return True, False, 0

    best: Optional[tuple[bool, bool, int]] = None
    for start, char in enumerate(text):
        if char != query[0]:
            continue

        # Greedy leftmost matching from a fixed start gives the earliest end
        pos = start
        for q in query[1:]:
            pos = text.find(q, pos + 1)
            if pos < 0:
                break
        else:
            gaps = pos - start + 1 - len(query)
            candidate = (False, start == 0, gaps)
            if best is None or (candidate[1], -candidate[2]) > (best[1], -best[2]):
                best = candidate
            continue

        # Later starts cannot succeed if this one ran out of text
        break

    return best


def score(entry: Entry, query: str, now: float) -> Optional[float]:
    """Score an entry against a query.

    Args:
        entry: Candidate entry
        query: Search text (any case)
        now: Reference POSIX timestamp

    Returns:
        Relevance score (higher is better), or None if the entry does not
        match and must be hidden
    """
    if not query:
        return -(now - entry.modified_at)

    match = _best_match(entry.name_folded, query.casefold())
    if match is None:
        return None

    contiguous, prefix, gaps = match
    length = min(len(entry.name), MAX_NAME_LEN)
    gaps = min(gaps, MAX_NAME_LEN)

    total = 0.0
    if contiguous:
        total += CONTIGUOUS_BONUS
    if prefix:
        total += PREFIX_BONUS
    total -= GAP_WEIGHT * gaps
    total -= LENGTH_WEIGHT * length
    total += _recency(entry, now)
    return total


def rank(entries: list[Entry], query: str, now: float) -> list[Entry]:
    """Filter and sort entries by score, best first.

    Ties keep their original order.
    """
    scored = []
    for entry in entries:
        value = score(entry, query, now)
        if value is not None:
            scored.append((value, entry))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [entry for _, entry in scored]

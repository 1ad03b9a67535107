"""
Prefix-weighted Jaro-Winkler similarity for supply names.

Catalog names share long common prefixes ("ANESTESIA GENERAL ...") far more
often than common suffixes, so the Jaro score is boosted by the length of
the common prefix:

    jw = jaro + prefix * PREFIX_WEIGHT * (1 - jaro)

where prefix counts matching leading characters, capped at MAX_PREFIX.
The boost is applied at every Jaro level (no 0.7 boost threshold).

The Jaro term keeps half the transposition count as a fraction. Library
implementations (rapidfuzz, jellyfish) round it down, which moves names
with an odd number of out-of-order characters across the 0.88 floor, so
the exact score is computed here. rapidfuzz's Jaro is still used as a
cheap upper bound to skip exact scoring for pairs that cannot reach a
cutoff.

Callers pass normalized names (see normalizer.normalize_supply_name).
"""

from rapidfuzz.distance import Jaro

PREFIX_WEIGHT = 0.1
MAX_PREFIX = 4

# Slack for float noise when comparing a bound against a cutoff
_BOUND_EPSILON = 1e-9


def common_prefix_length(a: str, b: str, limit: int = MAX_PREFIX) -> int:
    """Number of identical leading characters, up to `limit`."""
    prefix = 0
    for ca, cb in zip(a[:limit], b[:limit]):
        if ca != cb:
            break
        prefix += 1
    return prefix


def _boost(jaro: float, prefix: int) -> float:
    return jaro + prefix * PREFIX_WEIGHT * (1.0 - jaro)


def jaro(a: str, b: str) -> float:
    """
    Jaro similarity with fractional transpositions.

    Matching window is max(len)/2 - 1; a character matches the first
    unused equal character of `b` inside the window.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    window = max(len(a), len(b)) // 2 - 1
    a_matched = [False] * len(a)
    b_matched = [False] * len(b)

    matches = 0
    for i, ch in enumerate(a):
        start = max(0, i - window)
        end = min(i + window + 1, len(b))
        for j in range(start, end):
            if b_matched[j] or b[j] != ch:
                continue
            a_matched[i] = b_matched[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    mismatched = 0
    k = 0
    for i, ch in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[k]:
            k += 1
        if ch != b[k]:
            mismatched += 1
        k += 1

    return (matches / len(a)
            + matches / len(b)
            + (matches - mismatched / 2) / matches) / 3


def jaro_winkler(a: str, b: str) -> float:
    """
    Similarity in [0, 1] between two already-normalized strings.

    Symmetric: arguments are put in a fixed order before scoring, so
    jaro_winkler(a, b) == jaro_winkler(b, a) exactly.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    if a > b:
        a, b = b, a

    score = _boost(jaro(a, b), common_prefix_length(a, b))
    return min(max(score, 0.0), 1.0)


def similarity(a: str, b: str) -> float:
    """Public scorer used by the candidate generator and diagnostics."""
    return jaro_winkler(a, b)


def similarity_upper_bound(a: str, b: str) -> float:
    """
    Never below similarity(a, b).

    rapidfuzz rounds the half-transposition count down, so its Jaro is
    at least the exact one, and the prefix boost is increasing in Jaro.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if a > b:
        a, b = b, a
    return min(_boost(Jaro.similarity(a, b), common_prefix_length(a, b)), 1.0)


def similarity_at_least(a: str, b: str, cutoff: float):
    """
    Exact score, or None when the pair provably scores below `cutoff`.
    """
    if cutoff > 0.0 and similarity_upper_bound(a, b) < cutoff - _BOUND_EPSILON:
        return None
    return similarity(a, b)

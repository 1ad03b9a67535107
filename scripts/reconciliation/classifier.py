"""
Confidence classification.

Buckets a similarity score into high / medium / low with a suggested
action. Boundaries are fixed constants from config; the full three-tier
range is kept so the lower-floor similarity report can reuse it.
"""

from typing import Dict, Iterable, List, Tuple

from .config import (
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    TIER_HIGH,
    TIER_MEDIUM,
    TIER_LOW,
    TIER_ACTIONS,
    TIER_ORDER,
)
from .models import Candidate, ClassifiedMatch


def tier_for_score(score: float) -> Tuple[str, str]:
    """Map score to (tier, suggested action)."""
    if score >= HIGH_THRESHOLD:
        tier = TIER_HIGH
    elif score >= MEDIUM_THRESHOLD:
        tier = TIER_MEDIUM
    else:
        tier = TIER_LOW
    return tier, TIER_ACTIONS[tier]


def classify(candidate: Candidate) -> ClassifiedMatch:
    tier, action = tier_for_score(candidate.score)
    return ClassifiedMatch(
        entry=candidate.entry,
        item=candidate.item,
        score=candidate.score,
        tier=tier,
        action=action,
    )


def classify_all(candidates: Iterable[Candidate]) -> List[ClassifiedMatch]:
    return [classify(c) for c in candidates]


def count_by_tier(matches: Iterable[ClassifiedMatch]) -> Dict[str, int]:
    """Per-tier counts; every tier is present even when zero."""
    counts = {tier: 0 for tier in TIER_ORDER}
    for m in matches:
        counts[m.tier] += 1
    return counts


def count_by_action(matches: Iterable[ClassifiedMatch]) -> Dict[str, int]:
    counts = {TIER_ACTIONS[tier]: 0 for tier in TIER_ORDER}
    for m in matches:
        counts[m.action] += 1
    return counts

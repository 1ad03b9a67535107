"""
Candidate generation, selection and classification tests.

Covers: containment pre-filter, similarity floor, near-tie band
(one-to-many), tier boundaries and monotonicity, batch matching.

Run with: py -m pytest tests/test_matching.py -v
"""
import sys
import os
import pytest

# Add project root to path so scripts.reconciliation is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from scripts.reconciliation.classifier import (
    tier_for_score,
    classify,
    count_by_tier,
    count_by_action,
)
from scripts.reconciliation.config import SIMILARITY_FLOOR, TIER_ORDER
from scripts.reconciliation.matcher import (
    CatalogIndex,
    CatalogMatcher,
    select_candidates,
    is_containment,
)
from scripts.reconciliation.models import LegacyEntry, CatalogItem, Candidate


def _entry(name, tag="GENERAL", entry_id=1, min_value=None, max_value=None):
    return LegacyEntry(id=entry_id, raw_name=name, procedure_tag=tag,
                       min_value=min_value, max_value=max_value)


def _candidates(scores):
    entry = _entry("X")
    return [Candidate(entry=entry, item=CatalogItem(id=f"c{i}", name=f"X{i}"), score=s)
            for i, s in enumerate(scores)]


# ============================================================================
# A. SELECTOR
# ============================================================================

class TestSelectCandidates:

    def test_keeps_all_near_ties(self):
        kept = select_candidates(_candidates([0.93, 0.95, 0.91]))
        assert [c.score for c in kept] == [0.95, 0.93, 0.91]

    def test_drops_candidates_outside_band(self):
        kept = select_candidates(_candidates([1.0, 0.92, 0.96]))
        assert [c.score for c in kept] == [1.0, 0.96]

    def test_floor_rejects_everything_below(self):
        assert select_candidates(_candidates([0.87, 0.5, 0.8799])) == []

    def test_floor_is_inclusive(self):
        kept = select_candidates(_candidates([SIMILARITY_FLOOR]))
        assert len(kept) == 1

    def test_band_applies_after_floor(self):
        # 0.86 is within the band of 0.90 but below the floor
        kept = select_candidates(_candidates([0.90, 0.86]))
        assert [c.score for c in kept] == [0.90]

    def test_empty_input(self):
        assert select_candidates([]) == []


# ============================================================================
# B. GENERATOR
# ============================================================================

class TestCatalogMatcher:

    def _matcher(self, names, **kwargs):
        items = [CatalogItem(id=f"cat-{i}", name=n) for i, n in enumerate(names)]
        return CatalogMatcher(CatalogIndex(items), **kwargs)

    def test_one_to_many_circuit_family(self):
        matcher = self._matcher([
            "CIRCUITO CIRCULAR (ADULTO)",
            "CIRCUITO CIRCULAR (NEONATAL)",
            "CIRCUITO CIRCULAR (PEDIÁTRICO)",
            "CAL SODADA",
        ])
        result = matcher.match(_entry("Circuito circular"))
        assert result.matched
        assert {c.item.name for c in result.candidates} == {
            "CIRCUITO CIRCULAR (ADULTO)",
            "CIRCUITO CIRCULAR (NEONATAL)",
            "CIRCUITO CIRCULAR (PEDIÁTRICO)",
        }
        scores = [c.score for c in result.candidates]
        assert scores == sorted(scores, reverse=True)
        assert max(scores) - min(scores) <= 0.05
        assert min(scores) >= SIMILARITY_FLOOR

    def test_no_containment_no_candidate(self):
        matcher = self._matcher(["AGUJA HIPODERMICA", "CAL SODADA"])
        result = matcher.match(_entry("Jeringa 10 ml"))
        assert not result.matched
        assert result.evaluated == 0

    def test_containment_below_floor_is_unmatched(self):
        matcher = self._matcher(["GASAS ESTERILES 10X10 PAQUETE CON 200 PIEZAS"])
        result = matcher.match(_entry("Gasas"))
        assert result.evaluated == 1
        assert result.candidates == []

    def test_catalog_name_inside_legacy_name(self):
        matcher = self._matcher(["CAL SODADA"])
        result = matcher.match(_entry("CAL SODADA."))
        assert result.matched
        assert result.candidates[0].score == 1.0

    def test_reverse_containment_scored(self):
        matcher = self._matcher(["GUANTES"])
        result = matcher.match(_entry("Guantes estériles"))
        assert result.evaluated == 1

    def test_accent_and_punctuation_insensitive(self):
        matcher = self._matcher(["SOLUCION INYECTABLE"])
        result = matcher.match(_entry("Solución, Inyectable."))
        assert result.matched
        assert result.candidates[0].score == 1.0

    def test_inactive_items_ignored(self):
        items = [CatalogItem(id="a", name="CAL SODADA", active=False)]
        matcher = CatalogMatcher(CatalogIndex(items))
        assert not matcher.match(_entry("CAL SODADA")).matched

    def test_empty_legacy_name_never_matches(self):
        matcher = self._matcher(["CAL SODADA"])
        result = matcher.match(_entry(" ... "))
        assert not result.matched
        assert result.evaluated == 0

    def test_lower_floor_matcher(self):
        matcher = self._matcher(["GUANTES ESTERILES LATEX TALLA GRANDE"], floor=0.5)
        assert matcher.match(_entry("GUANTES")).matched

    def test_match_batch_preserves_order_with_workers(self):
        matcher = self._matcher(["CAL SODADA", "GUANTES"])
        entries = [_entry(n, entry_id=i) for i, n in
                   enumerate(["guantes", "nada", "cal sodada", "GUANTES", "otra"])]
        serial = matcher.match_batch(entries)
        threaded = matcher.match_batch(entries, workers=4)
        assert [r.entry.id for r in threaded] == [0, 1, 2, 3, 4]
        assert [[c.item.id for c in r.candidates] for r in serial] == \
               [[c.item.id for c in r.candidates] for r in threaded]


def test_is_containment_both_directions():
    assert is_containment("CAL", "CAL SODADA")
    assert is_containment("CAL SODADA", "CAL")
    assert not is_containment("CAL SODADA", "SODA CAL")


# ============================================================================
# C. CLASSIFIER
# ============================================================================

class TestClassifier:

    @pytest.mark.parametrize("score,tier,action", [
        (1.0, "high", "merge"),
        (0.90, "high", "merge"),
        (0.8999, "medium", "review"),
        (0.88, "medium", "review"),
        (0.70, "medium", "review"),
        (0.6999, "low", "reject"),
        (0.0, "low", "reject"),
    ])
    def test_boundaries(self, score, tier, action):
        assert tier_for_score(score) == (tier, action)

    def test_tier_monotonicity(self):
        rank = {t: i for i, t in enumerate(TIER_ORDER)}  # high=0 ... low=2
        scores = [i / 200 for i in range(201)]
        for lo, hi in zip(scores, scores[1:]):
            assert rank[tier_for_score(hi)[0]] <= rank[tier_for_score(lo)[0]]

    def test_classify_carries_candidate(self):
        cand = _candidates([0.93])[0]
        match = classify(cand)
        assert match.item is cand.item
        assert match.entry is cand.entry
        assert match.score == 0.93
        assert match.tier == "high"

    def test_counts_include_empty_tiers(self):
        matches = [classify(c) for c in _candidates([0.95, 0.89, 0.91])]
        assert count_by_tier(matches) == {"high": 2, "medium": 1, "low": 0}
        assert count_by_action(matches) == {"merge": 2, "review": 1, "reject": 0}

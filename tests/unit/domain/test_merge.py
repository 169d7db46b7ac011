"""Unit tests for the field-level merge.

Tests cover:
- Highest confidence wins
- Source precedence on ties (ai > lookup > pattern > default)
- Deterministic, order-independent and idempotent merging
- Totality (one field per canonical key)
"""

import pytest

from cargoflow.domain.extraction.fields import CANONICAL_FIELDS, ExtractionField, FieldSource
from cargoflow.domain.extraction.merge import merge_candidates, select_winner


def candidate(key, value, confidence, source, strategy="s"):
    return ExtractionField(key=key, value=value, confidence=confidence, source=source, strategy=strategy)


class TestSelectWinner:
    """Test per-key winner selection"""

    def test_highest_confidence_wins(self):
        low = candidate("vehicle.model", "Hilux", 0.6, FieldSource.AI)
        high = candidate("vehicle.model", "HILUX 2.4", 0.9, FieldSource.PATTERN)

        assert select_winner([low, high]) is high

    def test_ai_beats_pattern_on_tie(self):
        """Pattern 0.8 vs AI 0.8 on vehicle.model: AI wins"""
        pattern = candidate("vehicle.model", "TFG435s", 0.8, FieldSource.PATTERN, "pattern_v1")
        ai = candidate("vehicle.model", "TFG 435s", 0.8, FieldSource.AI, "ai_text_v1")

        assert select_winner([pattern, ai]) is ai
        assert select_winner([ai, pattern]) is ai

    @pytest.mark.parametrize("winner,loser", [
        (FieldSource.AI, FieldSource.LOOKUP),
        (FieldSource.LOOKUP, FieldSource.PATTERN),
        (FieldSource.PATTERN, FieldSource.DEFAULT),
    ])
    def test_source_precedence(self, winner, loser):
        a = candidate("route.origin", "Antwerp", 0.7, winner)
        b = candidate("route.origin", "Antwerpen", 0.7, loser)

        assert select_winner([b, a]).source == winner

    def test_full_tie_is_deterministic(self):
        a = candidate("route.origin", "Antwerp", 0.7, FieldSource.PATTERN, "a")
        b = candidate("route.origin", "Antwerpen", 0.7, FieldSource.PATTERN, "b")

        assert select_winner([a, b]) is select_winner([b, a])

    def test_unpopulated_candidates_ignored(self):
        empty = candidate("route.origin", "", 0.9, FieldSource.AI)

        assert select_winner([empty]) is None


class TestMergeCandidates:
    """Test the merge over all canonical keys"""

    def test_total_over_canonical_keys(self):
        merged = merge_candidates([candidate("vehicle.model", "Hilux", 0.8, FieldSource.AI)])

        assert list(merged) == list(CANONICAL_FIELDS)
        assert merged["vehicle.model"].value == "Hilux"

    def test_missing_key_gets_default(self):
        merged = merge_candidates([])
        origin = merged["route.origin"]

        assert origin.value is None
        assert origin.confidence == 0.0
        assert origin.source == FieldSource.DEFAULT

    def test_unknown_keys_dropped(self):
        merged = merge_candidates([candidate("vehicle.colour", "red", 0.9, FieldSource.AI)])

        assert "vehicle.colour" not in merged

    def test_restricted_keys(self):
        merged = merge_candidates([], keys=["vehicle.model"])

        assert list(merged) == ["vehicle.model"]

    def test_merge_is_idempotent(self):
        candidates = [
            candidate("vehicle.model", "Hilux", 0.8, FieldSource.PATTERN, "pattern_v1"),
            candidate("vehicle.model", "HILUX", 0.8, FieldSource.AI, "ai_text_v1"),
            candidate("route.origin", "Antwerp", 0.9, FieldSource.PATTERN, "pattern_v1"),
            candidate("route.origin", "Antwerpen", 0.6, FieldSource.AI, "ai_text_v1"),
        ]

        once = merge_candidates(candidates)
        twice = merge_candidates(list(once.values()))
        reversed_order = merge_candidates(list(reversed(candidates)))

        assert twice == once
        assert reversed_order == once

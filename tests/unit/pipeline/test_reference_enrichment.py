"""Unit tests for lookup-sourced candidates."""

import pytest

from cargoflow.domain.extraction.fields import ExtractionField, FieldSource
from cargoflow.pipeline.reference_enrichment import LOOKUP_STRATEGY_NAME, enrich_from_reference


def pattern(key, value, confidence=0.9):
    return ExtractionField(key=key, value=value, confidence=confidence, source=FieldSource.PATTERN, strategy="pattern_v1")


def by_key(fields):
    return {f.key: f for f in fields}


class TestVehicleEnrichment:
    """Test reference brand, dimensions and weight"""

    def test_known_model_adds_brand_dimensions_and_weight(self, lookup):
        enriched = by_key(enrich_from_reference([pattern("vehicle.model", "Hilux")], lookup))

        assert enriched["vehicle.brand"].value == "Toyota"
        assert enriched["vehicle.dimensions.length_m"].value == pytest.approx(5.33)
        assert enriched["vehicle.dimensions.width_m"].confidence == pytest.approx(0.75)
        assert enriched["vehicle.weight_kg"].value == pytest.approx(2100.0)
        assert all(f.source == FieldSource.LOOKUP for f in enriched.values())
        assert all(f.strategy == LOOKUP_STRATEGY_NAME for f in enriched.values())

    def test_brand_confidence_capped_by_model_confidence(self, lookup):
        enriched = by_key(enrich_from_reference([pattern("vehicle.model", "Hilux", confidence=0.5)], lookup))

        assert enriched["vehicle.brand"].confidence == pytest.approx(0.5)

    def test_model_without_reference_dimensions(self, lookup):
        enriched = by_key(enrich_from_reference([pattern("vehicle.model", "TFG 435s")], lookup))

        assert enriched["vehicle.brand"].value == "Jungheinrich"
        assert "vehicle.dimensions.length_m" not in enriched

    def test_custom_dimension_confidence(self, lookup):
        enriched = by_key(
            enrich_from_reference([pattern("vehicle.model", "Hilux")], lookup, dimension_confidence=0.5)
        )

        assert enriched["vehicle.dimensions.height_m"].confidence == pytest.approx(0.5)

    def test_unknown_model_adds_nothing(self, lookup):
        assert enrich_from_reference([pattern("vehicle.model", "Zorblax 9000")], lookup) == []

    def test_input_is_not_modified(self, lookup):
        candidates = [pattern("vehicle.model", "Hilux")]

        enrich_from_reference(candidates, lookup)

        assert len(candidates) == 1


class TestPortEnrichment:
    """Test canonical port names"""

    def test_alias_is_canonicalized(self, lookup):
        enriched = by_key(enrich_from_reference([pattern("route.origin", "Antwerpen", 0.8)], lookup))

        origin = enriched["route.origin"]
        assert origin.value == "Antwerp"
        assert origin.evidence == "reference:BEANR"
        assert origin.confidence == pytest.approx(0.8)

    def test_canonical_name_adds_nothing(self, lookup):
        assert enrich_from_reference([pattern("route.destination", "Lagos")], lookup) == []

    def test_accent_folded_name(self, lookup):
        enriched = by_key(enrich_from_reference([pattern("route.destination", "Lome")], lookup))

        assert enriched["route.destination"].value == "Lomé"


class TestDocumentMeasurementsWin:
    """Test that reference figures never replace measurements from the document"""

    def test_document_dimensions_suppress_reference_triple(self, lookup):
        candidates = [
            pattern("vehicle.model", "Hilux"),
            pattern("vehicle.dimensions.length_m", 5.2, confidence=0.7),
            pattern("vehicle.dimensions.width_m", 1.9, confidence=0.7),
            pattern("vehicle.dimensions.height_m", 1.8, confidence=0.7),
        ]

        enriched = by_key(enrich_from_reference(candidates, lookup))

        assert enriched["vehicle.brand"].value == "Toyota"
        assert not any(key.startswith("vehicle.dimensions.") for key in enriched)
        assert enriched["vehicle.weight_kg"].value == pytest.approx(2100.0)

    def test_single_document_axis_suppresses_whole_triple(self, lookup):
        candidates = [
            pattern("vehicle.model", "Hilux"),
            pattern("vehicle.dimensions.length_m", 5.4, confidence=0.6),
        ]

        enriched = by_key(enrich_from_reference(candidates, lookup))

        assert "vehicle.dimensions.width_m" not in enriched
        assert "vehicle.dimensions.height_m" not in enriched

    def test_document_weight_suppresses_reference_weight(self, lookup):
        candidates = [pattern("vehicle.model", "Hilux"), pattern("vehicle.weight_kg", 2500.0, confidence=0.7)]

        enriched = by_key(enrich_from_reference(candidates, lookup))

        assert "vehicle.weight_kg" not in enriched
        assert enriched["vehicle.dimensions.length_m"].value == pytest.approx(5.33)

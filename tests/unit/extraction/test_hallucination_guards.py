"""Unit tests for AI hallucination guards.

Tests cover:
- Anchor checks against the source text
- Plausibility ranges
- VIN format
- Image inputs (no text to anchor against)
"""

import pytest

from cargoflow.extraction.hallucination_guards import (
    ANCHOR_FAILURE_CONFIDENCE_CAP,
    anchor_check,
    apply_hallucination_guards,
    range_check,
)

SOURCE = "Please ship my Toyota Land Cruiser from Antwerpen to Lomé, 4950 x 1980 x 1910 mm"


class TestAnchorCheck:
    """Test source-text anchoring"""

    def test_value_present(self):
        assert anchor_check("Land Cruiser", SOURCE)

    def test_compact_form_present(self):
        assert anchor_check("LandCruiser", SOURCE)

    def test_value_absent(self):
        assert not anchor_check("Hilux", SOURCE)

    def test_non_string_passes(self):
        assert anchor_check(4.95, SOURCE)


class TestRangeCheck:
    """Test plausibility ranges"""

    def test_within_range(self):
        assert range_check("vehicle.dimensions.length_m", 4.95) == (4.95, None)

    def test_outside_range(self):
        value, warning = range_check("vehicle.dimensions.width_m", 19.8)

        assert value is None
        assert "outside plausible range" in warning

    def test_non_numeric(self):
        value, warning = range_check("vehicle.weight_kg", "heavy")

        assert value is None
        assert warning

    def test_unranged_key_passes(self):
        assert range_check("contact.name", "Jan") == ("Jan", None)

    @pytest.mark.parametrize("key,value", [
        ("vehicle.dimensions.length_m", 25.0),
        ("vehicle.dimensions.length_m", 0.4),
        ("vehicle.dimensions.width_m", 5.0),
        ("vehicle.dimensions.height_m", 5.5),
    ])
    def test_shared_dimension_ranges_reject(self, key, value):
        assert range_check(key, value)[0] is None

    @pytest.mark.parametrize("key,value", [
        ("vehicle.dimensions.length_m", 20.0),
        ("vehicle.dimensions.width_m", 4.0),
        ("vehicle.dimensions.height_m", 5.0),
    ])
    def test_shared_dimension_ranges_accept_upper_edge(self, key, value):
        assert range_check(key, value) == (value, None)


class TestApplyHallucinationGuards:
    """Test combined guard application"""

    def test_unanchored_value_is_capped_not_dropped(self):
        report = apply_hallucination_guards(
            {"vehicle.model": "Hilux"},
            {"vehicle.model": 0.9},
            SOURCE,
        )

        assert report.values == {"vehicle.model": "Hilux"}
        assert report.confidences["vehicle.model"] == ANCHOR_FAILURE_CONFIDENCE_CAP
        assert report.warnings

    def test_implausible_value_is_dropped(self):
        report = apply_hallucination_guards(
            {"vehicle.dimensions.width_m": 19.8, "vehicle.model": "Land Cruiser"},
            {"vehicle.dimensions.width_m": 0.9, "vehicle.model": 0.9},
            SOURCE,
        )

        assert "vehicle.dimensions.width_m" not in report.values
        assert report.confidences["vehicle.model"] == 0.9

    def test_malformed_vin_is_dropped(self):
        report = apply_hallucination_guards({"vehicle.vin": "12345"}, {"vehicle.vin": 0.9}, "VIN 12345")

        assert report.values == {}

    def test_image_input_skips_anchor_check(self):
        report = apply_hallucination_guards({"vehicle.model": "Hilux"}, {"vehicle.model": 0.6}, "")

        assert report.confidences["vehicle.model"] == 0.6
        assert report.warnings == []

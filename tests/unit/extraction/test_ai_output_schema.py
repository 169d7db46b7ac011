"""Unit tests for AI output schema validation.

Tests cover:
- Flattening grouped output to canonical keys
- Dropping keys outside the schema (never smuggled into the merge)
- Unit coercion of string dimensions and weights
- Placeholder clearing and legacy response shapes
- Schema violations
"""

import pytest

from cargoflow.extraction.schemas.ai_output import (
    AIOutputSchemaError,
    ai_output_json_schema,
    parse_ai_output,
)


class TestParseAIOutput:
    """Test validation and flattening"""

    def test_flattens_to_canonical_keys(self):
        parsed = parse_ai_output({
            "route": {"origin": "Antwerp", "destination": "Lagos"},
            "vehicle": {"model": "Hilux", "dimensions": {"length_m": 5.33}},
            "confidence": {"route.origin": 0.9},
        })

        assert parsed.values == {
            "route.origin": "Antwerp",
            "route.destination": "Lagos",
            "vehicle.model": "Hilux",
            "vehicle.dimensions.length_m": 5.33,
        }
        assert parsed.reported_confidence == {"route.origin": 0.9}
        assert parsed.dropped_fields == []

    def test_extra_fields_are_dropped_and_reported(self):
        parsed = parse_ai_output({
            "vehicle": {"model": "Hilux", "colour": "red"},
            "shoe_size": 42,
            "confidence": {"vehicle.colour": 0.9},
        })

        assert parsed.values == {"vehicle.model": "Hilux"}
        assert set(parsed.dropped_fields) == {"vehicle.colour", "shoe_size", "confidence.vehicle.colour"}

    def test_string_dimensions_are_coerced_to_meters(self):
        parsed = parse_ai_output({
            "vehicle": {"dimensions": {"length_m": "390 cm", "width_m": "2,3", "height_m": "3.1 m"}},
        })

        assert parsed.values["vehicle.dimensions.length_m"] == pytest.approx(3.9)
        assert parsed.values["vehicle.dimensions.width_m"] == pytest.approx(2.3)
        assert parsed.values["vehicle.dimensions.height_m"] == pytest.approx(3.1)

    def test_unitless_string_dimensions_use_unlabeled_rule(self):
        parsed = parse_ai_output({
            "vehicle": {"dimensions": {"length_m": "390", "width_m": "230", "height_m": "3,1"}},
        })

        assert parsed.values["vehicle.dimensions.length_m"] == pytest.approx(3.9)
        assert parsed.values["vehicle.dimensions.width_m"] == pytest.approx(2.3)
        assert parsed.values["vehicle.dimensions.height_m"] == pytest.approx(3.1)

    def test_string_weight_is_coerced_to_kilograms(self):
        parsed = parse_ai_output({"vehicle": {"weight_kg": "3.5 t"}})

        assert parsed.values["vehicle.weight_kg"] == pytest.approx(3500.0)

    def test_placeholders_become_missing(self):
        parsed = parse_ai_output({"contact": {"name": "unknown", "email": "n/a"}, "route": {"origin": "Hamburg"}})

        assert parsed.values == {"route.origin": "Hamburg"}

    def test_legacy_shape_is_accepted(self):
        parsed = parse_ai_output({"vehicle": {"make": "Toyota", "length": 4.37}})

        assert parsed.values["vehicle.brand"] == "Toyota"
        assert parsed.values["vehicle.dimensions.length_m"] == 4.37

    def test_invalid_incoterm_is_cleared(self):
        parsed = parse_ai_output({"commercial": {"incoterm": "free on board please"}})

        assert "commercial.incoterm" not in parsed.values

    def test_non_object_is_schema_violation(self):
        with pytest.raises(AIOutputSchemaError) as exc_info:
            parse_ai_output(["not", "an", "object"])

        assert exc_info.value.details

    def test_type_mismatch_is_schema_violation(self):
        with pytest.raises(AIOutputSchemaError):
            parse_ai_output({"vehicle": {"year": "last year"}})

    def test_confidence_out_of_range_is_schema_violation(self):
        with pytest.raises(AIOutputSchemaError):
            parse_ai_output({"route": {"origin": "Tema"}, "confidence": {"route.origin": 1.5}})


class TestJsonSchema:
    """Test the schema sent to providers"""

    def test_additional_properties_forbidden(self):
        schema = ai_output_json_schema()

        assert schema["additionalProperties"] is False
        assert schema["$defs"]["AIVehicle"]["additionalProperties"] is False

"""Unit tests for the field mapper.

Tests cover:
- Typed value contract
- Fallback chains and MappingFallbackExhausted records
- Alias-aware reads and merges
- Failed records are never mapped
"""

import pytest

from cargoflow.domain.canonical import (
    CanonicalRecord,
    CargoInfo,
    ContactInfo,
    Dimensions,
    RouteInfo,
    VehicleInfo,
)
from cargoflow.domain.extraction.errors import ErrorKind
from cargoflow.domain.extraction.fields import ValueType
from cargoflow.mapping import FieldMapper, FieldMapping, build_title, map_record, merge_into, read_field, typed_value


@pytest.fixture
def forklift_record():
    return CanonicalRecord(
        document_id="doc-forklift",
        contact=ContactInfo(name="Jan Peeters", email="jan@acme-logistics.be"),
        route=RouteInfo(origin="Antwerp", destination="Lomé"),
        vehicle=VehicleInfo(
            brand="Jungheinrich",
            model="TFG 435s",
            dimensions=Dimensions(3.9, 2.3, 3.1),
            weight_kg=3500.0,
            condition="non-runner",
        ),
        cargo=CargoInfo(shipment_type="roro"),
        confidence=0.9,
        status="success",
    )


class TestTypedValue:
    """Test the external value contract"""

    def test_number(self):
        assert typed_value(3.9, ValueType.NUMBER) == {"numberValue": 3.9}
        assert typed_value("3500", ValueType.NUMBER) == {"numberValue": 3500}

    def test_number_rejects_bool_and_text(self):
        assert typed_value(True, ValueType.NUMBER) is None
        assert typed_value("three", ValueType.NUMBER) is None
        assert typed_value(float("nan"), ValueType.NUMBER) is None

    def test_boolean(self):
        assert typed_value("yes", ValueType.BOOLEAN) == {"booleanValue": True}
        assert typed_value(False, ValueType.BOOLEAN) == {"booleanValue": False}
        assert typed_value("maybe", ValueType.BOOLEAN) is None

    def test_empty_string_is_omitted(self):
        assert typed_value("   ", ValueType.STRING) is None
        assert typed_value(None, ValueType.STRING) is None


class TestFieldMapper:
    """Test mapping table walk"""

    def test_maps_forklift_record(self, forklift_record):
        payload = map_record(forklift_record)

        assert payload.fields["POR"] == {"stringValue": "Antwerp"}
        assert payload.fields["FDEST"] == {"stringValue": "Lomé"}
        assert payload.fields["CARGO"] == {"stringValue": "Jungheinrich TFG 435s"}
        assert payload.fields["DIM_BEF_DELIVERY"] == {"stringValue": "3.900 x 2.300 x 3.100 m"}
        assert payload.fields["WEIGHT_KG"] == {"numberValue": 3500}
        assert payload.fields["NON_RUNNER"] == {"booleanValue": True}
        assert payload.fields["SHIPPING_METHOD"] == {"stringValue": "RORO"}
        assert payload.fields["CONCERNING"] == {"stringValue": "Antwerp → Lomé | Jungheinrich TFG 435s"}

    def test_fallback_chain(self, forklift_record):
        payload = map_record(forklift_record)

        # No ports extracted: POL/POD fall back to origin/destination
        assert payload.value("POL") == "Antwerp"
        assert payload.sources["POL"] == "route.origin"
        assert payload.sources["POD"] == "route.destination"
        # No company: customer falls back to the contact name
        assert payload.value("CUSTOMER") == "Jan Peeters"

    def test_exhausted_chain_omits_field(self, forklift_record):
        payload = map_record(forklift_record)

        assert "VIN" not in payload.fields
        vin = next(e for e in payload.omitted if e.details["target"] == "VIN")
        assert vin.kind == ErrorKind.MAPPING_FALLBACK_EXHAUSTED
        assert vin.details["chain"] == ["vehicle.vin"]
        assert all(v != {"stringValue": ""} for v in payload.fields.values())

    def test_reference_fallback(self, lookup):
        record = CanonicalRecord(
            document_id="doc-hilux",
            vehicle=VehicleInfo(brand="Toyota", model="Hilux"),
            status="partial",
        )

        payload = FieldMapper(lookup=lookup).map_record(record)

        assert payload.value("DIM_BEF_DELIVERY") == "5.330 x 1.860 x 1.820 m"
        assert payload.sources["DIM_BEF_DELIVERY"] == "reference.dimensions"
        assert payload.value("WEIGHT_KG") == 2100

    def test_failed_record_not_mapped(self, forklift_record):
        failed = CanonicalRecord(document_id="doc-x", route=forklift_record.route, status="failed")

        payload = map_record(failed)

        assert payload.skipped
        assert payload.to_dict() == {}
        assert payload.omitted == []

    def test_unknown_source_rejected(self):
        with pytest.raises(ValueError, match="unknown sources"):
            FieldMapper(table={"vehicle.colour": FieldMapping("COLOUR", ValueType.STRING)})

    def test_custom_table(self, forklift_record):
        mapper = FieldMapper(table={"vehicle.model": FieldMapping("MODEL", ValueType.STRING)})

        assert mapper.map_record(forklift_record).to_dict() == {"MODEL": {"stringValue": "TFG 435s"}}


class TestBuildTitle:
    """Test quotation title"""

    def test_route_only(self):
        record = CanonicalRecord(document_id="d", route=RouteInfo(origin="Antwerp", destination="Lagos"))

        assert build_title(record) == "Antwerp → Lagos"

    def test_ports_preferred_over_places(self):
        record = CanonicalRecord(
            document_id="d",
            route=RouteInfo(origin="Brussels", port_of_loading="Antwerp", destination="Lagos"),
            vehicle=VehicleInfo(brand="Toyota", model="Hilux"),
        )

        assert build_title(record) == "Antwerp → Lagos | Toyota Hilux"

    def test_nothing_known(self):
        assert build_title(CanonicalRecord(document_id="d")) is None


class TestAliasAwareAccess:
    """Test reads and merges across field name variants"""

    @pytest.mark.parametrize("name", ["POL", "PORT_OF_LOADING", "PORT OF LOADING", "port_of_loading", "pol"])
    def test_read_any_variant(self, name):
        assert read_field({name: {"stringValue": "Antwerp"}}, "POL") == "Antwerp"

    def test_read_missing(self):
        assert read_field({"POD": {"stringValue": "Lagos"}}, "POL") is None

    def test_merge_replaces_every_variant(self):
        existing = {
            "PORT OF LOADING": {"stringValue": "Zeebrugge"},
            "port_of_loading": {"stringValue": "Zeebrugge"},
            "VIN": {"stringValue": "X"},
        }

        merged = merge_into(existing, {"PORT_OF_LOADING": {"stringValue": "Antwerp"}})

        assert merged == {"VIN": {"stringValue": "X"}, "POL": {"stringValue": "Antwerp"}}
        assert "PORT OF LOADING" in existing

    def test_read_after_merge(self):
        merged = merge_into({"Port Of Discharge": {"stringValue": "Lome"}}, {"POD": {"stringValue": "Lomé"}})

        assert read_field(merged, "PORT_OF_DISCHARGE") == "Lomé"
        assert len(merged) == 1

"""Unit tests for payload validation."""

from cargoflow.mapping import validate_payload

COMPLETE = {
    "POL": {"stringValue": "Antwerp"},
    "POD": {"stringValue": "Lagos"},
    "CARGO": {"stringValue": "Toyota Hilux"},
    "CUSTOMER": {"stringValue": "Acme Logistics"},
    "CONTACT_EMAIL": {"stringValue": "jan@acme-logistics.be"},
    "DIM_BEF_DELIVERY": {"stringValue": "5.330 x 1.860 x 1.820 m"},
    "CONCERNING": {"stringValue": "Antwerp → Lagos | Toyota Hilux"},
    "WEIGHT_KG": {"numberValue": 2100},
}


class TestValidatePayload:
    """Test contract and required-field checks"""

    def test_complete_payload_is_valid(self):
        validation = validate_payload(COMPLETE)

        assert validation.is_valid
        assert validation.warnings == []

    def test_missing_required_is_error(self):
        payload = {k: v for k, v in COMPLETE.items() if k != "POL"}

        validation = validate_payload(payload)

        assert not validation.is_valid
        assert "Missing required field POL" in validation.errors

    def test_required_satisfied_by_alias(self):
        payload = {k: v for k, v in COMPLETE.items() if k != "POL"}
        payload["PORT OF LOADING"] = {"stringValue": "Antwerp"}

        assert validate_payload(payload).is_valid

    def test_missing_recommended_is_warning(self):
        payload = {k: v for k, v in COMPLETE.items() if k != "CUSTOMER"}

        validation = validate_payload(payload)

        assert validation.is_valid
        assert validation.warnings == ["Missing recommended field CUSTOMER"]

    def test_contract_violations(self):
        payload = dict(COMPLETE)
        payload["WEIGHT_KG"] = {"numberValue": True}
        payload["VIN"] = {"stringValue": " "}
        payload["YEAR"] = 2019
        payload["NON_RUNNER"] = {"booleanValue": True, "stringValue": "yes"}

        validation = validate_payload(payload)

        assert len(validation.errors) == 4
        assert any(e.startswith("WEIGHT_KG") for e in validation.errors)
        assert any(e.startswith("YEAR") for e in validation.errors)

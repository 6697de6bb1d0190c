import pytest

from headoffice.registry.abr import build_abr_address, extract_abr_match, normalize_abr_details


class TestExtractAbrMatch:
    """Test suite for MatchingNames reply parsing."""

    def test_returns_first_match(self):
        match = extract_abr_match({"Names": [{"Abn": "123", "Name": "Example"}, {"Abn": "456"}]})
        assert match["Abn"] == "123"

    def test_lower_case_names(self):
        assert extract_abr_match({"names": [{"Abn": "789"}]})["Abn"] == "789"

    def test_single_match_shape(self):
        """Test a reply that is itself the match."""
        data = {"Abn": "111", "Name": "Solo Pty Ltd"}
        assert extract_abr_match(data) is data

    def test_empty_names_without_single_match(self):
        assert extract_abr_match({"Names": [], "Message": ""}) is None

    def test_non_dict(self):
        assert extract_abr_match(None) is None
        assert extract_abr_match([{"Abn": "1"}]) is None

    def test_non_mapping_entry(self):
        with pytest.raises(ValueError):
            extract_abr_match({"Names": ["EXAMPLE PTY LTD"]})


class TestBuildAbrAddress:
    """Test suite for address assembly."""

    def test_full_structured_address(self):
        """Test fixed field order and the country suffix."""
        address = build_abr_address({
            "MainBusinessPhysicalAddress": {
                "Postcode": "2000",
                "StateCode": "NSW",
                "Suburb": "Sydney",
                "StreetType": "St",
                "StreetName": "George",
                "StreetNumber": "10",
            }
        })
        assert address == "10 George St Sydney NSW 2000 Australia"

    def test_missing_fields_are_omitted(self):
        address = build_abr_address({
            "MainBusinessPhysicalAddress": {"StreetName": "George", "StateCode": "NSW", "Suburb": ""}
        })
        assert address == "George NSW Australia"

    def test_wrapped_value(self):
        address = build_abr_address({"MainBusinessPhysicalAddress": {"_": {"Suburb": "Parramatta"}}})
        assert address == "Parramatta Australia"

    def test_string_address(self):
        assert build_abr_address({"MainBusinessPhysicalAddress": " 1 Pitt St Sydney "}) == "1 Pitt St Sydney"

    def test_flat_state_and_postcode(self):
        """Test the flat fields used by the JSON AbnDetails service."""
        assert build_abr_address({"AddressState": "VIC", "AddressPostcode": "3000"}) == "VIC 3000 Australia"

    def test_no_fields_gives_empty(self):
        """Test that the country suffix is not emitted on its own."""
        assert build_abr_address({}) == ""
        assert build_abr_address({"MainBusinessPhysicalAddress": {}}) == ""
        assert build_abr_address(None) == ""


class TestNormalizeAbrDetails:
    """Test suite for AbnDetails normalization."""

    def test_full_details(self):
        match = {"Abn": "51824753556", "Name": "Example"}
        details = {
            "Abn": "51824753556",
            "EntityName": "EXAMPLE PTY LTD",
            "EntityTypeName": "Australian Private Company",
            "AbnStatus": "Active",
            "AbnStatusEffectiveFrom": "2001-01-01",
            "Gst": {"EffectiveFrom": "2005-07-01"},
            "AddressState": "NSW",
            "AddressPostcode": "2000",
        }

        record = normalize_abr_details("example", match, details)

        assert record.name == "EXAMPLE PTY LTD"
        assert record.address == "NSW 2000 Australia"
        assert record.jurisdiction == "au"
        assert record.incorporation_date == "2005-07-01"
        assert record.company_number == "51824753556"
        assert record.status == "Active"
        assert record.company_type == "Australian Private Company"
        assert record.franchise.value == "Unknown"
        assert record.territory is None
        assert record.source == "ABR"
        assert record.raw == {"match": match, "details": details}

    def test_sparse_details_use_fallbacks(self):
        record = normalize_abr_details("query text", {"Abn": 123}, {"Gst": None})

        assert record.name == "query text"
        assert record.company_number == "123"
        assert record.status == "Unknown"
        assert record.company_type == "Australian Entity"
        assert record.incorporation_date is None

    def test_franchise_entity_type(self):
        record = normalize_abr_details("x", {"Abn": "1"}, {"EntityTypeName": "Franchise Trust"})
        assert record.franchise.value == "Yes"

"""
Tests for catalogue record building, browsing and address heuristics.
"""

import pytest

from pat.services import address, catalogue
from pat.services.address import address_key, parse_address
from pat.ui.formatting import band_class, format_money, format_pct, format_ratio


class TestParseAddress:
    """Test free-text address splitting."""

    def test_full_address(self):
        parsed = parse_address("123 Main St, Apt 4, Springfield, IL 62704")
        assert parsed.line1 == "123 Main St"
        assert parsed.line2 == "Apt 4"
        assert parsed.city == "Springfield"
        assert parsed.state == "IL"
        assert parsed.zip == "62704"

    def test_address_without_unit(self):
        parsed = parse_address("88 Orchard Ln, Dayton, OH 45402")
        assert parsed.line1 == "88 Orchard Ln"
        assert parsed.line2 == ""
        assert parsed.city == "Dayton"
        assert parsed.state == "OH"

    def test_street_only(self):
        parsed = parse_address("  9 Elm Ct ")
        assert parsed.line1 == "9 Elm Ct"
        assert parsed.city == ""

    def test_empty(self):
        assert parse_address("").line1 == ""
        assert parse_address(None).line1 == ""

    def test_split_when_tagging_fails(self, monkeypatch):
        """A tagger error falls back to splitting on commas and newlines."""

        def fail(text):
            raise ValueError("untaggable")

        monkeypatch.setattr(address.usaddress, "parse", fail)
        parsed = parse_address("88 Orchard Ln\nUnit 2\nDayton\noh")
        assert parsed.line1 == "88 Orchard Ln"
        assert parsed.line2 == "Unit 2"
        assert parsed.city == "Dayton"
        assert parsed.state == "OH"

    def test_split_when_no_street_tagged(self, monkeypatch):
        monkeypatch.setattr(
            address.usaddress,
            "parse",
            lambda text: [("Springfield,", "PlaceName"), ("IL", "StateName")],
        )
        parsed = parse_address("Springfield, IL")
        assert parsed.line1 == "Springfield"
        assert parsed.state == "IL"

    def test_address_key_ignores_formatting(self):
        assert address_key("123 Main Street., Springfield, IL") == address_key("123  Main St")
        assert address_key("") == ""


class TestRecordBuilding:
    """Test folding evaluations into stored records."""

    def test_income_property_record(self, rental_inputs):
        record = catalogue.build_record(catalogue.MODULE_INCOME_PROPERTY, rental_inputs)

        assert record["module"] == "income-property"
        assert record["inputs"]["property_value"] == 300000
        assert record["inputs"]["closing_costs_rate"] == 0.05
        assert record["inputs"]["misc_rate_annual"] == 0.01
        # Money rounded to cents, ratios full precision
        assert record["computed"]["mortgage_monthly"] == 1438.92
        assert record["computed"]["noi_annual"] == 28800
        assert record["computed"]["cap_rate"] == pytest.approx(0.096)
        assert record["computed"]["dscr"] != round(record["computed"]["dscr"], 2)
        assert record["bands"] == {"cap_rate": "Good", "cash_on_cash": "Great", "dscr": "Great"}
        assert set(record["computed"]["suggested_rent_per_unit"]) == {
            "coc_7", "coc_5", "coc_3", "cap_12", "cap_8", "cap_5",
        }

    def test_flip_record(self, flip_inputs):
        record = catalogue.build_record(catalogue.MODULE_FLIP, flip_inputs)

        assert record["module"] == "flip"
        assert record["computed"]["mortgage_monthly"] == 1000
        assert record["computed"]["net_income"] == round(record["computed"]["net_income"], 2)
        assert record["bands"] == {"roi": "Great"}
        assert record["inputs"]["interest_only_first_year"] is True

    def test_unavailable_values_stored_as_null(self, flip_inputs):
        flip_inputs["desired_resale_value"] = None
        record = catalogue.build_record(catalogue.MODULE_FLIP, flip_inputs)

        assert record["computed"]["roi"] is None
        assert record["computed"]["net_income"] is None
        assert record["bands"]["roi"] == "N/A"

    def test_missing_required_inputs(self, rental_inputs):
        rental_inputs["unit_count"] = 0
        with pytest.raises(catalogue.CatalogueError) as exc:
            catalogue.build_record(catalogue.MODULE_INCOME_PROPERTY, rental_inputs)
        assert "unit_count" in str(exc.value)

    def test_flip_needs_property_value(self):
        with pytest.raises(catalogue.CatalogueError):
            catalogue.build_record(catalogue.MODULE_FLIP, {"months_hold": 3})

    def test_unknown_module(self):
        with pytest.raises(catalogue.CatalogueError):
            catalogue.build_record("brrrr", {})

    def test_rebands_from_stored_values(self):
        computed = {"cap_rate": 0.13, "cash_on_cash": None, "dscr": 1.25}
        assert catalogue.rebands("income-property", computed) == {
            "cap_rate": "Great",
            "cash_on_cash": "N/A",
            "dscr": "Okay",
        }
        assert catalogue.rebands("flip", {"roi": 0.45}) == {"roi": "Amazing"}


def _record(id, module="income-property", address="", pinned=False,
            created_at="2025-01-01T00:00:00", updated_at=None, computed=None):
    return {
        "id": id,
        "module": module,
        "source_address": address,
        "pinned": pinned,
        "created_at": created_at,
        "updated_at": updated_at,
        "computed": computed or {},
    }


class TestBrowsing:
    """Test filtering, sorting and duplicate detection."""

    @pytest.fixture
    def records(self):
        return [
            _record("a", address="123 Main St, Springfield", computed={"cap_rate": 0.13, "cash_on_cash": 0.02, "dscr": 1.1}),
            _record("b", module="flip", address="88 Orchard Ln, Dayton", created_at="2025-03-01T00:00:00", computed={"roi": 0.25}),
            _record("c", address="9 Main Street, Columbus", pinned=True, computed={"cap_rate": 0.06}),
            _record("d", address="", updated_at="2025-06-01T00:00:00", computed={"cap_rate": 0.09}),
        ]

    def test_sort_pinned_then_recent(self, records):
        ordered = [r["id"] for r in catalogue.sort_for_display(records)]
        assert ordered == ["c", "d", "b", "a"]

    def test_filter_by_module(self, records):
        assert [r["id"] for r in catalogue.filter_records(records, module="flip")] == ["b"]

    def test_filter_by_band_matches_any_kpi(self, records):
        great = [r["id"] for r in catalogue.filter_records(records, band="Great")]
        assert great == ["a"]
        good = [r["id"] for r in catalogue.filter_records(records, band="Good")]
        assert good == ["d", "b"]

    def test_search_address_line1(self, records):
        found = [r["id"] for r in catalogue.filter_records(records, query=" main ")]
        assert found == ["c", "a"]
        assert catalogue.filter_records(records, query="springfield") == []

    def test_find_duplicate(self, records):
        assert catalogue.find_duplicate(records, "123 Main Street")["id"] == "a"
        assert catalogue.find_duplicate(records, "123 Main St", exclude_id="a") is None
        assert catalogue.find_duplicate(records, "") is None

    def test_export_payload(self, records):
        payload = catalogue.export_payload(records[:1], "grasp-1.0.2")
        assert payload["schema_version"] == "grasp-1.0.2"
        assert payload["properties"][0]["id"] == "a"


class TestFormatting:
    """Test display formatting of engine numbers."""

    def test_money(self):
        assert format_money(1438.9161) == "$1,438.92"
        assert format_money(-250.5) == "-$250.50"
        assert format_money(None) == "N/A"
        assert format_money(float("nan")) == "N/A"

    def test_pct_and_ratio(self):
        assert format_pct(0.096) == "9.60%"
        assert format_ratio(1.66789) == "1.67"
        assert format_pct(None) == "N/A"

    def test_band_class(self):
        assert band_class("Amazing") == "great"
        assert band_class("Okay") == "okay"
        assert band_class("N/A") == "na"
        assert band_class(None) == "na"

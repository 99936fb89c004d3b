"""
Tests for calculation and catalogue API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from pat.main import app
from pat.db.models import CatalogueProperty

# Database setup is handled by conftest.py


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def saved_rental(client, rental_inputs):
    """A rental already in the catalogue."""
    response = client.post(
        "/api/properties/",
        json={
            "module": "income-property",
            "address": "412 Maple Ave, Columbus, OH 43201",
            "link": "https://example.com/listing/412",
            "comments": "Duplex",
            "inputs": rental_inputs,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def saved_flip(client, flip_inputs):
    """A flip already in the catalogue."""
    response = client.post(
        "/api/properties/",
        json={"module": "flip", "address": "88 Orchard Ln, Dayton, OH", "inputs": flip_inputs},
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCalculationsAPI:
    """Test stateless calculation endpoints."""

    def test_income_property(self, client, rental_inputs):
        response = client.post("/api/calculate/income-property", json=rental_inputs)
        assert response.status_code == 200

        data = response.json()
        assert data["mortgage_monthly"] == pytest.approx(1438.92, abs=0.01)
        assert data["cap_rate"] == pytest.approx(0.096)
        assert data["bands"] == {"cap_rate": "Good", "cash_on_cash": "Great", "dscr": "Great"}
        assert data["dscr_guidance"]["price_at_dscr_1_5"] > 0
        assert data["suggested_rent_per_unit"]["cap_8"] == pytest.approx(1300)
        assert data["has_valid_kpis"] is True

    def test_income_property_garbage_input(self, client):
        """Unparseable numbers are treated as zero, not rejected."""
        response = client.post(
            "/api/calculate/income-property",
            json={"property_value": "abc", "unit_count": "", "rent_per_unit_monthly": None},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["cap_rate"] is None
        assert data["dscr"] is None
        assert data["bands"]["cap_rate"] == "N/A"
        assert data["has_valid_kpis"] is False

    def test_flip(self, client, flip_inputs):
        response = client.post("/api/calculate/flip", json=flip_inputs)
        assert response.status_code == 200

        data = response.json()
        assert data["mortgage_monthly"] == pytest.approx(1000)
        assert data["loan_counted_in_losses"] == pytest.approx(200000)
        assert data["roi_band"] == "Great"
        assert data["target_resale_value"]["roi_40"] == pytest.approx(data["total_losses"] * 1.4)

    def test_flip_without_resale(self, client, flip_inputs):
        flip_inputs.pop("desired_resale_value")
        data = client.post("/api/calculate/flip", json=flip_inputs).json()
        assert data["roi"] is None
        assert data["desired_resale_value"] is None
        assert data["roi_band"] == "N/A"
        assert data["has_valid_kpis"] is False

    def test_flip_balance_overflow(self, client, flip_inputs):
        """Extreme rate and hold still answer 200 with unavailable figures."""
        flip_inputs["rate_apr_pct"] = 1000
        flip_inputs["months_hold"] = 1200
        response = client.post("/api/calculate/flip", json=flip_inputs)
        assert response.status_code == 200

        data = response.json()
        assert data["remaining_loan_balance"] is None
        assert data["total_losses"] is None
        assert data["roi"] is None
        assert data["roi_band"] == "N/A"
        assert data["target_resale_value"]["roi_40"] is None
        assert data["has_valid_kpis"] is False

    def test_carry_costs(self, client):
        response = client.post(
            "/api/calculate/carry-costs",
            json={"taxes_monthly": "250", "insurance_monthly": 100.5, "from_mode": "monthly", "to_mode": "annual"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "mode": "annual",
            "taxes_monthly": 3000.0,
            "insurance_monthly": 1206.0,
            "hoa_monthly": 0.0,
        }

    def test_carry_costs_bad_mode(self, client):
        response = client.post("/api/calculate/carry-costs", json={"to_mode": "weekly"})
        assert response.status_code == 400

    def test_amortization(self, client):
        response = client.post(
            "/api/calculate/amortization",
            json={
                "principal": 200000,
                "annual_rate": 0.06,
                "amortization_years": 30,
                "io_months": 12,
                "total_months": 18,
                "start_date": "2025-01-01",
            },
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data["schedule"]) == 18
        assert data["schedule"][0]["payment"] == 1000
        assert data["schedule"][12]["payment"] == pytest.approx(1199.10, abs=0.01)
        assert data["total_principal"] > 0


class TestCatalogueAPI:
    """Test catalogue CRUD and browsing."""

    def test_create(self, saved_rental):
        assert saved_rental["module"] == "income-property"
        assert saved_rental["source"]["address"] == "412 Maple Ave, Columbus, OH 43201"
        assert saved_rental["source"]["entry_mode"] == "manual"
        assert saved_rental["computed"]["mortgage_monthly"] == 1438.92
        assert saved_rental["bands"]["cap_rate"] == "Good"
        assert saved_rental["pinned"] is False
        assert saved_rental["updated_at"] is None

    def test_create_duplicate_address(self, client, saved_rental, rental_inputs):
        response = client.post(
            "/api/properties/",
            json={"module": "income-property", "address": "412 Maple Avenue", "inputs": rental_inputs},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["id"] == saved_rental["id"]

    def test_create_missing_inputs(self, client, rental_inputs):
        rental_inputs["rent_per_unit_monthly"] = ""
        response = client.post(
            "/api/properties/",
            json={"module": "income-property", "inputs": rental_inputs},
        )
        assert response.status_code == 422

    def test_create_unknown_module(self, client, rental_inputs):
        response = client.post("/api/properties/", json={"module": "wholesale", "inputs": rental_inputs})
        assert response.status_code == 422

    def test_get(self, client, saved_flip):
        response = client.get(f"/api/properties/{saved_flip['id']}")
        assert response.status_code == 200
        assert response.json()["bands"] == {"roi": "Great"}

    def test_get_not_found(self, client):
        assert client.get("/api/properties/nope").status_code == 404

    def test_list_and_filter(self, client, saved_rental, saved_flip):
        data = client.get("/api/properties/").json()
        assert data["total"] == 2

        flips = client.get("/api/properties/", params={"module": "flip"}).json()
        assert [p["id"] for p in flips["properties"]] == [saved_flip["id"]]

        good = client.get("/api/properties/", params={"band": "Good"}).json()
        assert [p["id"] for p in good["properties"]] == [saved_rental["id"]]

        found = client.get("/api/properties/", params={"q": "orchard"}).json()
        assert [p["id"] for p in found["properties"]] == [saved_flip["id"]]

    def test_update_re_evaluates(self, client, saved_rental, rental_inputs):
        rental_inputs["rent_per_unit_monthly"] = 2500
        response = client.put(
            f"/api/properties/{saved_rental['id']}",
            json={"inputs": rental_inputs, "comments": "Rents raised"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["computed"]["gross_rent_monthly"] == 5000
        assert data["computed"]["cap_rate"] > saved_rental["computed"]["cap_rate"]
        assert data["bands"]["cap_rate"] == "Great"
        assert data["comments"] == "Rents raised"
        assert data["updated_at"] is not None

    def test_update_rejects_incomplete_inputs(self, client, saved_rental):
        response = client.put(
            f"/api/properties/{saved_rental['id']}",
            json={"inputs": {"property_value": 0}},
        )
        assert response.status_code == 422

    def test_delete(self, client, saved_rental, db_session):
        response = client.delete(f"/api/properties/{saved_rental['id']}")
        assert response.json() == {"deleted": True, "id": saved_rental["id"]}
        assert client.get(f"/api/properties/{saved_rental['id']}").status_code == 404

        # Soft delete keeps the row
        row = db_session.query(CatalogueProperty).filter_by(id=saved_rental["id"]).first()
        assert row.is_deleted is True

    def test_clear(self, client, saved_rental, saved_flip):
        assert client.delete("/api/properties/").json() == {"deleted": 2}
        assert client.get("/api/properties/").json()["total"] == 0

    def test_pin_sorts_first(self, client, saved_rental, saved_flip):
        response = client.post("/api/properties/pin", json={"ids": [saved_rental["id"]]})
        assert response.status_code == 200

        listed = client.get("/api/properties/").json()["properties"]
        assert listed[0]["id"] == saved_rental["id"]
        assert listed[0]["pinned"] is True

    def test_pin_requires_selection(self, client):
        assert client.post("/api/properties/pin", json={"ids": []}).status_code == 400

    def test_duplicate_lookup(self, client, saved_rental):
        data = client.get("/api/properties/duplicate", params={"address": "412 Maple Avenue"}).json()
        assert data == {"duplicate": True, "id": saved_rental["id"]}

        data = client.get(
            "/api/properties/duplicate",
            params={"address": "412 Maple Avenue", "exclude_id": saved_rental["id"]},
        ).json()
        assert data["duplicate"] is False

    def test_export(self, client, saved_rental, saved_flip):
        data = client.get("/api/properties/export", params={"module": "income-property"}).json()
        assert data["schema_version"] == "grasp-1.0.2"
        assert [p["id"] for p in data["properties"]] == [saved_rental["id"]]

    def test_print(self, client, saved_rental, saved_flip):
        response = client.get("/api/properties/print")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "412 Maple Ave" in response.text
        assert "9.60%" in response.text
        assert '<span class="small good">Good</span>' in response.text
        assert '<span class="small great">Great</span>' in response.text

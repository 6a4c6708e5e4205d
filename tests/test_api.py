from fastapi.testclient import TestClient

from cma_engine.api import app

client = TestClient(app)


def _payload(**overrides):
    payload = {
        "as_of": "2024-06-30",
        "records": [
            {"id": "A1", "status": "Active", "listPrice": 450000, "livingArea": 2200},
            {"id": "C1", "status": "Closed", "closePrice": 400000, "listPrice": 410000,
             "livingArea": 2000, "closeDate": "2024-01-15"},
            {"id": "C2", "standardStatus": "Sold", "soldPrice": "$420,000", "listPrice": 420000,
             "sqft": 2100, "soldDate": "2024-03-10"},
            {"id": "C3", "status": "Closed", "closePrice": 380000, "livingArea": 1900,
             "closeDate": "2024-03-20"},
        ],
    }
    payload.update(overrides)
    return payload


def test_health():
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_report_endpoint():
    resp = client.post("/api/cma/report", json=_payload(excluded_ids=["C3", "A1"]))
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["status_filter"] == "all"
    assert payload["excluded_ids"] == ["A1", "C3"]
    assert payload["as_of"] == "2024-06-30"
    assert payload["status_counts"]["closed"] == 2
    assert payload["statistics"]["price"]["count"] == 2
    assert payload["market"]["months_of_inventory"] == 0
    assert payload["market"]["condition"] == "Seller's Market"
    assert payload["pricing"]["comps_analyzed"] == 2
    assert payload["pricing"]["market_condition"] == "balanced"
    assert [point["month_key"] for point in payload["monthly_trend"]] == ["2024-01", "2024-03"]


def test_pricing_endpoint_unavailable_with_one_comp():
    resp = client.post("/api/cma/pricing", json=_payload(status_filter="closed", excluded_ids=["C1", "C2"]))
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["available"] is False
    assert payload["comps_considered"] == 1
    assert payload["suggestion"] is None


def test_pricing_endpoint():
    payload = client.post("/api/cma/pricing", json=_payload()).json()
    assert payload["available"] is True
    suggestion = payload["suggestion"]
    assert suggestion["suggested_low"] <= suggestion["suggested_mid"] <= suggestion["suggested_high"]
    assert 0 <= suggestion["confidence_score"] <= 100


def test_trend_endpoint():
    payload = client.post("/api/cma/trend", json=_payload()).json()
    assert [point["sale_count"] for point in payload["points"]] == [1, 2]
    assert payload["period_change_pct"] is not None


def test_invalid_status_filter_rejected():
    resp = client.post("/api/cma/report", json=_payload(status_filter="expired"))
    assert resp.status_code == 400


def test_record_without_id_rejected():
    resp = client.post("/api/cma/report", json={"records": [{"status": "Active"}]})
    assert resp.status_code == 422

API = "/api/v1"


def test_health(client):
    response = client.get(f"{API}/estimates/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_price_estimate(client):
    payload = {
        "parts": [
            {"partType": "plate_roll", "material": "A36", "thickness": "3/16", "seamLength": "50",
             "laborCost": "40", "materialCost": "100"},
        ],
        "taxStatus": "resale",
        "customTaxRate": "9.75",
    }
    response = client.post(f"{API}/estimates/price", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["totals"]["tax"] == "0.00"
    assert body["labor"]["effective_labor"] == "125.00"
    assert body["welds"]["0"]["cost"] == "50.00"
    # 120 material + 125 labor + 50 weld
    assert body["totals"]["grand_total"] == "295.00"


def test_price_estimate_missing_weld_rate(client):
    saved = client.put(f"{API}/settings/weld_rates", json={"A36": "4.00"})
    assert saved.status_code == 200

    payload = {"parts": [{"partType": "plate_roll", "material": "AR400", "thickness": "0.5", "seamLength": "24"}]}
    response = client.post(f"{API}/estimates/price", json=payload)
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "MISSING_WELD_RATE"
    assert error["context"]["material_grade"] == "AR400"


def test_feasibility_endpoint(client):
    payload = {"outerDiameter": "1.5", "material": "6061-T6 Alum", "requestedDiameter": "12"}
    response = client.post(f"{API}/estimates/feasibility", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "infeasible"
    assert body["smallest_achievable"] == "18"


def test_weld_cost_endpoint(client):
    payload = {"thickness": "0.375", "seamLength": "12", "material": "A36"}
    response = client.post(f"{API}/estimates/weld-cost", json=payload)
    assert response.status_code == 200
    assert response.json()["passes"] == 3
    assert response.json()["cost"] == "15.00"


def test_invalid_request_body(client):
    response = client.post(f"{API}/estimates/weld-cost", json={"thickness": "thick"})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_settings_round_trip(client):
    response = client.get(f"{API}/settings/tax_settings")
    assert response.status_code == 200
    assert response.json()["rules"]["defaultTaxRate"] == "9.75"

    response = client.put(
        f"{API}/settings/tax_settings",
        json={"defaultTaxRate": "8.25", "defaultLaborRate": "110", "defaultMaterialMarkup": "15"},
    )
    assert response.status_code == 200
    assert response.json()["version"] == 1

    response = client.get(f"{API}/settings/tax_settings")
    assert response.json()["rules"]["defaultTaxRate"] == "8.25"


def test_settings_rejects_inverted_bounds(client):
    rules = [{"partType": "plate_roll", "minWidth": "60", "maxWidth": "24", "minimum": "150"}]
    response = client.put(f"{API}/settings/labor_minimums", json=rules)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_RULE_BOUNDS"


def test_settings_unknown_key(client):
    response = client.get(f"{API}/settings/shop_hours")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "UNKNOWN_SETTINGS_KEY"


def test_material_grades_by_part_type(client):
    response = client.get(f"{API}/settings/material_grades/tube_roll")
    assert response.status_code == 200
    names = [grade["name"] for grade in response.json()]
    assert "DOM" in names
    assert "A36" not in names


def test_root_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_price_estimate_rejects_nan_dimension(client):
    body = '{"parts": [{"partType": "plate_roll", "thickness": NaN, "laborCost": "40"}]}'
    response = client.post(
        f"{API}/estimates/price", content=body, headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "parts.0.thickness"
    assert error["details"][0]["input"] == "nan"


def test_feasibility_with_oversized_diameter_is_a_pricing_error(client):
    payload = {"outerDiameter": "1e26", "requestedDiameter": "10"}
    response = client.post(f"{API}/estimates/feasibility", json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PRICING_CALCULATION_FAILED"


def test_weld_cost_too_large_to_round_is_a_pricing_error(client):
    payload = {"thickness": "1e30", "seamLength": "12", "material": "A36"}
    response = client.post(f"{API}/estimates/weld-cost", json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PRICING_CALCULATION_FAILED"


def test_unknown_route_uses_error_envelope(client):
    response = client.get(f"{API}/estimates/quotes")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "HTTP_404"

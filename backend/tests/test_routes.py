"""HTTP surface: status codes and payload shapes."""

import pytest


@pytest.fixture
def product_id(client):
    resp = client.post("/api/products", json={
        "name": "P1",
        "sku": "P1",
        "selling_price": 100,
        "cost_price": 60,
        "gst_rate": 5,
        "stock": 5,
        "min_stock": 2,
        "expiry_date": "2026-12-31",
    })
    assert resp.status_code == 201
    return resp.get_json()["id"]


def test_create_product_returns_decimal_fields(client, product_id):
    body = client.get(f"/api/products/{product_id}").get_json()

    assert body["selling_price"] == 100.0
    assert body["cost_price"] == 60.0
    assert body["gst_rate"] == 5.0
    assert body["stock"] == 5
    assert body["expiry_date"] == "2026-12-31"
    assert body["last_updated"].endswith("Z")


@pytest.mark.parametrize("payload", [
    {"sku": "X", "selling_price": 1, "cost_price": 1},
    {"name": "X", "selling_price": -1, "cost_price": 1},
    {"name": "X", "selling_price": 1, "cost_price": 1, "stock": 1.5},
    {"name": "X", "selling_price": 1, "cost_price": 1, "owner": "me"},
])
def test_create_product_validation(client, payload):
    resp = client.post("/api/products", json=payload)

    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_update_margin_warning_then_confirm(client, product_id):
    resp = client.put(f"/api/products/{product_id}", json={"selling_price": 50})
    assert resp.status_code == 422
    assert resp.get_json()["require_confirmation"] is True

    resp = client.put(f"/api/products/{product_id}", json={"selling_price": 50, "confirm_loss": True})
    assert resp.status_code == 200
    assert resp.get_json()["selling_price"] == 50.0


def test_update_rejects_stock(client, product_id):
    resp = client.put(f"/api/products/{product_id}", json={"stock": 99})

    assert resp.status_code == 400


def test_unknown_product_is_404(client):
    assert client.get("/api/products/999").status_code == 404
    assert client.put("/api/products/999", json={"name": "x"}).status_code == 404


def test_restock_and_delete(client, product_id):
    resp = client.post(f"/api/products/{product_id}/restock", json={"quantity": 10})
    assert resp.status_code == 200
    assert resp.get_json()["stock"] == 15

    assert client.post(f"/api/products/{product_id}/restock", json={"quantity": 0}).status_code == 400

    assert client.delete(f"/api/products/{product_id}").get_json() == {"ok": True}
    assert client.get("/api/products").get_json()["count"] == 0
    assert client.get("/api/products?include_inactive=true").get_json()["count"] == 1


def test_checkout_flow(client, product_id):
    resp = client.post("/api/transactions", json={
        "items": [{"product_id": product_id, "quantity": 1}],
        "payment_method": "Cash",
        "cashier_id": "C1",
        "cashier_name": "Asha",
    })
    assert resp.status_code == 201
    tx = resp.get_json()
    assert tx["subtotal"] == 100.0
    assert tx["gst_amount"] == 5.0
    assert tx["total"] == 105.0
    assert tx["invoice_no"].startswith("INV-")
    assert tx["items"][0]["product_name"] == "P1"

    assert client.get(f"/api/products/{product_id}").get_json()["stock"] == 4
    assert client.get(f"/api/transactions/{tx['id']}").get_json()["invoice_no"] == tx["invoice_no"]
    assert client.get(f"/api/transactions/invoice/{tx['invoice_no']}").get_json()["id"] == tx["id"]
    assert client.get("/api/transactions").get_json()["count"] == 1

    logs = client.get("/api/activity-logs").get_json()["items"]
    assert logs[0]["action"] == "Sold 1x P1"
    assert logs[0]["actor_name"] == "Asha"


def test_checkout_failures(client, product_id):
    resp = client.post("/api/transactions", json={"items": [], "payment_method": "Cash"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No items in cart"

    resp = client.post("/api/transactions", json={"items": [{"product_id": product_id, "quantity": 6}]})
    assert resp.status_code == 409
    assert resp.get_json()["details"]["available"] == 5

    resp = client.post("/api/transactions", json={"items": [{"product_id": 999, "quantity": 1}]})
    assert resp.status_code == 404

    assert client.get("/api/transactions/999").status_code == 404


def test_quote_does_not_commit(client, product_id):
    resp = client.post("/api/transactions/quote", json={
        "items": [{"product_id": product_id, "quantity": 1}],
        "discount": 20,
    })

    assert resp.status_code == 200
    assert resp.get_json()["total"] == 85.0
    assert client.get("/api/transactions").get_json()["count"] == 0


def test_dashboard_and_reports(client, product_id):
    client.post("/api/transactions", json={"items": [{"product_id": product_id, "quantity": 3}]})

    stats = client.get("/api/dashboard/stats").get_json()
    assert stats["total_revenue"] == 315.0
    assert stats["low_stock_count"] == 1

    alerts = client.get("/api/dashboard/alerts?as_of=2026-12-21T00:00:00Z").get_json()
    assert [a["id"] for a in alerts["low_stock"]] == [product_id]
    assert alerts["expiring"][0]["potential_loss"] == 120.0

    report = client.get("/api/reports").get_json()
    assert report["top_products"][0]["quantity"] == 3
    assert report["reorder_suggestions"][0]["suggested_order"] == 6

    assert client.get("/api/reports?start=not-a-date").status_code == 400
    assert client.get("/api/dashboard/stats?as_of=nope").status_code == 400


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"]["status"] == "healthy"


@pytest.mark.parametrize("name", ["", "   "])
def test_update_rejects_blank_name(client, product_id, name):
    resp = client.put(f"/api/products/{product_id}", json={"name": name})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "name cannot be blank"
    assert client.get(f"/api/products/{product_id}").get_json()["name"] == "P1"


def test_report_routes_log_unexpected_failures(app, client, caplog):
    app.config["REPORT_TIMEZONE"] = "Not/AZone"

    for url in ("/api/dashboard/stats", "/api/dashboard/alerts", "/api/reports?end=2026-03-01"):
        resp = client.get(url)
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}

    failures = [r for r in caplog.records if r.levelname == "ERROR"]
    assert len(failures) == 3

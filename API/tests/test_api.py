"""HTTP API tests."""

from decimal import Decimal

from tests.conftest import BILLING_DAY, daily_records


def test_run_endpoint_creates_records_once(client, db_session, make_merchant, make_subscription):
    merchant = make_merchant()
    make_subscription(merchant, price="100.00", quantity=2)
    make_subscription(merchant, price="250.00")

    resp = client.post("/api/v1/billing/daily-charges/run", json={"date": "2026-03-10"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["created"] == 1
    assert Decimal(body["total_amount"]) == Decimal("450.00")
    assert body["outcomes"][0]["status"] == "created"

    resp = client.post("/api/v1/billing/daily-charges/run", json={"date": "2026-03-10"})
    assert resp.json()["created"] == 0
    assert resp.json()["already_billed"] == 1

    db_session.expire_all()
    assert len(daily_records(db_session, merchant.id)) == 1


def test_run_endpoint_requires_date(client):
    resp = client.post("/api/v1/billing/daily-charges/run", json={})
    assert resp.status_code == 400


def test_run_endpoint_merchant_filter(client, db_session, make_merchant, make_subscription):
    a, b = make_merchant(), make_merchant()
    make_subscription(a)
    make_subscription(b)

    resp = client.post(
        "/api/v1/billing/daily-charges/run",
        json={"date": "2026-03-10", "merchant_ids": [b.id]},
    )

    assert resp.json()["created"] == 1
    db_session.expire_all()
    assert daily_records(db_session, a.id) == []


def test_daily_charges_endpoint(client, make_merchant, make_subscription):
    merchant = make_merchant()
    make_subscription(merchant, price="100.00", quantity=2)

    resp = client.get(f"/api/v1/billing/daily-charges/{merchant.id}", params={"date": "2026-03-10"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["date"] == "2026-03-10"
    assert body["subscriptions"] == 1
    assert Decimal(body["total_daily_charge"]) == Decimal("200.00")
    assert Decimal(body["daily_charges"][0]["daily_price"]) == Decimal("100.00")


def test_daily_charges_endpoint_rejects_bad_date(client, make_merchant):
    merchant = make_merchant()
    resp = client.get(f"/api/v1/billing/daily-charges/{merchant.id}", params={"date": "10/03/2026"})
    assert resp.status_code == 400


def test_unknown_merchant_is_404(client):
    assert client.get("/api/v1/billing/daily-charges/9999").status_code == 404
    assert client.get("/api/v1/billing/payment-status/9999").status_code == 404
    assert client.get("/api/v1/billing/records/9999").status_code == 404


def test_payment_status_endpoint(client, make_merchant, make_subscription, make_billing_record):
    merchant = make_merchant()
    make_subscription(merchant, price="150.00")
    make_billing_record(merchant, amount="150.00", day=BILLING_DAY)

    body = client.get(f"/api/v1/billing/payment-status/{merchant.id}").json()

    assert body["needs_payment"] is True
    assert Decimal(body["amount_due"]) == Decimal("150.00")
    assert body["access_blocked"] is False


def test_records_endpoint(client, make_merchant, make_billing_record):
    merchant = make_merchant()
    make_billing_record(merchant)

    body = client.get(f"/api/v1/billing/records/{merchant.id}", params={"status": "pending"}).json()

    assert body["count"] == 1
    assert body["data"][0]["billing_type"] == "DAILY_SERVICE_FEE"


def test_subscribe_and_list_endpoints(client, make_merchant, make_service):
    merchant = make_merchant()
    service = make_service(price="400.00")

    resp = client.post("/api/v1/subscriptions/subscribe", json={
        "merchant_id": merchant.id,
        "services": [{"service_id": service.id, "quantity": 2}],
        "start_date": "2026-03-01",
    })
    assert resp.status_code == 201
    assert resp.json()["data"][0]["quantity"] == 2
    assert Decimal(resp.json()["data"][0]["line_total"]) == Decimal("800.00")

    listed = client.get(f"/api/v1/subscriptions/merchant/{merchant.id}").json()
    assert listed["count"] == 1
    assert Decimal(listed["data"][0]["price_at_subscription"]) == Decimal("400.00")


def test_subscribe_endpoint_errors(client, make_merchant, make_service):
    pending = make_merchant(approved=False)
    service = make_service()

    resp = client.post("/api/v1/subscriptions/subscribe", json={
        "merchant_id": pending.id,
        "services": [{"service_id": service.id, "quantity": 1}],
    })
    assert resp.status_code == 400

    resp = client.post("/api/v1/subscriptions/subscribe", json={
        "merchant_id": 9999,
        "services": [{"service_id": service.id, "quantity": 1}],
    })
    assert resp.status_code == 404

    resp = client.post("/api/v1/subscriptions/subscribe", json={
        "merchant_id": pending.id,
        "services": [{"service_id": service.id, "quantity": 0}],
    })
    assert resp.status_code == 422


def test_update_status_endpoint(client, make_merchant, make_subscription):
    merchant = make_merchant()
    sub = make_subscription(merchant)

    resp = client.put(f"/api/v1/subscriptions/{sub.id}/status", json={"status": "cancelled"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    resp = client.put(f"/api/v1/subscriptions/{sub.id}/status", json={"status": "paused"})
    assert resp.status_code == 400


def test_root(client):
    assert client.get("/").json()["status"] == "running"


def test_services_endpoint_lists_active_catalogue(client, make_service):
    make_service(name="Returns", category="Logistics")
    make_service(name="Delivery", category="Logistics")
    make_service(name="Inventory", category="Core Services")
    make_service(name="Retired", is_active=False)

    body = client.get("/api/v1/subscriptions/services").json()

    assert body["count"] == 3
    assert [s["name"] for s in body["data"]] == ["Inventory", "Delivery", "Returns"]


def test_update_plan_endpoint(client, make_merchant, make_service, make_subscription):
    merchant = make_merchant()
    kept = make_subscription(merchant, price="100.00")
    dropped = make_subscription(merchant, price="50.00")
    added = make_service(price="30.00")

    resp = client.post("/api/v1/subscriptions/update-plan", json={
        "merchant_id": merchant.id,
        "services_to_update": [
            {"service_id": kept.service_id, "quantity": 3},
            {"service_id": added.id, "quantity": 1},
        ],
        "services_to_remove": [dropped.service_id],
    })
    assert resp.status_code == 200
    assert resp.json()["updates"][0] == "Removed 1 services"

    listed = client.get(f"/api/v1/subscriptions/merchant/{merchant.id}").json()
    quantities = {s["service_id"]: s["quantity"] for s in listed["data"]}
    assert quantities == {kept.service_id: 3, added.id: 1}

    # A second change on the same day is refused
    resp = client.post("/api/v1/subscriptions/update-plan", json={
        "merchant_id": merchant.id,
        "services_to_update": [{"service_id": added.id, "quantity": 2}],
    })
    assert resp.status_code == 429


def test_update_plan_endpoint_errors(client, make_merchant):
    merchant = make_merchant()

    resp = client.post("/api/v1/subscriptions/update-plan", json={
        "merchant_id": 9999, "services_to_update": [], "services_to_remove": [],
    })
    assert resp.status_code == 404

    resp = client.post("/api/v1/subscriptions/update-plan", json={
        "merchant_id": merchant.id,
        "services_to_update": [{"service_id": 9999, "quantity": 1}],
    })
    assert resp.status_code == 400
    assert "not found or inactive" in resp.json()["detail"]

"""Tests for subscription management."""

from datetime import datetime, timedelta
from decimal import Decimal

from database.models import MerchantServiceSubscription, SubscriptionStatus
from services.subscription import SubscriptionService
from tests.conftest import BILLING_DAY, midnight

PLAN_CHANGE_AT = datetime(2026, 3, 10, 14, 30)


def test_subscribe_freezes_current_list_price(db_session, make_merchant, make_service):
    merchant = make_merchant()
    service = make_service(price="500.00")

    ok, msg, subs = SubscriptionService(db_session).subscribe(
        merchant.id, [{"service_id": service.id, "quantity": 3}], start_date=BILLING_DAY, days=30,
    )

    assert ok, msg
    assert len(subs) == 1
    sub = subs[0]
    assert sub.price_at_subscription == Decimal("500.00")
    assert sub.quantity == 3
    assert sub.start_date == midnight(BILLING_DAY)
    assert sub.end_date == midnight(BILLING_DAY + timedelta(days=29))
    assert sub.status == SubscriptionStatus.ACTIVE.value


def test_subscribe_requires_approved_merchant(db_session, make_merchant, make_service):
    merchant = make_merchant(approved=False)
    service = make_service()

    ok, msg, subs = SubscriptionService(db_session).subscribe(
        merchant.id, [{"service_id": service.id, "quantity": 1}]
    )

    assert not ok
    assert "approved" in msg
    assert subs == []


def test_subscribe_rejects_unknown_or_inactive_services(db_session, make_merchant, make_service):
    merchant = make_merchant()
    inactive = make_service(is_active=False)
    service = SubscriptionService(db_session)

    ok, msg, _ = service.subscribe(merchant.id, [{"service_id": inactive.id, "quantity": 1}])
    assert not ok
    assert "not found or inactive" in msg

    ok, msg, _ = service.subscribe(merchant.id, [{"service_id": 9999, "quantity": 1}])
    assert not ok


def test_subscribe_rejects_bad_input(db_session, make_merchant, make_service):
    merchant = make_merchant()
    svc = make_service()
    service = SubscriptionService(db_session)

    assert service.subscribe(9999, [{"service_id": svc.id, "quantity": 1}])[1] == "Merchant not found"
    assert not service.subscribe(merchant.id, [])[0]
    assert not service.subscribe(merchant.id, [{"service_id": svc.id, "quantity": 0}])[0]
    assert not service.subscribe(merchant.id, [{"service_id": svc.id, "quantity": 1}], days=0)[0]


def test_resubscribe_cancels_previous_subscriptions(db_session, make_merchant, make_service):
    merchant = make_merchant()
    first, second = make_service(price="100.00"), make_service(price="200.00")
    service = SubscriptionService(db_session)

    service.subscribe(merchant.id, [{"service_id": first.id, "quantity": 1}])
    service.subscribe(merchant.id, [{"service_id": second.id, "quantity": 1}])

    db_session.expire_all()
    rows = db_session.query(MerchantServiceSubscription).filter(
        MerchantServiceSubscription.merchant_id == merchant.id
    ).all()
    statuses = {r.service_id: r.status for r in rows}
    assert statuses == {
        first.id: SubscriptionStatus.CANCELLED.value,
        second.id: SubscriptionStatus.ACTIVE.value,
    }
    active = service.list_active(merchant.id)
    assert [s["service_name"] for s in active] == [second.name]


def test_update_status(db_session, make_merchant, make_subscription):
    merchant = make_merchant()
    sub = make_subscription(merchant)
    service = SubscriptionService(db_session)

    ok, _, updated = service.update_status(sub.id, SubscriptionStatus.SUSPENDED.value)
    assert ok
    assert updated.status == SubscriptionStatus.SUSPENDED.value

    ok, msg, _ = service.update_status(sub.id, "PAUSED")
    assert not ok
    assert "Invalid status" in msg

    ok, msg, _ = service.update_status(9999, SubscriptionStatus.ACTIVE.value)
    assert not ok
    assert msg == "Subscription not found"


def test_update_service_price(db_session, make_service):
    svc = make_service(price="100.00")
    service = SubscriptionService(db_session)

    assert service.update_service_price(svc.id, "120.50") == (True, "Service price updated")
    assert svc.price == Decimal("120.50")
    assert not service.update_service_price(svc.id, "-1")[0]
    assert not service.update_service_price(svc.id, "abc")[0]
    assert service.update_service_price(9999, "1")[1] == "Service not found"


def test_list_services_orders_by_category_then_name(db_session, make_service):
    make_service(name="Returns", category="Logistics")
    make_service(name="Delivery", category="Logistics")
    make_service(name="Inventory", category="Core Services")
    make_service(name="Retired", category="Core Services", is_active=False)

    service = SubscriptionService(db_session)

    assert [s.name for s in service.list_services()] == ["Inventory", "Delivery", "Returns"]
    assert len(service.list_services(active_only=False)) == 4


# ==================== PLAN UPDATES ====================

def test_update_plan_removes_resizes_and_adds(
    db_session, make_merchant, make_service, make_subscription
):
    merchant = make_merchant()
    kept = make_subscription(merchant, price="100.00", quantity=1)
    dropped = make_subscription(merchant, price="50.00")
    added = make_service(price="30.00")
    SubscriptionService(db_session).update_service_price(kept.service_id, "120.00")

    ok, msg, updates = SubscriptionService(db_session).update_plan(
        merchant.id,
        services_to_update=[
            {"service_id": kept.service_id, "quantity": 2},
            {"service_id": added.id, "quantity": 4},
        ],
        services_to_remove=[dropped.service_id],
        now=PLAN_CHANGE_AT,
    )

    assert ok, msg
    assert updates[0] == "Removed 1 services"
    assert len(updates) == 3

    db_session.expire_all()
    assert dropped.status == SubscriptionStatus.CANCELLED.value
    assert dropped.end_date == PLAN_CHANGE_AT
    assert kept.quantity == 2
    assert kept.price_at_subscription == Decimal("120.00")

    new_sub = db_session.query(MerchantServiceSubscription).filter(
        MerchantServiceSubscription.service_id == added.id
    ).one()
    assert new_sub.status == SubscriptionStatus.ACTIVE.value
    assert new_sub.price_at_subscription == Decimal("30.00")
    assert new_sub.start_date == midnight(PLAN_CHANGE_AT.date())
    assert new_sub.end_date is None
    assert merchant.last_plan_update == PLAN_CHANGE_AT


def test_update_plan_keeps_price_when_quantity_unchanged(
    db_session, make_merchant, make_subscription
):
    merchant = make_merchant()
    sub = make_subscription(merchant, price="100.00", quantity=2)
    SubscriptionService(db_session).update_service_price(sub.service_id, "999.00")

    ok, _, updates = SubscriptionService(db_session).update_plan(
        merchant.id, [{"service_id": sub.service_id, "quantity": 2}], [], now=PLAN_CHANGE_AT,
    )

    assert ok
    assert updates == []
    db_session.expire_all()
    assert sub.price_at_subscription == Decimal("100.00")


def test_update_plan_allowed_once_per_24_hours(db_session, make_merchant, make_subscription):
    merchant = make_merchant()
    sub = make_subscription(merchant)
    service = SubscriptionService(db_session)

    assert service.update_plan(merchant.id, [], [], now=PLAN_CHANGE_AT)[0]

    ok, msg, updates = service.update_plan(
        merchant.id, [{"service_id": sub.service_id, "quantity": 5}], [],
        now=PLAN_CHANGE_AT + timedelta(hours=23, minutes=30),
    )
    assert not ok
    assert "once every 24 hours" in msg
    assert "1 more hour(s)" in msg
    assert updates == []
    db_session.expire_all()
    assert sub.quantity == 1

    ok, msg, _ = service.update_plan(
        merchant.id, [{"service_id": sub.service_id, "quantity": 5}], [],
        now=PLAN_CHANGE_AT + timedelta(hours=24),
    )
    assert ok, msg


def test_update_plan_unknown_service_changes_nothing(
    db_session, make_merchant, make_service, make_subscription
):
    merchant = make_merchant()
    sub = make_subscription(merchant)
    inactive = make_service(is_active=False)

    ok, msg, updates = SubscriptionService(db_session).update_plan(
        merchant.id,
        services_to_update=[{"service_id": inactive.id, "quantity": 1}],
        services_to_remove=[sub.service_id],
        now=PLAN_CHANGE_AT,
    )

    assert not ok
    assert msg == f"Service {inactive.id} not found or inactive"
    db_session.expire_all()
    assert sub.status == SubscriptionStatus.ACTIVE.value
    assert merchant.last_plan_update is None


def test_update_plan_rejects_bad_input(db_session, make_merchant, make_subscription):
    merchant = make_merchant()
    sub = make_subscription(merchant)
    pending = make_merchant(approved=False)
    service = SubscriptionService(db_session)

    assert service.update_plan(9999, [], [])[1] == "Merchant not found"
    assert not service.update_plan(pending.id, [], [], now=PLAN_CHANGE_AT)[0]
    ok, msg, _ = service.update_plan(
        merchant.id, [{"service_id": sub.service_id, "quantity": 0}], [], now=PLAN_CHANGE_AT,
    )
    assert not ok
    assert msg == "Quantity must be at least 1"

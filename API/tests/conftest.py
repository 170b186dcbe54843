"""Shared fixtures: a fresh SQLite database per test plus model factories."""

from datetime import date, datetime, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import DatabaseConnection, get_db
from database.models import (
    BillingRecord, BillingStatus, BillingType,
    Merchant, MerchantServiceSubscription, OnboardingStatus,
    Service, SubscriptionStatus,
)

BILLING_DAY = date(2026, 3, 10)


def midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


@pytest.fixture
def conn(tmp_path):
    """File-backed so several sessions (and threads) can share it."""
    connection = DatabaseConnection(f"sqlite:///{tmp_path / 'billing.db'}", echo=False)
    connection.create_all()
    yield connection
    connection.dispose()


@pytest.fixture
def db_session(conn):
    session = conn.get_session_direct()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_merchant(db_session):
    counter = {"n": 0}

    def _make(business_name=None, approved=True):
        counter["n"] += 1
        m = Merchant(
            business_name=business_name or f"Merchant {counter['n']}",
            email=f"merchant{counter['n']}@example.com",
            onboarding_status=(
                OnboardingStatus.APPROVED.value if approved else OnboardingStatus.PENDING.value
            ),
        )
        db_session.add(m)
        db_session.commit()
        db_session.refresh(m)
        return m

    return _make


@pytest.fixture
def make_service(db_session):
    counter = {"n": 0}

    def _make(name=None, price="100.00", is_active=True, category="Core Services"):
        counter["n"] += 1
        s = Service(
            name=name or f"Service {counter['n']}",
            description="Test service",
            category=category,
            price=Decimal(price),
            is_active=is_active,
        )
        db_session.add(s)
        db_session.commit()
        db_session.refresh(s)
        return s

    return _make


@pytest.fixture
def make_subscription(db_session, make_service):
    def _make(
        merchant, price="100.00", quantity=1, service=None,
        status=SubscriptionStatus.ACTIVE.value,
        start=date(2026, 3, 1), end=None,
    ):
        service = service or make_service(price=price)
        sub = MerchantServiceSubscription(
            merchant_id=merchant.id,
            service_id=service.id,
            status=status,
            start_date=midnight(start),
            end_date=midnight(end) if end else None,
            price_at_subscription=Decimal(price),
            quantity=quantity,
        )
        db_session.add(sub)
        db_session.commit()
        db_session.refresh(sub)
        return sub

    return _make


@pytest.fixture
def make_billing_record(db_session):
    def _make(
        merchant, amount="100.00", day=BILLING_DAY,
        status=BillingStatus.PENDING.value,
        billing_type=BillingType.DAILY_SERVICE_FEE.value,
        paid_at=None,
    ):
        record = BillingRecord(
            merchant_id=merchant.id,
            billing_type=billing_type,
            description=f"Daily service charges for {day.isoformat()}",
            amount=Decimal(amount),
            currency="NGN",
            due_date=midnight(day),
            billing_day=day if billing_type == BillingType.DAILY_SERVICE_FEE.value else None,
            status=status,
            paid_at=paid_at,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


@pytest.fixture
def client(conn):
    from app import app

    def _get_db():
        session = conn.get_session_direct()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def daily_records(session, merchant_id=None):
    q = session.query(BillingRecord).filter(
        BillingRecord.billing_type == BillingType.DAILY_SERVICE_FEE.value
    )
    if merchant_id is not None:
        q = q.filter(BillingRecord.merchant_id == merchant_id)
    return q.order_by(BillingRecord.due_date).all()

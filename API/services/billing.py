"""
Billing service — merchant-facing billing views: today's charges,
accumulated pending fees, payment status and billing history.

The daily fee records themselves are created by services.billing_run.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from database.models import (
    Merchant, BillingRecord, BillingStatus, BillingType,
    MerchantServiceSubscription, SubscriptionStatus,
)
from services.base import MerchantServiceBase
from services.billing_run import (
    billable_subscriptions_query, billing_today, day_bounds, merchant_total,
)


def month_bounds(day: date):
    """[first day of month 00:00, first day of next month 00:00)."""
    start = date(day.year, day.month, 1)
    if day.month == 12:
        end = date(day.year + 1, 1, 1)
    else:
        end = date(day.year, day.month + 1, 1)
    return day_bounds(start)[0], day_bounds(end)[0]


def should_block_merchant_access(payment_status: dict) -> bool:
    """Cash-on-delivery model: pending fees never block a merchant."""
    return False


class BillingService(MerchantServiceBase):
    def __init__(self, db: Session, merchant_id: int):
        super().__init__(db, merchant_id)

    def get_merchant(self) -> Optional[Merchant]:
        return self.db.query(Merchant).filter(Merchant.id == self.merchant_id).first()

    # ==================== DAILY CHARGES ====================

    def get_daily_charges(self, day: date = None) -> dict:
        """Charge lines for `day` plus this month's accumulated pending fees."""
        day = day or billing_today()

        subscriptions = billable_subscriptions_query(
            self.db, day, [self.merchant_id]
        ).options(joinedload(MerchantServiceSubscription.service)).all()

        lines = []
        for sub in subscriptions:
            lines.append({
                "subscription_id": sub.id,
                "service_id": sub.service_id,
                "service_name": sub.service.name,
                "service_description": sub.service.description,
                "service_category": sub.service.category,
                "quantity": sub.quantity,
                "daily_price": sub.price_at_subscription,
                "total_daily_charge": sub.line_total,
            })

        month_start, month_end = month_bounds(day)
        accumulated = self._pending_daily_fees().filter(
            BillingRecord.due_date >= month_start,
            BillingRecord.due_date < month_end,
        ).all()

        return {
            "date": day,
            "daily_charges": lines,
            "total_daily_charge": merchant_total(subscriptions),
            "accumulated_charges": self._sum(accumulated),
            "subscriptions": len(subscriptions),
        }

    # ==================== PAYMENT STATUS ====================

    def get_payment_status(self, day: date = None) -> dict:
        """Outstanding daily fees plus what the billing run would charge on `day`."""
        active = billable_subscriptions_query(
            self.db, day or billing_today(), [self.merchant_id]
        ).all()

        pending = self._pending_daily_fees().order_by(BillingRecord.due_date.asc()).all()

        last_paid = self._q(BillingRecord).filter(
            BillingRecord.status == BillingStatus.PAID.value,
            BillingRecord.paid_at.isnot(None),
        ).order_by(BillingRecord.paid_at.desc()).first()

        amount_due = self._sum(pending)
        return {
            "merchant_id": self.merchant_id,
            "has_active_subscription": len(active) > 0,
            "subscription_status": SubscriptionStatus.ACTIVE.value if active else None,
            "needs_payment": amount_due > 0,
            "last_payment_date": last_paid.paid_at if last_paid else None,
            "next_billing_date": pending[0].due_date if pending else None,
            "amount_due": amount_due,
            "daily_charge": merchant_total(active),
        }

    # ==================== HISTORY ====================

    def list_billing_records(
        self, status: str = None,
        date_from: date = None, date_to: date = None,
    ) -> list:
        q = self._q(BillingRecord)
        if status:
            q = q.filter(BillingRecord.status == status)
        if date_from:
            q = q.filter(BillingRecord.due_date >= day_bounds(date_from)[0])
        if date_to:
            q = q.filter(BillingRecord.due_date < day_bounds(date_to)[1])
        return [self._to_dict(r) for r in q.order_by(BillingRecord.due_date.desc()).all()]

    # ==================== HELPERS ====================

    def _pending_daily_fees(self):
        return self._q(BillingRecord).filter(
            BillingRecord.status == BillingStatus.PENDING.value,
            BillingRecord.billing_type == BillingType.DAILY_SERVICE_FEE.value,
        )

    @staticmethod
    def _sum(records) -> Decimal:
        return sum((Decimal(str(r.amount)) for r in records), Decimal("0.00"))

    def _to_dict(self, r: BillingRecord) -> dict:
        return {
            "id": r.id,
            "merchant_id": r.merchant_id,
            "billing_type": r.billing_type,
            "description": r.description,
            "amount": r.amount,
            "currency": r.currency,
            "due_date": r.due_date,
            "status": r.status,
            "paid_at": r.paid_at,
            "created_at": r.created_at,
        }

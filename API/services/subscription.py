"""
Subscription service — merchant service subscriptions and the service
catalogue they are priced from.
"""

import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from database.base import get_local_now
from database.models import (
    Merchant, OnboardingStatus, Service,
    MerchantServiceSubscription, SubscriptionStatus,
)
from services.billing_run import billing_today

PLAN_UPDATE_INTERVAL = timedelta(hours=24)


class SubscriptionService:
    """Service catalogue and merchant subscription management."""

    def __init__(self, db: Session):
        self.db = db

    # ==================== CATALOGUE ====================

    def list_services(self, active_only: bool = True) -> List[Service]:
        q = self.db.query(Service)
        if active_only:
            q = q.filter(Service.is_active == True)
        return q.order_by(Service.category, Service.name).all()

    def update_service_price(self, service_id: int, price) -> Tuple[bool, str]:
        """
        Change a service's list price.
        Existing subscriptions keep their price_at_subscription.
        """
        service = self.db.query(Service).filter(Service.id == service_id).first()
        if not service:
            return False, "Service not found"
        try:
            new_price = Decimal(str(price))
        except InvalidOperation:
            return False, "Invalid price"
        if new_price < 0:
            return False, "Price must not be negative"

        service.price = new_price
        self.db.commit()
        return True, "Service price updated"

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(
        self, merchant_id: int, items: List[dict],
        start_date: date = None, days: int = 30,
    ) -> Tuple[bool, str, List[MerchantServiceSubscription]]:
        """
        Replace the merchant's subscriptions with `items`.

        items: [{"service_id": int, "quantity": int}, ...]
        The unit price is frozen from Service.price at this moment. The
        subscription is billable from start_date for `days` calendar days.
        """
        merchant = self.db.query(Merchant).filter(Merchant.id == merchant_id).first()
        if not merchant:
            return False, "Merchant not found", []
        if merchant.onboarding_status != OnboardingStatus.APPROVED.value:
            return False, "Merchant must be approved before subscribing to services", []
        if not items:
            return False, "At least one service is required", []
        if days < 1:
            return False, "Subscription period must be at least one day", []
        for item in items:
            if int(item.get("quantity", 0)) < 1:
                return False, "Quantity must be at least 1", []

        service_ids = {int(item["service_id"]) for item in items}
        services = {
            s.id: s for s in self.db.query(Service).filter(
                Service.id.in_(service_ids),
                Service.is_active == True,
            ).all()
        }
        if len(services) != len(service_ids):
            return False, "One or more services not found or inactive", []

        start = start_date or billing_today()
        start_at = datetime.combine(start, time.min)
        end_at = start_at + timedelta(days=days - 1)

        # Previous subscriptions stay as history
        self.db.query(MerchantServiceSubscription).filter(
            MerchantServiceSubscription.merchant_id == merchant_id,
            MerchantServiceSubscription.status == SubscriptionStatus.ACTIVE.value,
        ).update(
            {MerchantServiceSubscription.status: SubscriptionStatus.CANCELLED.value},
            synchronize_session=False,
        )

        created = []
        for item in items:
            service = services[int(item["service_id"])]
            sub = MerchantServiceSubscription(
                merchant_id=merchant_id,
                service_id=service.id,
                quantity=int(item["quantity"]),
                price_at_subscription=service.price,
                status=SubscriptionStatus.ACTIVE.value,
                start_date=start_at,
                end_date=end_at,
            )
            self.db.add(sub)
            created.append(sub)

        self.db.commit()
        logger.info(
            f"Merchant {merchant_id} subscribed to {len(created)} services "
            f"from {start.isoformat()} for {days} days"
        )
        return True, "Successfully subscribed to selected services", created

    def update_plan(
        self, merchant_id: int,
        services_to_update: List[dict],
        services_to_remove: List[int],
        now: datetime = None,
    ) -> Tuple[bool, str, List[str]]:
        """
        Change a merchant's plan in place, at most once every 24 hours.

        services_to_update: [{"service_id": int, "quantity": int}, ...]
            A service the merchant lacks is added from today; a changed
            quantity is re-priced at the current list price.
        services_to_remove: service ids whose ACTIVE subscriptions end now.

        Returns (ok, message, list of human-readable changes).
        """
        now = now or get_local_now()

        merchant = self.db.query(Merchant).filter(Merchant.id == merchant_id).first()
        if not merchant:
            return False, "Merchant not found", []
        if merchant.onboarding_status != OnboardingStatus.APPROVED.value:
            return False, "Merchant must be approved before changing services", []

        if merchant.last_plan_update is not None:
            elapsed = now - merchant.last_plan_update
            if elapsed < PLAN_UPDATE_INTERVAL:
                hours_remaining = math.ceil(
                    (PLAN_UPDATE_INTERVAL - elapsed).total_seconds() / 3600
                )
                return False, (
                    "You can only update your plan once every 24 hours. "
                    f"Please wait {hours_remaining} more hour(s)."
                ), []

        for item in services_to_update:
            if int(item.get("quantity", 0)) < 1:
                return False, "Quantity must be at least 1", []

        service_ids = {int(item["service_id"]) for item in services_to_update}
        services = {
            s.id: s for s in self.db.query(Service).filter(
                Service.id.in_(service_ids),
                Service.is_active == True,
            ).all()
        } if service_ids else {}
        missing = sorted(service_ids - set(services))
        if missing:
            return False, f"Service {missing[0]} not found or inactive", []

        updates = []
        if services_to_remove:
            removed = self.db.query(MerchantServiceSubscription).filter(
                MerchantServiceSubscription.merchant_id == merchant_id,
                MerchantServiceSubscription.service_id.in_(services_to_remove),
                MerchantServiceSubscription.status == SubscriptionStatus.ACTIVE.value,
            ).update(
                {
                    MerchantServiceSubscription.status: SubscriptionStatus.CANCELLED.value,
                    MerchantServiceSubscription.end_date: now,
                },
                synchronize_session=False,
            )
            updates.append(f"Removed {removed} services")

        active = {
            s.service_id: s for s in self.db.query(MerchantServiceSubscription).filter(
                MerchantServiceSubscription.merchant_id == merchant_id,
                MerchantServiceSubscription.status == SubscriptionStatus.ACTIVE.value,
            ).all()
        }

        for item in services_to_update:
            service = services[int(item["service_id"])]
            quantity = int(item["quantity"])
            existing = active.get(service.id)
            if existing is not None:
                if existing.quantity != quantity:
                    existing.quantity = quantity
                    existing.price_at_subscription = service.price
                    updates.append(f"Updated {service.name} quantity to {quantity}")
                continue

            sub = MerchantServiceSubscription(
                merchant_id=merchant_id,
                service_id=service.id,
                quantity=quantity,
                price_at_subscription=service.price,
                status=SubscriptionStatus.ACTIVE.value,
                start_date=datetime.combine(now.date(), time.min),
                end_date=None,
            )
            self.db.add(sub)
            active[service.id] = sub
            updates.append(f"Added {service.name} (×{quantity})")

        merchant.last_plan_update = now
        self.db.commit()
        logger.info(f"Merchant {merchant_id} updated plan: {'; '.join(updates) or 'no changes'}")
        return True, "Plan updated successfully", updates

    def update_status(
        self, subscription_id: int, status: str,
    ) -> Tuple[bool, str, Optional[MerchantServiceSubscription]]:
        valid = {s.value for s in SubscriptionStatus}
        if status not in valid:
            return False, f"Invalid status, expected one of: {', '.join(sorted(valid))}", None

        sub = self.db.query(MerchantServiceSubscription).filter(
            MerchantServiceSubscription.id == subscription_id
        ).first()
        if not sub:
            return False, "Subscription not found", None

        sub.status = status
        self.db.commit()
        return True, "Subscription status updated", sub

    def list_active(self, merchant_id: int) -> list:
        subs = self.db.query(MerchantServiceSubscription).options(
            joinedload(MerchantServiceSubscription.service)
        ).filter(
            MerchantServiceSubscription.merchant_id == merchant_id,
            MerchantServiceSubscription.status == SubscriptionStatus.ACTIVE.value,
        ).order_by(MerchantServiceSubscription.id).all()
        return [self._to_dict(s) for s in subs]

    def _to_dict(self, s: MerchantServiceSubscription) -> dict:
        return {
            "id": s.id,
            "merchant_id": s.merchant_id,
            "service_id": s.service_id,
            "service_name": s.service.name if s.service else None,
            "status": s.status,
            "quantity": s.quantity,
            "price_at_subscription": s.price_at_subscription,
            "line_total": s.line_total,
            "start_date": s.start_date,
            "end_date": s.end_date,
        }

"""
Daily Billing Run — recurring service fees

Turns every merchant's billable service subscriptions into one PENDING
DAILY_SERVICE_FEE billing record per calendar day.

    report = DailyBillingService(session).run_daily_billing(date(2026, 3, 1))

Guarantees:
- at most one daily fee per (merchant, day): a pre-check plus the
  uq_billing_records_daily constraint; losing a race counts as already billed,
  any other constraint violation counts as failed
- each merchant is committed on its own, so a failure or a cancellation
  leaves earlier merchants billed and a rerun for the same day finishes the rest
- amounts are summed as Decimal from price_at_subscription, never Service.price
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from database.models import (
    BillingRecord, BillingStatus, BillingType,
    MerchantServiceSubscription, SubscriptionStatus,
)

CENT = Decimal("0.01")


class BillingRunError(Exception):
    """The run could not read its input; nothing was billed."""


class OutcomeStatus(str, Enum):
    CREATED = "created"
    ALREADY_BILLED = "already_billed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class MerchantOutcome:
    merchant_id: int
    status: OutcomeStatus
    amount: Decimal
    record_id: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "merchant_id": self.merchant_id,
            "status": self.status.value,
            "amount": str(self.amount),
            "record_id": self.record_id,
            "error": self.error,
        }


@dataclass
class BillingRunReport:
    billing_date: date
    subscriptions_count: int = 0
    outcomes: List[MerchantOutcome] = field(default_factory=list)
    cancelled: bool = False
    remaining: int = 0  # merchants never started because of cancellation

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def created_count(self) -> int:
        return self._count(OutcomeStatus.CREATED)

    @property
    def already_billed_count(self) -> int:
        return self._count(OutcomeStatus.ALREADY_BILLED)

    @property
    def failed_count(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def total_amount(self) -> Decimal:
        return sum(
            (o.amount for o in self.outcomes if o.status == OutcomeStatus.CREATED),
            Decimal("0.00"),
        )

    @property
    def failures(self) -> List[MerchantOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0

    def to_dict(self) -> dict:
        return {
            "billing_date": self.billing_date.isoformat(),
            "subscriptions_count": self.subscriptions_count,
            "created": self.created_count,
            "already_billed": self.already_billed_count,
            "failed": self.failed_count,
            "skipped": self.skipped_count,
            "total_amount": str(self.total_amount),
            "cancelled": self.cancelled,
            "remaining": self.remaining,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


# ==================== HELPERS ====================

def billing_today(tz_name: Optional[str] = None) -> date:
    """Current calendar day in the billing timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.billing_timezone)).date()


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """[midnight of day, midnight of the next day)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def group_by_merchant(
    subscriptions: Iterable[MerchantServiceSubscription],
) -> Dict[int, List[MerchantServiceSubscription]]:
    grouped: Dict[int, List[MerchantServiceSubscription]] = defaultdict(list)
    for sub in subscriptions:
        grouped[sub.merchant_id].append(sub)
    return dict(grouped)


def merchant_total(subscriptions: Iterable[MerchantServiceSubscription]) -> Decimal:
    """Sum of price_at_subscription x quantity, rounded to cents."""
    total = sum(
        (_to_decimal(s.price_at_subscription) * s.quantity for s in subscriptions),
        Decimal("0"),
    )
    return total.quantize(CENT)


def billable_subscriptions_query(db: Session, day: date, merchant_ids: Optional[List[int]] = None):
    day_start, _ = day_bounds(day)
    q = db.query(MerchantServiceSubscription).filter(
        MerchantServiceSubscription.status == SubscriptionStatus.ACTIVE.value,
        MerchantServiceSubscription.start_date <= day_start,
        or_(
            MerchantServiceSubscription.end_date.is_(None),
            MerchantServiceSubscription.end_date >= day_start,
        ),
    )
    if merchant_ids:
        q = q.filter(MerchantServiceSubscription.merchant_id.in_(merchant_ids))
    return q.order_by(MerchantServiceSubscription.merchant_id, MerchantServiceSubscription.id)


def daily_fee_description(day: date) -> str:
    return f"Daily service charges for {day.isoformat()}"


# ==================== SERVICE ====================

class DailyBillingService:
    """Creates the daily service fee records for one calendar day."""

    def __init__(self, db: Session, currency: Optional[str] = None):
        self.db = db
        self.currency = currency or settings.billing_currency

    def run_daily_billing(
        self,
        reference_date=None,
        merchant_ids: Optional[List[int]] = None,
        cancel_event=None,
        tz: Optional[str] = None,
    ) -> BillingRunReport:
        """
        Bill every merchant with a positive total for `reference_date`.

        reference_date: date or datetime (truncated to its day); defaults to
            today in `tz` / BILLING_TIMEZONE.
        merchant_ids: restrict the run to these merchants (empty = all).
        cancel_event: anything with is_set(); checked before each merchant.

        Raises BillingRunError if subscriptions cannot be read.
        """
        day = self._resolve_day(reference_date, tz)
        day_start, day_end = day_bounds(day)
        report = BillingRunReport(billing_date=day)

        logger.info(f"🧾 Daily billing run for {day.isoformat()} started")

        try:
            subscriptions = billable_subscriptions_query(self.db, day, merchant_ids).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Could not read subscriptions for {day.isoformat()}: {e}")
            raise BillingRunError(f"Failed to read subscriptions: {e}") from e

        report.subscriptions_count = len(subscriptions)
        logger.info(f"Found {len(subscriptions)} active subscriptions")

        # Totals are computed before any write; a rollback expires loaded rows
        totals = [
            (merchant_id, merchant_total(merchant_subs))
            for merchant_id, merchant_subs in group_by_merchant(subscriptions).items()
        ]

        for index, (merchant_id, total) in enumerate(totals):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                report.remaining = len(totals) - index
                logger.warning(
                    f"⏹ Billing run cancelled, {report.remaining} merchants left for a rerun"
                )
                break
            outcome = self._bill_merchant(merchant_id, total, day, day_start, day_end)
            report.outcomes.append(outcome)

        logger.info(
            f"✅ Created {report.created_count} daily billing records "
            f"({report.already_billed_count} already billed, {report.failed_count} failed), "
            f"total {settings.currency_symbol}{report.total_amount}"
        )
        return report

    def _resolve_day(self, reference_date, tz: Optional[str]) -> date:
        if reference_date is None:
            return billing_today(tz)
        if isinstance(reference_date, datetime):
            return reference_date.date()
        return reference_date

    def _bill_merchant(
        self,
        merchant_id: int,
        total: Decimal,
        day: date,
        day_start: datetime,
        day_end: datetime,
    ) -> MerchantOutcome:
        if total <= 0:
            logger.debug(f"Merchant {merchant_id}: zero daily total, skipped")
            return MerchantOutcome(merchant_id, OutcomeStatus.SKIPPED, total)

        try:
            existing = self.find_daily_record(merchant_id, day_start, day_end)
            if existing is not None:
                logger.info(f"Billing record already exists for merchant {merchant_id}")
                return MerchantOutcome(
                    merchant_id, OutcomeStatus.ALREADY_BILLED, total, record_id=existing.id
                )

            record = BillingRecord(
                merchant_id=merchant_id,
                billing_type=BillingType.DAILY_SERVICE_FEE.value,
                description=daily_fee_description(day),
                amount=total,
                currency=self.currency,
                due_date=day_start,
                billing_day=day,
                status=BillingStatus.PENDING.value,
            )
            self.db.add(record)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            return self._resolve_conflict(merchant_id, total, day_start, day_end, e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Billing failed for merchant {merchant_id}: {e}")
            return MerchantOutcome(merchant_id, OutcomeStatus.FAILED, total, error=str(e))

        logger.info(
            f"Created billing record for merchant {merchant_id}: "
            f"{settings.currency_symbol}{total}"
        )
        return MerchantOutcome(merchant_id, OutcomeStatus.CREATED, total, record_id=record.id)

    def _resolve_conflict(
        self,
        merchant_id: int,
        total: Decimal,
        day_start: datetime,
        day_end: datetime,
        error: IntegrityError,
    ) -> MerchantOutcome:
        """
        An insert hit a constraint. It is only "already billed" when the
        (merchant, day) record now exists; a missing merchant row or any
        other violation is a failure.
        """
        try:
            existing = self.find_daily_record(merchant_id, day_start, day_end)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Billing failed for merchant {merchant_id}: {e}")
            return MerchantOutcome(merchant_id, OutcomeStatus.FAILED, total, error=str(e))

        if existing is None:
            logger.error(f"❌ Billing failed for merchant {merchant_id}: {error}")
            return MerchantOutcome(merchant_id, OutcomeStatus.FAILED, total, error=str(error))

        logger.info(f"Billing record already exists for merchant {merchant_id} (concurrent run)")
        return MerchantOutcome(
            merchant_id, OutcomeStatus.ALREADY_BILLED, total, record_id=existing.id
        )

    def find_daily_record(
        self, merchant_id: int, day_start: datetime, day_end: datetime
    ) -> Optional[BillingRecord]:
        return self.db.query(BillingRecord).filter(
            BillingRecord.merchant_id == merchant_id,
            BillingRecord.billing_type == BillingType.DAILY_SERVICE_FEE.value,
            BillingRecord.due_date >= day_start,
            BillingRecord.due_date < day_end,
        ).first()

"""
Billing record model — monetary obligations owed by merchants.
"""

from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, Text, Numeric, DateTime, Date,
    Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship

from ..base import MerchantBaseModel


class BillingType(PyEnum):
    DAILY_SERVICE_FEE = "DAILY_SERVICE_FEE"
    SUBSCRIPTION = "SUBSCRIPTION"
    SETUP_FEE = "SETUP_FEE"
    USAGE_FEE = "USAGE_FEE"


class BillingStatus(PyEnum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class BillingRecord(MerchantBaseModel):
    """One charge owed by a merchant."""

    __tablename__ = 'billing_records'

    billing_type = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)

    amount = Column(Numeric(20, 2), nullable=False)
    currency = Column(String(10), default='NGN', nullable=False)

    # Charge day at midnight
    due_date = Column(DateTime, nullable=False)
    # Calendar day of the charge; only set for daily service fees (NULLs never collide)
    billing_day = Column(Date, nullable=True)

    status = Column(String(20), default=BillingStatus.PENDING.value, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    merchant = relationship("Merchant", back_populates="billing_records")

    __table_args__ = (
        UniqueConstraint('merchant_id', 'billing_type', 'billing_day', name='uq_billing_records_daily'),
        Index('ix_billing_records_merchant_due', 'merchant_id', 'billing_type', 'due_date'),
        Index('ix_billing_records_status', 'status'),
        CheckConstraint('amount >= 0', name='ck_billing_records_amount_non_negative'),
    )

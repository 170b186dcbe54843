"""
Service catalogue and merchant service subscriptions.
"""

from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, Integer, Text, Numeric,
    DateTime, Boolean, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from ..base import BaseModel, MerchantBaseModel


class SubscriptionStatus(PyEnum):
    """Merchant service subscription status."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"


class Service(BaseModel):
    """A billable platform service with a current daily list price."""

    __tablename__ = 'services'

    name = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    # Current list price per day. Changing it never touches existing subscriptions.
    price = Column(Numeric(20, 2), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}')>"


class MerchantServiceSubscription(MerchantBaseModel):
    """
    A merchant's enrollment in one service.

    price_at_subscription is the unit price frozen when the merchant
    subscribed; billing always uses it instead of Service.price.
    A subscription is billable for day D when it is ACTIVE and
    start_date <= D <= end_date (end_date NULL = open-ended).
    """

    __tablename__ = 'merchant_service_subscriptions'

    service_id = Column(Integer, ForeignKey('services.id'), nullable=False, index=True)

    status = Column(String(20), default=SubscriptionStatus.ACTIVE.value, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    price_at_subscription = Column(Numeric(20, 2), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)

    merchant = relationship("Merchant", back_populates="subscriptions")
    service = relationship("Service")

    __table_args__ = (
        Index('ix_mss_status_window', 'status', 'start_date', 'end_date'),
        CheckConstraint('quantity > 0', name='ck_mss_quantity_positive'),
        CheckConstraint('price_at_subscription >= 0', name='ck_mss_price_non_negative'),
    )

    @property
    def line_total(self):
        return self.price_at_subscription * self.quantity

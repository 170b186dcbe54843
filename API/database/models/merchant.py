"""
Merchant model — a seller using the fulfillment platform.
Each merchant owns its service subscriptions and billing records.
"""

from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, Boolean, Text, DateTime, Index
)
from sqlalchemy.orm import relationship

from ..base import BaseModel


class OnboardingStatus(PyEnum):
    """Merchant onboarding status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Merchant(BaseModel):
    """
    Merchant model - represents a seller on the platform.

    Each merchant has its own:
    - Service subscriptions (frozen price per unit, quantity)
    - Billing records (daily service fees and other charges)
    """

    __tablename__ = 'merchants'

    # Basic info
    business_name = Column(String(300), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    # Onboarding
    onboarding_status = Column(
        String(20),
        default=OnboardingStatus.PENDING.value,
        nullable=False
    )

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Last self-service plan change; plan updates are limited to one per 24 hours
    last_plan_update = Column(DateTime, nullable=True)

    subscriptions = relationship(
        "MerchantServiceSubscription",
        back_populates="merchant",
        cascade="all, delete-orphan",
    )
    billing_records = relationship(
        "BillingRecord",
        back_populates="merchant",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('ix_merchants_onboarding_status', 'onboarding_status'),
    )

    def __repr__(self):
        return f"<Merchant(id={self.id}, business_name='{self.business_name}')>"

    @property
    def is_approved(self) -> bool:
        return self.is_active and self.onboarding_status == OnboardingStatus.APPROVED.value

"""
Base model class and common mixins for all database models.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, declared_attr

from core.config import settings

Base = declarative_base()


def get_local_now():
    """Get current time in the billing timezone (as naive datetime)."""
    return datetime.now(ZoneInfo(settings.billing_timezone)).replace(tzinfo=None)


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at = Column(DateTime, default=get_local_now, nullable=False)
    updated_at = Column(DateTime, default=get_local_now, onupdate=get_local_now, nullable=False)


class MerchantMixin:
    """
    Mixin that adds merchant_id to any model.
    All merchant-owned models (subscriptions, billing records) use this mixin.
    """

    @declared_attr
    def merchant_id(cls):
        return Column(
            Integer,
            ForeignKey('merchants.id', ondelete='CASCADE'),
            nullable=False,
            index=True
        )


class BaseModel(Base, TimestampMixin):
    """Abstract base model for global models (Merchant, Service)."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    def to_dict(self):
        """Convert model to dictionary."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"


class MerchantBaseModel(Base, TimestampMixin, MerchantMixin):
    """
    Abstract base model for merchant-owned models.

    Includes:
    - id (PK)
    - merchant_id (FK -> merchants.id) with index
    - created_at, updated_at timestamps
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    def to_dict(self):
        """Convert model to dictionary."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id}, merchant_id={self.merchant_id})>"

"""
Billing and subscription schemas for the HTTP API.
"""

from typing import Optional, List
from datetime import date as date_type, datetime
from decimal import Decimal
from pydantic import BaseModel, field_validator


class DailyChargeLine(BaseModel):
    """One subscription's contribution to a day's charge."""

    subscription_id: int
    service_id: int
    service_name: str
    service_description: Optional[str] = None
    service_category: Optional[str] = None
    quantity: int
    daily_price: Decimal
    total_daily_charge: Decimal


class DailyChargesResponse(BaseModel):
    date: date_type
    daily_charges: List[DailyChargeLine]
    total_daily_charge: Decimal
    accumulated_charges: Decimal
    subscriptions: int


class RunDailyBillingBody(BaseModel):
    """Trigger a billing run for one day, optionally for some merchants only."""

    date: Optional[date_type] = None
    merchant_ids: List[int] = []

    @field_validator("merchant_ids")
    @classmethod
    def validate_merchant_ids(cls, v: List[int]) -> List[int]:
        if any(mid <= 0 for mid in v):
            raise ValueError("merchant_ids must be positive")
        return sorted(set(v))


class MerchantOutcomeResponse(BaseModel):
    merchant_id: int
    status: str
    amount: Decimal
    record_id: Optional[int] = None
    error: Optional[str] = None


class BillingRunResponse(BaseModel):
    billing_date: date_type
    subscriptions_count: int
    created: int
    already_billed: int
    failed: int
    skipped: int
    total_amount: Decimal
    cancelled: bool = False
    remaining: int = 0
    outcomes: List[MerchantOutcomeResponse]


class PaymentStatusResponse(BaseModel):
    merchant_id: int
    has_active_subscription: bool
    subscription_status: Optional[str] = None
    needs_payment: bool
    last_payment_date: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None
    amount_due: Decimal
    daily_charge: Decimal
    access_blocked: bool = False


class BillingRecordResponse(BaseModel):
    id: int
    merchant_id: int
    billing_type: str
    description: Optional[str] = None
    amount: Decimal
    currency: str
    due_date: datetime
    status: str
    paid_at: Optional[datetime] = None
    created_at: datetime


class BillingRecordListResponse(BaseModel):
    data: List[BillingRecordResponse]
    count: int


# Subscription schemas
class SubscribeItem(BaseModel):
    service_id: int
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v


class SubscribeBody(BaseModel):
    merchant_id: int
    services: List[SubscribeItem]
    start_date: Optional[date_type] = None
    days: int = 30


class UpdateSubscriptionStatusBody(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        return v.strip().upper()


class SubscriptionResponse(BaseModel):
    id: int
    merchant_id: int
    service_id: int
    service_name: Optional[str] = None
    status: str
    quantity: int
    price_at_subscription: Decimal
    line_total: Decimal
    start_date: datetime
    end_date: Optional[datetime] = None


class SubscriptionListResponse(BaseModel):
    data: List[SubscriptionResponse]
    count: int


class SubscribeResponse(BaseModel):
    success: bool
    message: str
    data: List[SubscriptionResponse]


class UpdatePlanBody(BaseModel):
    """Add or re-size services and drop others, without replacing the whole plan."""

    merchant_id: int
    services_to_update: List[SubscribeItem] = []
    services_to_remove: List[int] = []

    @field_validator("services_to_remove")
    @classmethod
    def dedupe_removals(cls, v: List[int]) -> List[int]:
        return sorted(set(v))


class UpdatePlanResponse(BaseModel):
    success: bool
    message: str
    updates: List[str]


# Service catalogue
class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ServiceListResponse(BaseModel):
    data: List[ServiceResponse]
    count: int

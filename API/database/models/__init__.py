"""
Database models package.
Export all models for easy importing.
"""

# Merchant (MUST be imported first - other models depend on it)
from .merchant import (
    Merchant,
    OnboardingStatus,
)

# Service catalogue and subscriptions
from .service import (
    Service,
    MerchantServiceSubscription,
    SubscriptionStatus,
)

# Billing
from .billing import (
    BillingRecord,
    BillingType,
    BillingStatus,
)


__all__ = [
    # Merchant
    'Merchant',
    'OnboardingStatus',

    # Service
    'Service',
    'MerchantServiceSubscription',
    'SubscriptionStatus',

    # Billing
    'BillingRecord',
    'BillingType',
    'BillingStatus',
]

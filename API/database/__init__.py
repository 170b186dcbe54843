"""
Database package for the Merchant Billing API.

Usage:
    from database import db, get_db, init_db
    from database.models import Merchant, Service, BillingRecord
"""

from .base import Base, BaseModel, MerchantBaseModel, MerchantMixin, TimestampMixin
from .connection import (
    DatabaseConnection,
    db,
    get_db,
    init_db,
    reset_db,
)

# Import all models to ensure they are registered with SQLAlchemy
from .models import *


__all__ = [
    # Base
    'Base',
    'BaseModel',
    'MerchantBaseModel',
    'MerchantMixin',
    'TimestampMixin',

    # Connection
    'DatabaseConnection',
    'db',
    'get_db',
    'init_db',
    'reset_db',
]

"""
Service Catalogue — Centralized Service Definitions

Default platform services and their daily list prices, defined in one place.
Seeding reads from here; billing never does (it uses the price frozen on
each subscription).

Usage:
    from core.service_catalog import SERVICES, get_service_definition

    definition = get_service_definition("inventory_management")
"""

from decimal import Decimal
from typing import Dict, Optional


# ==================== SERVICE DEFINITIONS ====================

SERVICES: Dict[str, dict] = {
    "inventory_management": {
        "name": "Inventory Management",
        "description": "Track stock levels, manage products, and monitor inventory across warehouses",
        "price": Decimal("500.00"),  # per day
        "category": "Core Services",
        "features": [
            "Real-time stock tracking",
            "Low stock alerts",
            "Multi-warehouse support",
        ],
        "sort_order": 1,
    },
    "order_processing": {
        "name": "Order Processing",
        "description": "Process orders, manage fulfillment, and track order status",
        "price": Decimal("300.00"),
        "category": "Core Services",
        "features": [
            "Order management",
            "Status tracking",
            "Bulk order processing",
        ],
        "sort_order": 2,
    },
    "warehouse_management": {
        "name": "Warehouse Management",
        "description": "Manage warehouse operations, zones, and staff assignments",
        "price": Decimal("400.00"),
        "category": "Core Services",
        "features": [
            "Warehouse zones",
            "Capacity management",
            "Performance metrics",
        ],
        "sort_order": 3,
    },
    "delivery_tracking": {
        "name": "Delivery Tracking",
        "description": "Track deliveries, manage logistics partners, and monitor delivery performance",
        "price": Decimal("200.00"),
        "category": "Logistics",
        "features": [
            "Real-time tracking",
            "Partner management",
            "Route optimization",
        ],
        "sort_order": 4,
    },
    "returns_management": {
        "name": "Returns Management",
        "description": "Handle product returns, refunds, and restocking processes",
        "price": Decimal("150.00"),
        "category": "Customer Service",
        "features": [
            "Return processing",
            "Refund management",
        ],
        "sort_order": 5,
    },
}


def get_service_definition(key: str) -> Optional[dict]:
    """Get service definition by key."""
    return SERVICES.get(key)


def get_all_service_definitions() -> list:
    """All definitions, ordered for display."""
    result = [{"key": key, **definition} for key, definition in SERVICES.items()]
    result.sort(key=lambda x: x["sort_order"])
    return result

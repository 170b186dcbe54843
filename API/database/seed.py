"""
Database seed — creates the default service catalogue.
"""
from loguru import logger
from sqlalchemy.orm import Session

from core.config import settings
from core.service_catalog import get_all_service_definitions
from .models import Service


def seed_services(session: Session) -> int:
    """Insert catalogue services that don't exist yet. Returns the number created."""
    if settings.is_production:
        logger.warning("⚠️  Seeding is disabled in production environment")
        return 0

    existing = {name for (name,) in session.query(Service.name).all()}
    created = 0
    for definition in get_all_service_definitions():
        if definition["name"] in existing:
            continue
        session.add(Service(
            name=definition["name"],
            description=definition["description"],
            price=definition["price"],
            category=definition["category"],
            is_active=True,
        ))
        created += 1

    session.commit()
    if created:
        logger.info(f"✅ Seeded {created} services")
    else:
        logger.info("ℹ️  Services already seeded")
    return created

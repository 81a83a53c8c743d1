"""Seed the service catalog.

Usage: ``python -m cleanbook.seed [--append | --replace]``. Without a flag
nothing is written when the catalog already has entries.
"""

import argparse
import asyncio
from typing import Literal

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.database import AsyncSessionLocal, close_db, init_db
from cleanbook.logging import setup_logging
from cleanbook.models.service import Service

logger = structlog.get_logger(__name__)

DEFAULT_SERVICES = [
    ("Home Cleaning", "Complete home cleaning services including kitchen, bathrooms, bedrooms, and living areas.", "Home", "80"),
    ("Office Cleaning", "Professional office cleaning for businesses of all sizes with flexible scheduling.", "Building", "120"),
    ("Deep Cleaning", "Thorough deep cleaning service for move-in/move-out or seasonal cleaning needs.", "Broom", "150"),
    ("Carpet Cleaning", "Professional carpet and upholstery cleaning using eco-friendly products.", "Couch", "60"),
    ("Window Cleaning", "Interior and exterior window cleaning for crystal clear views.", "Sun", "40"),
    ("Move-in/Move-out Cleaning", "Comprehensive cleaning service for rental properties and real estate.", "Door", "200"),
    ("Kitchen Cleaning", "Deep cleaning of kitchen appliances, countertops, and cabinets.", "Utensils", "70"),
    ("Bathroom Cleaning", "Complete bathroom sanitization and deep cleaning service.", "Shower", "50"),
    ("Post-Construction Cleaning", "Thorough cleaning after renovation or construction work.", "Tools", "180"),
    ("Eco-Friendly Cleaning", "Green cleaning services using only eco-friendly and non-toxic products.", "Leaf", "90"),
    ("Commercial Cleaning", "Cleaning services for retail stores, warehouses, and commercial spaces.", "Store", "150"),
    ("Car Interior Cleaning", "Professional car interior detailing and cleaning service.", "Car", "45"),
]

SeedMode = Literal["skip", "append", "replace"]


async def seed_services(db: AsyncSession, mode: SeedMode = "skip") -> int:
    """Insert the default catalog. Returns the number of services added."""
    existing = await db.scalar(select(func.count()).select_from(Service))
    if existing:
        if mode == "skip":
            logger.info("seed_skipped", existing=existing)
            return 0
        if mode == "replace":
            await db.execute(delete(Service))
            logger.info("seed_cleared", deleted=existing)

    db.add_all(
        Service(title=title, description=description, icon=icon, price=price)
        for title, description, icon, price in DEFAULT_SERVICES
    )
    await db.commit()
    logger.info("seed_completed", inserted=len(DEFAULT_SERVICES))
    return len(DEFAULT_SERVICES)


async def main(mode: SeedMode) -> None:
    await init_db()
    try:
        async with AsyncSessionLocal() as db:
            await seed_services(db, mode)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the service catalog")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--append", action="store_const", dest="mode", const="append")
    group.add_argument("--replace", action="store_const", dest="mode", const="replace")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.mode or "skip"))

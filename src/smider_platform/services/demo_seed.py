"""Demo contractors for local runs with ``demo_mode`` enabled."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smider_platform.domain.enums import Category
from smider_platform.domain.models import Contractor

logger = logging.getLogger(__name__)

DEMO_CONTRACTORS = [
    {
        "company_name": "Demo Elektro AS",
        "org_nr": "999000001",
        "categories": [Category.ELECTRICIAN.value],
        "lat": 59.9139,
        "lng": 10.7522,
        "service_radius_km": 50,
    },
    {
        "company_name": "Demo Bygg og Maling AS",
        "org_nr": "999000002",
        "categories": [Category.PAINTER.value, Category.CARPENTER.value, Category.HANDYMAN.value],
        "lat": 59.9270,
        "lng": 10.7160,
        "service_radius_km": 40,
    },
    {
        "company_name": "Demo Rør og Våtrom AS",
        "org_nr": "999000003",
        "categories": [
            Category.PLUMBER.value,
            Category.TILING.value,
            Category.BATHROOM_RENOVATION.value,
            Category.KITCHEN_INSTALL.value,
        ],
        "lat": 59.9110,
        "lng": 10.8000,
        "service_radius_km": 40,
    },
]


async def seed_demo_contractors(db: AsyncSession) -> int:
    """Insert the demo contractors that are not there yet. Returns how many were added."""
    result = await db.execute(select(Contractor.org_nr).where(Contractor.is_demo.is_(True)))
    existing = set(result.scalars().all())

    added = 0
    for row in DEMO_CONTRACTORS:
        if row["org_nr"] in existing:
            continue
        db.add(Contractor(id=str(uuid.uuid4()), is_demo=True, is_available=True, **row))
        added += 1

    if added:
        await db.commit()
        logger.info("Seeded %d demo contractor(s)", added)
    return added

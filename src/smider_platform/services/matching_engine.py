"""Matching Engine - finds contractors in range of a job, nearest first.

Filter -> distance -> radius -> sort. ``rank_contractors`` is pure and holds
the whole algorithm; ``find_providers`` only loads the candidates.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from smider_platform.domain.enums import Category
from smider_platform.domain.models import Contractor
from smider_platform.infra.repository import get_contractors

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
DEFAULT_SERVICE_RADIUS_KM = 20.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in km between two lat/lng points."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass
class RankedContractor:
    contractor: Any
    distance_km: float


def serves_category(contractor, category: Category) -> bool:
    return any(Category.parse(value) == category for value in (contractor.categories or []))


def service_radius(contractor) -> float:
    radius = contractor.service_radius_km
    if radius is None or radius <= 0:
        return DEFAULT_SERVICE_RADIUS_KM
    return float(radius)


def rank_contractors(
    contractors: Iterable[Any],
    category: Category,
    lat: float,
    lng: float,
    category_fallback: bool = False,
) -> list[RankedContractor]:
    """Rank contractors that serve ``category`` and cover (lat, lng).

    Contractors marked unavailable or without coordinates never match. With
    ``category_fallback`` every contractor is considered when nobody serves
    the category.
    """
    pool = [c for c in contractors if c.is_available is not False]
    candidates = [c for c in pool if serves_category(c, category)]
    if not candidates and category_fallback:
        logger.info("No contractors for %s, falling back to all categories", category.value)
        candidates = pool

    ranked = []
    for contractor in candidates:
        if contractor.lat is None or contractor.lng is None:
            continue
        distance = haversine_km(lat, lng, contractor.lat, contractor.lng)
        if distance <= service_radius(contractor):
            ranked.append(RankedContractor(contractor=contractor, distance_km=distance))

    ranked.sort(key=lambda r: r.distance_km)
    return ranked


class MatchingEngine:
    async def find_providers(
        self,
        db: AsyncSession,
        category: Category,
        lat: float,
        lng: float,
        category_fallback: bool = False,
    ) -> list[RankedContractor]:
        contractors: list[Contractor] = await get_contractors(db)
        ranked = rank_contractors(contractors, category, lat, lng, category_fallback=category_fallback)
        logger.info(
            "Matching %s at (%.4f, %.4f): %d of %d contractors in range",
            category.value,
            lat,
            lng,
            len(ranked),
            len(contractors),
        )
        return ranked

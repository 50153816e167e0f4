"""Per-category pricing tables: hourly rates, hour rules and material catalogs.

Hour rules are evaluated top to bottom and the first rule whose trigger
matches wins. A trigger is either a keyword found in the lower-cased task
description/intent or a structured predicate on the payload. Short keywords that
also occur inside ordinary words (``tv`` in ``utvendig``) go in
``whole_words`` and only match on word boundaries. Adding a category or a
rule only touches this module.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from smider_platform.domain.enums import Category
from smider_platform.domain.payloads import JobPayload

HoursFn = Callable[[JobPayload, str], float]
QuantityFn = Callable[[JobPayload], Optional[float]]
PredicateFn = Callable[[JobPayload], bool]


@dataclass(frozen=True)
class HourRule:
    """One clause of a category's hour decision tree."""

    name: str
    hours: HoursFn
    keywords: tuple[str, ...] = ()
    when: Optional[PredicateFn] = None
    whole_words: tuple[str, ...] = ()

    def matches(self, payload: JobPayload, text: str) -> bool:
        if self.when is not None and self.when(payload):
            return True
        if any(word in text for word in self.keywords):
            return True
        return any(re.search(rf"\b{re.escape(word)}\b", text) for word in self.whole_words)


@dataclass(frozen=True)
class MaterialItem:
    """Catalog price for a quantity field, e.g. cable per meter."""

    label: str
    unit_price: int
    unit: str
    quantity: QuantityFn


@dataclass(frozen=True)
class Surcharge:
    """Fixed amount added when a specific condition holds."""

    label: str
    amount: int
    when: PredicateFn


@dataclass(frozen=True)
class CategoryPricing:
    category: Category
    hourly_rate: int
    default_hours: float
    hour_rules: tuple[HourRule, ...] = ()
    materials: tuple[MaterialItem, ...] = ()
    surcharges: tuple[Surcharge, ...] = field(default_factory=tuple)


def _n(value, default):
    """Count with a fallback for unknown or zero values."""
    return value or default


def _field(name: str) -> QuantityFn:
    return lambda p: getattr(p, name, None)


STOVE_WORDS = ("komfyr", "platetopp", "induksjon")


def _is_stove(appliance: Optional[str]) -> bool:
    appliance = (appliance or "").lower()
    return any(word in appliance for word in STOVE_WORDS)


# ---------------------------------------------------------------------------
# Electrician
# ---------------------------------------------------------------------------


def _dimmer_hours(p, text):
    hours = 3.0 if p.dimmer_circuit_type == "multi" else 2.0
    count = _n(p.dimmer_count, 1)
    if count > 1:
        hours += (count - 1) * 1.5
    return hours


def _ev_hours(p, text):
    hours = 4.0
    if (p.ev_distance_meters or 0) > 10:
        hours += 2
    if p.ev_phase == "3-phase" or p.ev_load_balancing:
        hours += 3
    return hours


def _circuit_hours(p, text):
    if any(w in text for w in ("ny kurs", "egen kurs", "må trekkes")):
        return 5.5
    return 3.5


def _spot_hours(p, text):
    hours = _n(p.spot_count, 4) * 1.25
    if p.ceiling_type == "closed":
        hours += 2
    if p.spot_needs_dimmer:
        hours += 0.5
    return hours


def _outdoor_hours(p, text):
    hours = 3.0
    if (p.outdoor_distance_meters or 0) > 10:
        hours += 2
    if p.outdoor_weather_exposed:
        hours += 0.5
    return hours


def _lamp_hours(p, text):
    hours = 2.5 if p.has_existing_point is False else 1.5
    if p.ceiling_height_type == "high_sloped":
        hours += 2
    count = _n(p.lamp_count, 1)
    if count > 1:
        hours += (count - 1) * 0.5
    return hours


ELECTRICIAN = CategoryPricing(
    category=Category.ELECTRICIAN,
    hourly_rate=1500,
    default_hours=2.5,
    hour_rules=(
        HourRule("socket", lambda p, t: 1.5 + (_n(p.socket_count, 1) - 1) * 1.0,
                 keywords=("stikk", "kontakt")),
        HourRule("dimmer", _dimmer_hours, keywords=("dimmer",)),
        HourRule("ev_charger", _ev_hours, keywords=("elbil", "lader", "ladeboks", "zaptec", "easee")),
        HourRule("circuit", _circuit_hours, keywords=STOVE_WORDS + ("ovn", "ny kurs")),
        HourRule("troubleshooting", lambda p, t: 3.0 if p.troubleshoot_is_acute else 2.0,
                 keywords=("sikring", "jordfeil", "feilsøk", "strøm borte")),
        HourRule("spots", _spot_hours, keywords=("spot", "downlight")),
        HourRule("outdoor_socket", _outdoor_hours, keywords=("utendørs", "terrasse", "balkong")),
        HourRule("lamp", _lamp_hours, keywords=("lampe", "pendel", "lysekrone")),
    ),
    materials=(
        MaterialItem("Kabel", 100, "m", _field("circuit_distance_meters")),
        MaterialItem("Stikkontakt", 450, "stk", _field("socket_count")),
        MaterialItem("Dimmer", 800, "stk", _field("dimmer_count")),
        # Plain switch only when a new switch is wanted and no dimmer is priced
        MaterialItem("Lysbryter", 300, "stk",
                     lambda p: 1 if not p.dimmer_count and p.switch_type == "new" else None),
        MaterialItem("Spotter", 600, "stk", _field("spot_count")),
    ),
    surcharges=(
        Surcharge("Komfyrvakt (påkrevd)", 1500, lambda p: _is_stove(p.appliance_type)),
    ),
)


# ---------------------------------------------------------------------------
# Painter
# ---------------------------------------------------------------------------


def _coat_factor(p) -> float:
    return 1 + (_n(p.coat_count, 2) - 2) * 0.5


def _facade_hours(p, text):
    hours = _n(p.area_sqm, 40) * 0.4 * _coat_factor(p)
    if p.needs_sanding:
        hours += 3
    return hours


def _ceiling_hours(p, text):
    hours = _n(p.area_sqm, 20) * 0.3 * _coat_factor(p)
    if p.needs_sanding:
        hours += 2
    return hours


def _wall_hours(p, text):
    area = _n(p.area_sqm, 30)
    hours = area * 0.25 * _coat_factor(p)
    if p.needs_sanding:
        hours += area * 0.05
    return hours


PAINTER = CategoryPricing(
    category=Category.PAINTER,
    hourly_rate=850,
    default_hours=6.0,
    hour_rules=(
        HourRule("facade", _facade_hours, keywords=("fasade", "utvendig", "kledning"),
                 when=lambda p: p.surface_type == "facade"),
        HourRule("ceiling", _ceiling_hours, keywords=("himling", "male tak"),
                 when=lambda p: p.surface_type == "ceiling"),
        HourRule("walls", _wall_hours, keywords=("vegg", "rom", "stue", "soverom"),
                 when=lambda p: p.surface_type == "wall"),
    ),
    materials=(
        MaterialItem("Maling", 250, "l", _field("paint_liters")),
    ),
    surcharges=(
        Surcharge("Sparkel og slipemateriell", 400, lambda p: p.needs_sanding is True),
    ),
)


# ---------------------------------------------------------------------------
# Carpenter
# ---------------------------------------------------------------------------


CARPENTER = CategoryPricing(
    category=Category.CARPENTER,
    hourly_rate=950,
    default_hours=4.0,
    hour_rules=(
        HourRule("door", lambda p, t: 2.5 + (_n(p.door_count, 1) - 1) * 2.0, keywords=("dør",)),
        HourRule("window", lambda p, t: 4.0 + (_n(p.window_count, 1) - 1) * 3.0, keywords=("vindu",)),
        HourRule("floor", lambda p, t: 2.0 + _n(p.floor_sqm, 15) * 0.6,
                 keywords=("gulv", "parkett", "laminat")),
        HourRule("trim", lambda p, t: 1.0 + _n(p.trim_meters, 10) * 0.15,
                 keywords=("list", "gerikt")),
    ),
    materials=(
        MaterialItem("Parkett/laminat", 350, "m²", _field("floor_sqm")),
        MaterialItem("Lister", 80, "m", _field("trim_meters")),
    ),
    surcharges=(
        Surcharge("Avfallshåndtering", 600, lambda p: (p.floor_sqm or 0) > 0),
    ),
)


# ---------------------------------------------------------------------------
# Plumber
# ---------------------------------------------------------------------------


def _water_heater_hours(p, text):
    hours = 4.0
    if (p.pipe_distance_meters or 0) > 5:
        hours += 1
    return hours


PLUMBER = CategoryPricing(
    category=Category.PLUMBER,
    hourly_rate=1400,
    default_hours=2.5,
    hour_rules=(
        HourRule("leak", lambda p, t: 3.0 if p.is_leak_acute else 2.0,
                 keywords=("lekk",), when=lambda p: p.is_leak_acute is True),
        HourRule("water_heater", _water_heater_hours, keywords=("bereder", "varmtvann"),
                 when=lambda p: p.fixture_type == "water_heater"),
        HourRule("toilet", lambda p, t: 3.0 + (_n(p.fixture_count, 1) - 1) * 2.0,
                 keywords=("toalett", "wc", "klosett"), when=lambda p: p.fixture_type == "toilet"),
        HourRule("faucet", lambda p, t: 1.5 + (_n(p.fixture_count, 1) - 1) * 1.0,
                 keywords=("kran", "blandebatteri"), when=lambda p: p.fixture_type == "faucet"),
        HourRule("drain", lambda p, t: 2.0, keywords=("tett", "avløp", "sluk"),
                 when=lambda p: p.fixture_type == "drain"),
    ),
    materials=(
        MaterialItem("Rør", 150, "m", _field("pipe_distance_meters")),
        MaterialItem("Blandebatteri", 1200, "stk",
                     lambda p: p.fixture_count if p.fixture_type == "faucet" else None),
    ),
    surcharges=(
        Surcharge("Lekkasjestopper (påkrevd)", 1900, lambda p: p.fixture_type == "water_heater"),
        Surcharge("Ny stoppekran", 650, lambda p: p.has_shutoff_valve is False),
    ),
)


# ---------------------------------------------------------------------------
# Tiling
# ---------------------------------------------------------------------------


def _tile_factor(p) -> float:
    return 1.2 if p.tile_size == "small" else 1.0


def _wet_room_hours(p, text):
    hours = _n(p.area_sqm, 6) * 2.5 * _tile_factor(p)
    if p.needs_waterproofing:
        hours += 4
    return hours


TILING = CategoryPricing(
    category=Category.TILING,
    hourly_rate=950,
    default_hours=8.0,
    hour_rules=(
        HourRule("wet_room", _wet_room_hours, keywords=("bad", "våtrom", "dusj"),
                 when=lambda p: p.needs_waterproofing is True),
        HourRule("floor", lambda p, t: _n(p.area_sqm, 10) * 1.5 * _tile_factor(p),
                 keywords=("gulv",), when=lambda p: p.surface == "floor"),
        HourRule("wall", lambda p, t: _n(p.area_sqm, 5) * 1.8 * _tile_factor(p),
                 keywords=("vegg",), when=lambda p: p.surface == "wall"),
    ),
    materials=(
        MaterialItem("Flislim og fug", 180, "m²", _field("area_sqm")),
    ),
    surcharges=(
        Surcharge("Membran (påkrevd i våtrom)", 2500, lambda p: p.needs_waterproofing is True),
    ),
)


# ---------------------------------------------------------------------------
# Handyman
# ---------------------------------------------------------------------------


HANDYMAN = CategoryPricing(
    category=Category.HANDYMAN,
    hourly_rate=750,
    default_hours=2.0,
    hour_rules=(
        HourRule("assembly", lambda p, t: 1.0 + (_n(p.item_count, 1) - 1) * 0.75,
                 keywords=("montere", "montering", "ikea", "møbel")),
        HourRule("hanging", lambda p, t: 1.0 + (_n(p.item_count, 1) - 1) * 0.25,
                 keywords=("bilde", "hylle", "gardin", "henge opp")),
        HourRule("tv_mount", lambda p, t: 1.5, keywords=("veggfeste",), whole_words=("tv",)),
    ),
    materials=(
        MaterialItem("Festemateriell", 25, "stk", _field("item_count")),
    ),
)


# ---------------------------------------------------------------------------
# Bathroom renovation
# ---------------------------------------------------------------------------


def _full_bathroom_hours(p, text):
    hours = 60.0 + _n(p.area_sqm, 5) * 10
    if p.include_plumbing:
        hours += 8
    if p.include_electrical:
        hours += 6
    return hours


BATHROOM_RENOVATION = CategoryPricing(
    category=Category.BATHROOM_RENOVATION,
    hourly_rate=1100,
    default_hours=60.0,
    hour_rules=(
        HourRule("full", _full_bathroom_hours,
                 keywords=("total", "helrenover", "rive", "nytt bad")),
        HourRule("partial", lambda p, t: 24.0 + _n(p.area_sqm, 5) * 4,
                 keywords=("delvis", "oppgrader", "oppussing")),
    ),
    materials=(
        MaterialItem("Baderomsmaterialer", 2500, "m²", _field("area_sqm")),
    ),
    surcharges=(
        Surcharge("Varmekabel", 4500, lambda p: p.floor_heating is True),
        Surcharge("Våtromsdokumentasjon", 3500, lambda p: p.include_plumbing is True),
    ),
)


# ---------------------------------------------------------------------------
# Kitchen install
# ---------------------------------------------------------------------------


def _kitchen_hours(p, text):
    hours = 4.0 + _n(p.cabinet_count, 10) * 1.2
    if p.appliance_count:
        hours += p.appliance_count * 1.0
    return hours


KITCHEN_INSTALL = CategoryPricing(
    category=Category.KITCHEN_INSTALL,
    hourly_rate=950,
    default_hours=16.0,
    hour_rules=(
        HourRule("countertop", lambda p, t: 2.0 + _n(p.countertop_meters, 3) * 1.0,
                 keywords=("benkeplate",)),
        HourRule("appliances", lambda p, t: 1.5 + (_n(p.appliance_count, 1) - 1) * 1.0,
                 keywords=("hvitevare", "oppvaskmaskin", "integrert")),
        HourRule("kitchen", _kitchen_hours, keywords=("kjøkken", "ikea", "skap", "montering")),
    ),
    materials=(
        MaterialItem("Monteringsmateriell", 150, "stk", _field("cabinet_count")),
    ),
    surcharges=(
        Surcharge("Komfyrvakt (påkrevd)", 1500, lambda p: _is_stove(p.appliance_type)),
    ),
)


CATEGORY_PRICING: dict[Category, CategoryPricing] = {
    pricing.category: pricing
    for pricing in (
        ELECTRICIAN,
        PAINTER,
        CARPENTER,
        PLUMBER,
        TILING,
        HANDYMAN,
        BATHROOM_RENOVATION,
        KITCHEN_INSTALL,
    )
}

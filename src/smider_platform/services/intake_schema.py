"""Intake schema: required fields, conditional fields and question texts.

Base fields are always required for a category. Conditional rules activate
extra fields from what is already known; they are listed in the order they
are asked. Question and answer texts are customer-facing (Norwegian).
"""

from dataclasses import dataclass
from typing import Callable

from smider_platform.domain.enums import Category
from smider_platform.domain.payloads import JobPayload


@dataclass(frozen=True)
class ConditionalRule:
    """Require ``fields`` when ``trigger(payload, text)`` holds."""

    name: str
    fields: tuple[str, ...]
    trigger: Callable[[JobPayload, str], bool]


def _mentions(*words: str) -> Callable[[JobPayload, str], bool]:
    return lambda payload, text: any(word in text for word in words)


PRODUCT_WORDS = (
    "lampe", "pendel", "lysekrone", "lader", "zaptec", "easee", "termostat",
    "ovn", "vifte", "stikk", "kontakt", "dimmer", "bryter",
)
LAMP_WORDS = ("lampe", "pendel", "lysekrone")


REQUIRED_FIELDS: dict[Category, tuple[str, ...]] = {
    Category.ELECTRICIAN: ("task_details",),
    Category.PAINTER: ("task_details", "area_sqm"),
    Category.CARPENTER: ("task_details",),
    Category.PLUMBER: ("task_details",),
    Category.TILING: ("task_details", "area_sqm"),
    Category.HANDYMAN: ("task_details",),
    Category.BATHROOM_RENOVATION: ("task_details", "area_sqm"),
    Category.KITCHEN_INSTALL: ("task_details", "cabinet_count"),
}


CONDITIONAL_RULES: dict[Category, tuple[ConditionalRule, ...]] = {
    Category.ELECTRICIAN: (
        ConditionalRule("new_circuit", ("appliance_type",), _mentions("ny kurs", "egen kurs")),
        ConditionalRule("product", ("has_product",), _mentions(*PRODUCT_WORDS)),
        ConditionalRule(
            "product_info",
            ("product_info",),
            lambda p, text: p.has_product is False and any(w in text for w in PRODUCT_WORDS),
        ),
        ConditionalRule("lamp", ("has_existing_point", "switch_type"), _mentions(*LAMP_WORDS)),
    ),
    Category.PAINTER: (
        ConditionalRule("facade", ("needs_sanding",), _mentions("fasade", "utvendig", "kledning")),
    ),
    Category.CARPENTER: (
        ConditionalRule("door", ("door_count",), _mentions("dør")),
        ConditionalRule("window", ("window_count",), _mentions("vindu")),
        ConditionalRule("floor", ("floor_sqm",), _mentions("gulv", "parkett", "laminat")),
    ),
    Category.PLUMBER: (
        ConditionalRule("leak", ("is_leak_acute",), _mentions("lekk")),
        ConditionalRule("fixture", ("fixture_count",), _mentions("toalett", "wc", "kran", "blandebatteri")),
    ),
    Category.TILING: (
        ConditionalRule("wet_room", ("needs_waterproofing",), _mentions("bad", "våtrom", "dusj")),
    ),
    Category.HANDYMAN: (
        ConditionalRule("assembly", ("item_count",), _mentions("montere", "montering", "ikea", "møbel")),
    ),
    Category.BATHROOM_RENOVATION: (
        ConditionalRule("scope", ("include_plumbing",), _mentions("total", "helrenover", "rive", "nytt bad")),
    ),
    Category.KITCHEN_INSTALL: (
        ConditionalRule("countertop", ("countertop_meters",), _mentions("benkeplate")),
    ),
}

# Appended after every category's own rules
COMMON_RULES: tuple[ConditionalRule, ...] = (
    ConditionalRule(
        "materials",
        ("materials_description",),
        lambda p, text: p.materials_by_customer is False,
    ),
)


QUESTIONS: dict[str, str] = {
    "category": (
        "Hva slags hjelp trenger du? (F.eks elektriker, maler, snekker, rørlegger, "
        "flislegger, altmuligmann, baderom eller kjøkkenmontering)"
    ),
    "task_details": "Kan du kort beskrive hva du trenger hjelp til?",
    "materials_description": "Hvilke materialer skal håndverkeren ta med?",
    # Electrician
    "appliance_type": (
        "Hva skal kobles til den nye kursen? (F.eks platetopp, komfyr, elbillader "
        "eller vanlig stikkontakt?)"
    ),
    "has_product": "Har du produktet/utstyret som skal monteres selv, eller skal håndverkeren ta med dette?",
    "product_info": (
        "Kan du skrive navnet på produktet/utstyret eller legge ved en lenke, så "
        "håndverkeren vet hva som skal monteres?"
    ),
    "has_existing_point": (
        "Er det lagt opp punkt/stikkontakt i taket der lampen skal henge, eller må det legges nytt?"
    ),
    "switch_type": (
        "Skal lampen kobles til en eksisterende bryter/dimmer, eller ønsker du at det monteres en ny?"
    ),
    # Painter / tiling / bathroom
    "area_sqm": "Omtrent hvor mange kvadratmeter gjelder det?",
    "needs_sanding": "Må flatene skrapes eller slipes før maling?",
    "needs_waterproofing": "Er det et våtrom som trenger ny membran?",
    "include_plumbing": "Skal rørleggerarbeid være med i oppdraget?",
    # Carpenter
    "door_count": "Hvor mange dører gjelder det?",
    "window_count": "Hvor mange vinduer gjelder det?",
    "floor_sqm": "Hvor mange kvadratmeter gulv skal legges?",
    # Plumber
    "is_leak_acute": "Lekker det nå, slik at det haster?",
    "fixture_count": "Hvor mange enheter skal byttes eller monteres?",
    # Handyman
    "item_count": "Hvor mange ting skal monteres?",
    # Kitchen
    "cabinet_count": "Omtrent hvor mange skap består kjøkkenet av?",
    "countertop_meters": "Hvor mange meter benkeplate skal monteres?",
}

DEFAULT_QUESTION = "Kan du gi litt mer informasjon om jobben?"

UNSUPPORTED_CATEGORY_MESSAGE = (
    "Beklager, denne typen oppdrag støtter vi ikke ennå. Vi hjelper foreløpig med "
    "elektriker, maler, snekker, rørlegger, flislegging, altmuligmann, baderom og "
    "kjøkkenmontering."
)


# (trigger words, canned answer), first match wins
CANNED_ANSWERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("lastbalansering",),
        "Lastbalansering betyr at elbilladeren automatisk justerer ladeeffekten slik at du "
        "ikke overbelaster sikringsskapet når andre apparater brukes samtidig.\n\n"
        "Ønsker du lastbalansering?",
    ),
    (
        ("1-fase", "3-fase"),
        "1-fase og 3-fase handler om hvor mye effekt anlegget kan levere. 3-fase gir ofte "
        "raskere og mer stabil lading.\n\nVet du om boligen din har 1-fase eller 3-fase?",
    ),
    (
        ("jordet", "ujordet"),
        "Jordet stikkontakt har ekstra sikkerhet mot feilstrøm. På kjøkken, bad og utendørs "
        "er jordet vanligvis påkrevd.\n\nVet du om kontakten er jordet?",
    ),
    (
        ("komfyrvakt",),
        "Komfyrvakt er påbudt ved installasjon av ny komfyr eller platetopp. Den slår av "
        "strømmen automatisk hvis den oppdager fare for brann.\n\nSkal vi ta med komfyrvakt?",
    ),
    (
        ("membran",),
        "Membranen er det vanntette laget under flisene i våtrom. Den er påkrevd for at "
        "badet skal oppfylle byggforskriftene.\n\nEr det et våtrom det gjelder?",
    ),
)

DEFAULT_ANSWER = "Kan du utdype eller forklare litt nærmere hva du mener?"


def question_for(field_name: str) -> str:
    return QUESTIONS.get(field_name, DEFAULT_QUESTION)


def answer_for(user_question: str) -> str:
    """Return the canned explanation for a free-form customer question."""
    text = user_question.lower()
    for words, answer in CANNED_ANSWERS:
        if any(word in text for word in words):
            return answer
    return DEFAULT_ANSWER

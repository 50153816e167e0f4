"""Per-category job payload models.

The extraction service returns best-effort JSON that may be wrong, partial
or null-filled. Payloads are validated here, once, at the boundary:

- a field that fails validation is dropped to ``None`` (unknown) instead of
  rejecting the whole payload;
- numbers outside ``[0, MAX_MEASURE]`` or ``[0, MAX_COUNT]``, inf and NaN
  included, are dropped the same way;
- anything that is not a JSON object yields an empty payload (every field
  missing);
- ``None`` means unknown, while ``False`` and ``0`` are known answers and are
  never treated as missing.
"""

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from smider_platform.domain.enums import Category

MAX_MEASURE = 10_000
MAX_COUNT = 1_000

# Areas, lengths and volumes: finite, non-negative and within a single job
Measure = Annotated[float, Field(ge=0, le=MAX_MEASURE, allow_inf_nan=False)]
Count = Annotated[int, Field(ge=0, le=MAX_COUNT)]


class JobPayload(BaseModel):
    """Fields shared by every category, including the meta fields."""

    model_config = ConfigDict(extra="ignore")

    task_details: Optional[str] = None
    materials_by_customer: Optional[bool] = None
    materials_description: Optional[str] = None

    # Meta fields: not job facts
    intent: Optional[str] = None
    user_question: Optional[str] = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _drop_malformed(cls, value: Any, handler):
        try:
            return handler(value)
        except ValidationError:
            return None

    def text(self) -> str:
        """Lower-cased task description and intent used for keyword triggers."""
        return f"{self.task_details or ''} {self.intent or ''}".lower()

    def known_fields(self) -> dict:
        """Return only the fields with a known value."""
        return self.model_dump(exclude_none=True)


class ElectricianPayload(JobPayload):
    # Main product (lamp, charger, heater...)
    has_product: Optional[bool] = None
    product_info: Optional[str] = None

    # Lamp
    has_existing_point: Optional[bool] = None
    lamp_count: Optional[Count] = None
    ceiling_height_type: Optional[Literal["standard", "high_sloped"]] = None
    switch_type: Optional[Literal["existing", "new"]] = None

    # Socket
    socket_count: Optional[Count] = None
    is_grounded: Optional[bool] = None
    is_socket_accessible: Optional[bool] = None

    # Dimmer
    bulb_type: Optional[Literal["led", "halogen"]] = None
    dimmer_count: Optional[Count] = None
    dimmer_circuit_type: Optional[Literal["single", "multi"]] = None

    # EV charger
    ev_has_charger: Optional[bool] = None
    ev_distance_meters: Optional[Measure] = None
    ev_phase: Optional[Literal["1-phase", "3-phase"]] = None
    ev_load_balancing: Optional[bool] = None

    # Troubleshooting
    troubleshoot_is_acute: Optional[bool] = None

    # Spots
    spot_count: Optional[Count] = None
    ceiling_type: Optional[Literal["open_loft", "closed"]] = None
    spot_needs_dimmer: Optional[bool] = None

    # Move socket
    wall_type: Optional[Literal["drywall", "concrete"]] = None
    wiring_type: Optional[Literal["hidden", "open"]] = None

    # New circuit
    appliance_type: Optional[str] = None
    fuse_box_has_space: Optional[bool] = None
    circuit_distance_meters: Optional[Measure] = None

    # Outdoor socket
    outdoor_distance_meters: Optional[Measure] = None
    outdoor_socket_count: Optional[Count] = None
    outdoor_weather_exposed: Optional[bool] = None


class PainterPayload(JobPayload):
    area_sqm: Optional[Measure] = None
    coat_count: Optional[Count] = None
    surface_type: Optional[Literal["wall", "ceiling", "facade"]] = None
    needs_sanding: Optional[bool] = None
    paint_liters: Optional[Measure] = None


class CarpenterPayload(JobPayload):
    door_count: Optional[Count] = None
    window_count: Optional[Count] = None
    floor_sqm: Optional[Measure] = None
    trim_meters: Optional[Measure] = None


class PlumberPayload(JobPayload):
    fixture_type: Optional[Literal["toilet", "faucet", "shower", "water_heater", "drain"]] = None
    fixture_count: Optional[Count] = None
    is_leak_acute: Optional[bool] = None
    has_shutoff_valve: Optional[bool] = None
    pipe_distance_meters: Optional[Measure] = None


class TilingPayload(JobPayload):
    area_sqm: Optional[Measure] = None
    surface: Optional[Literal["floor", "wall"]] = None
    tile_size: Optional[Literal["small", "standard", "large"]] = None
    needs_waterproofing: Optional[bool] = None


class HandymanPayload(JobPayload):
    item_count: Optional[Count] = None


class BathroomRenovationPayload(JobPayload):
    area_sqm: Optional[Measure] = None
    include_plumbing: Optional[bool] = None
    include_electrical: Optional[bool] = None
    floor_heating: Optional[bool] = None


class KitchenInstallPayload(JobPayload):
    cabinet_count: Optional[Count] = None
    countertop_meters: Optional[Measure] = None
    appliance_type: Optional[str] = None
    appliance_count: Optional[Count] = None


PAYLOAD_MODELS: dict[Category, type[JobPayload]] = {
    Category.ELECTRICIAN: ElectricianPayload,
    Category.PAINTER: PainterPayload,
    Category.CARPENTER: CarpenterPayload,
    Category.PLUMBER: PlumberPayload,
    Category.TILING: TilingPayload,
    Category.HANDYMAN: HandymanPayload,
    Category.BATHROOM_RENOVATION: BathroomRenovationPayload,
    Category.KITCHEN_INSTALL: KitchenInstallPayload,
}


def parse_payload(category: Optional[Category], raw: Any) -> JobPayload:
    """Validate a raw extraction payload for a category.

    Fails closed: a non-dict payload gives an empty model. An unknown
    category gives the shared base model.
    """
    model = PAYLOAD_MODELS.get(category, JobPayload) if category else JobPayload
    if isinstance(raw, model):
        return raw
    if isinstance(raw, JobPayload):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        return model()
    return model.model_validate(raw)


def is_missing(value: Any) -> bool:
    """A value is missing only when absent, None or a blank string."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False

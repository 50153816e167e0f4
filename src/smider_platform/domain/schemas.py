"""Pydantic v2 schemas for API request/response validation."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class TurnRequest(BaseModel):
    """The full intake transcript so far, oldest turn first."""

    messages: list[ChatTurn] = Field(default_factory=list)


class LineItemResponse(BaseModel):
    label: str
    amount: int
    kind: str


class EstimateResponse(BaseModel):
    hours: float
    price_min: int
    price_max: int
    line_items: list[LineItemResponse]
    days: int
    hourly_rate: int
    labor_cost: int
    trip_fee: int
    material_cost: int


class TurnResponse(BaseModel):
    kind: str
    message: str
    done: bool
    missing_fields: list[str] = Field(default_factory=list)
    category: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    estimate: Optional[EstimateResponse] = None


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class CreateJobRequest(BaseModel):
    customer_id: str
    category: str
    payload: dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    address: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class CancelJobRequest(BaseModel):
    actor: Literal["customer", "admin"] = "customer"
    actor_id: Optional[str] = None


class AdminActionRequest(BaseModel):
    actor_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------


class OfferActionRequest(BaseModel):
    contractor_id: str

"""SQLAlchemy ORM models for the Smider platform.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- timezone-aware DateTime written from Python, so ordering does not depend
  on the database clock resolution
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from smider_platform.infra.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Contractors
# ---------------------------------------------------------------------------


class Contractor(Base):
    """A contracting company that can receive job offers.

    Read-mostly: registry lookup and signup live outside this service.
    """

    __tablename__ = "contractors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_name = Column(String(255), nullable=False)
    org_nr = Column(String(20), nullable=True)
    categories = Column(JSON, default=list)  # list of Category values
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    service_radius_km = Column(Float, nullable=True)
    is_available = Column(Boolean, nullable=True, default=True)
    is_demo = Column(Boolean, default=False)  # seeded demo contractor
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    offers = relationship("Offer", back_populates="contractor")


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class Job(Base):
    """A priced job owned by the dispatch engine once created."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), nullable=False, index=True)
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    payload = Column(JSON, default=dict)  # validated JobPayload snapshot
    estimated_hours = Column(Float, nullable=True)
    price_min = Column(Integer, nullable=False)
    price_max = Column(Integer, nullable=False)
    line_items = Column(JSON, default=list)
    status = Column(String(30), nullable=False, default="draft", index=True)
    payment_hold_ref = Column(String(255), nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    location_address = Column(String(500), nullable=True)
    assigned_contractor_id = Column(String(36), ForeignKey("contractors.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    offers = relationship("Offer", back_populates="job", order_by="Offer.created_at")
    events = relationship("JobEvent", back_populates="job", order_by="JobEvent.created_at")
    assigned_contractor = relationship("Contractor")


class Offer(Base):
    """A time-boxed offer of a job to one contractor."""

    __tablename__ = "job_offers"
    __table_args__ = (
        UniqueConstraint("job_id", "contractor_id", name="uq_job_offers_job_contractor"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False, index=True)
    contractor_id = Column(String(36), ForeignKey("contractors.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    job = relationship("Job", back_populates="offers")
    contractor = relationship("Contractor", back_populates="offers")


class JobEvent(Base):
    """Audit trail entry for job and offer transitions."""

    __tablename__ = "job_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False, index=True)
    offer_id = Column(String(36), nullable=True)
    event_type = Column(String(50), nullable=False)
    actor = Column(String(20), nullable=False)
    actor_id = Column(String(36), nullable=True)
    from_status = Column(String(30), nullable=True)
    to_status = Column(String(30), nullable=True)
    data = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    job = relationship("Job", back_populates="events")

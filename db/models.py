"""
SQLAlchemy ORM Models
Citation Intelligence Engine

Tenant tables (organization, location, listing) carry only the fields this
engine reads. citation_source_intelligence is the shared, cross-tenant
output table.
"""

import uuid
from sqlalchemy import (
    Column, Integer, Float, String, Text,
    DateTime, ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(255))
    plan = Column(String(50), nullable=False, default="trial")
    created_at = Column(DateTime, default=datetime.utcnow)

    locations = relationship(
        "Location", back_populates="organization",
        cascade="all, delete-orphan", order_by="Location.created_at",
    )
    listings = relationship("Listing", back_populates="organization", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_organizations_plan", "plan"),)


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=_uuid)
    org_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    business_name = Column(String(255))
    categories = Column(JSON)                 # list of raw category labels
    city = Column(String(255))
    state = Column(String(100))
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="locations")
    listings = relationship("Listing", back_populates="location")

    __table_args__ = (Index("ix_locations_org_created", "org_id", "created_at"),)


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    org_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=False)
    directory = Column(String(100), nullable=False)   # yelp, google, tripadvisor, ...
    sync_status = Column(String(20), nullable=False, default="not_linked")
    updated_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="listings")
    location = relationship("Location", back_populates="listings")

    __table_args__ = (Index("ix_listings_org_location", "org_id", "location_id"),)


class CitationSourceIntelligence(Base):
    __tablename__ = "citation_source_intelligence"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_category = Column(String(100), nullable=False)
    city = Column(String(255), nullable=False)
    state = Column(String(100), nullable=False, default="")
    platform = Column(String(100), nullable=False)
    model_provider = Column(String(100), nullable=False)
    citation_frequency = Column(Float, nullable=False)    # 0–1, 3 decimals
    sample_query = Column(Text)
    sample_size = Column(Integer, nullable=False)
    measured_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint(
            "business_category", "city", "state", "platform", "model_provider",
            name="uq_citation_source_intelligence",
        ),
        Index("ix_citation_tuple", "business_category", "city", "state"),
    )


class CronRunLog(Base):
    __tablename__ = "cron_run_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cron_name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="running")  # running | success | failed
    started_at = Column(DateTime, default=datetime.utcnow)
    finished_at = Column(DateTime)
    duration_ms = Column(Integer)
    summary = Column(JSON)
    error_message = Column(Text)

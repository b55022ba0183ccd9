"""
SQLAlchemy ORM models for the Garden Catalog database.
Primary keys are application-generated UUID strings.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Float,
)
from sqlalchemy.orm import relationship

from garden_catalog.database import Base
from garden_catalog.utils.helpers import new_id, utcnow


class User(Base):
    """Catalog owner (the client bootstraps a demo user on first visit)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    location = Column(Text, nullable=True)
    yard_size = Column(Text, nullable=True)
    experience_level = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_active = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    garden_beds = relationship(
        "GardenBed", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    conversations = relationship(
        "Conversation", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class GardenBed(Base):
    """Named planting area owned by a user."""

    __tablename__ = "garden_beds"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bed_name = Column(Text, nullable=False)
    bed_size_sqft = Column(Float, nullable=True)
    sun_exposure = Column(Text, nullable=True)
    soil_type = Column(Text, nullable=True)
    soil_moisture = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="garden_beds")
    plants = relationship(
        "Plant",
        back_populates="garden_bed",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Plant.last_updated.desc()",
    )


class Plant(Base):
    """A species entry (with quantity and health) inside one garden bed."""

    __tablename__ = "plants"

    id = Column(String(36), primary_key=True, default=new_id)
    bed_id = Column(String(36), ForeignKey("garden_beds.id", ondelete="CASCADE"), nullable=False, index=True)
    common_name = Column(Text, nullable=False)
    scientific_name = Column(Text, nullable=True)
    plant_type = Column(Text, nullable=True)
    date_planted = Column(Text, nullable=True)  # free text, e.g. "spring 2024"
    image_url = Column(Text, nullable=True)
    quantity = Column(Integer, default=1)
    spacing_inches = Column(Float, nullable=True)
    current_height = Column(Text, nullable=True)
    health_status = Column(Text, nullable=True)
    identification_confidence = Column(Integer, nullable=True)  # percent from Plant.id
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    garden_bed = relationship("GardenBed", back_populates="plants")


class Conversation(Base):
    """Chat history for a user; ``messages`` is a JSON-encoded list of turns."""

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    messages = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="conversations")


class Feedback(Base):
    """In-app feedback submission, optionally with screenshots."""

    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    message = Column(Text, nullable=False)
    image_urls = Column(Text, nullable=True)  # JSON-encoded list of /uploads/... URLs
    user_agent = Column(Text, nullable=True)
    page_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

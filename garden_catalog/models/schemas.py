"""
Pydantic schemas for request/response validation.

The client speaks camelCase JSON (``bedName``, ``commonName``); every schema
accepts and emits camelCase while also accepting snake_case field names.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from enum import Enum

from garden_catalog.utils.helpers import load_json_list


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AssistantActionType(str, Enum):
    """Intents the chat assistant can return."""

    ADD_PLANTS = "add_plants"
    REMOVE_PLANTS = "remove_plants"
    REMOVE_BED = "remove_bed"
    CHAT = "chat"


# ---------------------------------------------------------------------------
# User Schemas
# ---------------------------------------------------------------------------

class UserCreate(CamelModel):
    """Schema for creating a user."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=255)
    location: Optional[str] = None
    yard_size: Optional[str] = None
    experience_level: Optional[str] = None


class UserResponse(CamelModel):
    """Schema for user responses."""

    id: str
    name: str
    email: str
    location: Optional[str] = None
    yard_size: Optional[str] = None
    experience_level: Optional[str] = None
    created_at: datetime
    last_active: datetime


# ---------------------------------------------------------------------------
# Garden Bed Schemas
# ---------------------------------------------------------------------------

class GardenBedCreate(CamelModel):
    """Schema for creating a garden bed."""

    user_id: str = Field(..., min_length=1)
    bed_name: str = Field(..., min_length=1)
    bed_size_sqft: Optional[float] = Field(None, ge=0)
    sun_exposure: Optional[str] = None
    soil_type: Optional[str] = None
    soil_moisture: Optional[str] = None
    notes: Optional[str] = None


class GardenBedUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    bed_name: Optional[str] = Field(None, min_length=1)
    bed_size_sqft: Optional[float] = Field(None, ge=0)
    sun_exposure: Optional[str] = None
    soil_type: Optional[str] = None
    soil_moisture: Optional[str] = None
    notes: Optional[str] = None


class GardenBedResponse(CamelModel):
    """Schema for garden bed responses."""

    id: str
    user_id: str
    bed_name: str
    bed_size_sqft: Optional[float] = None
    sun_exposure: Optional[str] = None
    soil_type: Optional[str] = None
    soil_moisture: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    last_updated: datetime


# ---------------------------------------------------------------------------
# Plant Schemas
# ---------------------------------------------------------------------------

class PlantCreate(CamelModel):
    """Schema for creating a plant inside a bed."""

    bed_id: str = Field(..., min_length=1)
    common_name: str = Field(..., min_length=1)
    scientific_name: Optional[str] = None
    plant_type: Optional[str] = None
    date_planted: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int = Field(1, ge=1)
    spacing_inches: Optional[float] = Field(None, ge=0)
    current_height: Optional[str] = None
    health_status: Optional[str] = None
    identification_confidence: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class PlantUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    bed_id: Optional[str] = Field(None, min_length=1)
    common_name: Optional[str] = Field(None, min_length=1)
    scientific_name: Optional[str] = None
    plant_type: Optional[str] = None
    date_planted: Optional[str] = None
    image_url: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    spacing_inches: Optional[float] = Field(None, ge=0)
    current_height: Optional[str] = None
    health_status: Optional[str] = None
    identification_confidence: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class PlantResponse(CamelModel):
    """Schema for plant responses."""

    id: str
    bed_id: str
    common_name: str
    scientific_name: Optional[str] = None
    plant_type: Optional[str] = None
    date_planted: Optional[str] = None
    image_url: Optional[str] = None
    quantity: Optional[int] = 1
    spacing_inches: Optional[float] = None
    current_height: Optional[str] = None
    health_status: Optional[str] = None
    identification_confidence: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    last_updated: datetime


class GardenBedWithPlants(GardenBedResponse):
    """A bed with its plants nested, as rendered by the catalog grid."""

    plants: List[PlantResponse] = []


class CatalogResponse(CamelModel):
    """Everything the grid view needs for one user."""

    user_id: str
    beds: List[GardenBedWithPlants]
    total_beds: int
    total_plants: int


class SuccessResponse(BaseModel):
    success: bool = True


# ---------------------------------------------------------------------------
# Photo / Identification Schemas
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    """Schema for photo upload response."""

    url: str
    filename: str


class IdentifyPlantRequest(CamelModel):
    """Either an inline base64 image or the URL of a stored upload."""

    base64_image: Optional[str] = None
    image_url: Optional[str] = None


class PlantCandidate(CamelModel):
    """One species suggestion from the identification service."""

    common_name: str
    scientific_name: Optional[str] = None
    probability: float
    confidence: int  # probability as a whole percentage


# ---------------------------------------------------------------------------
# Conversation / Chat Schemas
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    """One turn of a stored conversation."""

    role: str
    content: str


class ConversationResponse(CamelModel):
    """Schema for conversation responses; messages are decoded from JSON."""

    id: str
    user_id: str
    messages: List[ChatMessage]
    context: Optional[str] = None
    created_at: datetime
    last_updated: datetime

    @field_validator("messages", mode="before")
    @classmethod
    def _decode_messages(cls, value):
        if isinstance(value, str):
            return load_json_list(value)
        return value


class ChatRequest(CamelModel):
    """Request body for POST /api/chat."""

    message: str = ""
    user_id: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None


class ChatResponse(CamelModel):
    """Response for POST /api/chat."""

    message: str
    conversation_id: str
    action: AssistantActionType = AssistantActionType.CHAT


# ---------------------------------------------------------------------------
# Feedback Schemas
# ---------------------------------------------------------------------------

class FeedbackResponse(CamelModel):
    """Stored feedback; image URLs are decoded from JSON."""

    id: str
    user_id: Optional[str] = None
    message: str
    image_urls: List[str] = []
    user_agent: Optional[str] = None
    page_url: Optional[str] = None
    created_at: datetime

    @field_validator("image_urls", mode="before")
    @classmethod
    def _decode_image_urls(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return load_json_list(value)
        return value


class FeedbackSubmitResponse(BaseModel):
    success: bool = True
    feedback: FeedbackResponse


# ---------------------------------------------------------------------------
# Health Schemas
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    database: str
    gemini: str
    plant_id: str
    timestamp: datetime
    version: str = "0.1.0"

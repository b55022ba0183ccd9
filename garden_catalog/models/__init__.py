"""Database and schema models for the Garden Catalog."""
from garden_catalog.models.database_models import (
    User,
    GardenBed,
    Plant,
    Conversation,
    Feedback,
)
from garden_catalog.models.schemas import (
    AssistantActionType,
    UserCreate,
    UserResponse,
    GardenBedCreate,
    GardenBedUpdate,
    GardenBedResponse,
    PlantCreate,
    PlantUpdate,
    PlantResponse,
    ConversationResponse,
    ChatRequest,
    ChatResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "GardenBed",
    "Plant",
    "Conversation",
    "Feedback",
    # Pydantic schemas
    "AssistantActionType",
    "UserCreate",
    "UserResponse",
    "GardenBedCreate",
    "GardenBedUpdate",
    "GardenBedResponse",
    "PlantCreate",
    "PlantUpdate",
    "PlantResponse",
    "ConversationResponse",
    "ChatRequest",
    "ChatResponse",
    "HealthCheckResponse",
]

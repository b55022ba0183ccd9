"""
Chat endpoints.

POST /api/chat                     send a message to the garden assistant
GET  /api/conversations/{user_id}  the user's latest conversation
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from garden_catalog.dependencies.lookups import get_store
from garden_catalog.models.database_models import Conversation
from garden_catalog.models.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationResponse,
)
from garden_catalog.services.catalog import CatalogStore
from garden_catalog.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/conversations/{user_id}", response_model=ConversationResponse)
async def get_conversation(
    user_id: str,
    store: CatalogStore = Depends(get_store),
) -> Conversation:
    """The user's active conversation; unknown users simply have none."""
    conversation = await store.get_latest_conversation(user_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No conversation found",
        )
    return conversation


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    store: CatalogStore = Depends(get_store),
) -> ChatResponse:
    """
    Send a message to the assistant.

    The assistant may add plants, remove plants or remove a bed as a side
    effect; ``action`` in the response says which.  The exchange is appended
    to the user's conversation even when the assistant is unavailable.
    """
    message = (request.message or "").strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message cannot be empty",
        )

    user = await store.get_user(request.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    result = await ChatService(store).handle_message(user, message)
    return ChatResponse(
        message=result.message,
        conversation_id=result.conversation_id,
        action=result.action,
    )

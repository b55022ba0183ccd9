"""
Feedback endpoint.

POST /api/feedback  multipart: message, userId?, pageUrl?, up to 5 images
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from garden_catalog.config import settings
from garden_catalog.dependencies.lookups import get_store
from garden_catalog.models.schemas import FeedbackResponse, FeedbackSubmitResponse
from garden_catalog.services.catalog import CatalogStore
from garden_catalog.services.uploads import (
    check_image_type,
    remove_uploads,
    store_image_upload,
    upload_url,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=FeedbackSubmitResponse)
async def submit_feedback(
    request: Request,
    message: str = Form(""),
    user_id: Optional[str] = Form(None, alias="userId"),
    page_url: Optional[str] = Form(None, alias="pageUrl"),
    images: Optional[List[UploadFile]] = File(None),
    store: CatalogStore = Depends(get_store),
) -> FeedbackSubmitResponse:
    """Store a feedback message with optional screenshots."""
    message = message.strip()
    images = images or []
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Feedback message is required",
        )
    if len(images) > settings.MAX_FEEDBACK_IMAGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.MAX_FEEDBACK_IMAGES} images can be attached.",
        )

    # Reject a bad attachment before any file is written
    for image in images:
        check_image_type(image)

    # Anonymous feedback is allowed; unknown ids are dropped rather than rejected
    owner_id = (user_id or "").strip() or None
    if owner_id and await store.get_user(owner_id) is None:
        owner_id = None

    stored: List[str] = []
    try:
        for image in images:
            stored.append(await store_image_upload(image))
        feedback = await store.create_feedback(
            message=message,
            user_id=owner_id,
            image_urls=[upload_url(name) for name in stored],
            user_agent=request.headers.get("user-agent"),
            page_url=page_url or None,
        )
    except Exception:
        remove_uploads(stored)
        raise
    return FeedbackSubmitResponse(feedback=FeedbackResponse.model_validate(feedback))

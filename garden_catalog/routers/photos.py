"""
Photo upload and plant identification endpoints.

POST /api/upload          store a plant photo, returns its /uploads URL
POST /api/identify-plant  identify a photo via Plant.id
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from garden_catalog.config import settings
from garden_catalog.models.schemas import (
    IdentifyPlantRequest,
    PlantCandidate,
    UploadResponse,
)
from garden_catalog.services.plant_identifier import (
    PlantIdentificationError,
    PlantIdNotConfiguredError,
    PlantIdService,
    extract_candidates,
)
from garden_catalog.services.uploads import store_image_upload, upload_url

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_photo(photo: UploadFile = File(...)) -> UploadResponse:
    """
    Upload a single plant photo.

    - JPEG, PNG, GIF or WebP only
    - Max size: 5 MB (configurable via MAX_UPLOAD_SIZE)
    """
    filename = await store_image_upload(photo)
    return UploadResponse(url=upload_url(filename), filename=filename)


@router.post("/identify-plant")
async def identify_plant(body: IdentifyPlantRequest) -> Dict[str, Any]:
    """
    Identify the plant in a photo.

    Accepts ``base64Image`` directly, or ``imageUrl`` of a photo previously
    stored through ``/api/upload``.  Returns the Plant.id payload with an added
    ``candidates`` list of the top suggestions.
    """
    service = PlantIdService()
    if not service.api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Plant identification service not configured. Please add PLANTID_API_KEY.",
        )

    base64_image = body.base64_image
    if not base64_image and body.image_url:
        base64_image = await service.load_upload_as_base64(body.image_url)
    if not base64_image:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide base64Image or the imageUrl of an uploaded photo.",
        )

    try:
        payload = await service.identify(base64_image)
    except PlantIdNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    except PlantIdentificationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    candidates = extract_candidates(payload, limit=settings.PLANTID_MAX_CANDIDATES)
    payload["candidates"] = [
        PlantCandidate(**candidate).model_dump(by_alias=True) for candidate in candidates
    ]
    return payload

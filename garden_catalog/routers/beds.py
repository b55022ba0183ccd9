"""
Garden bed endpoints.

GET    /api/beds?userId=   list a user's beds, most recently updated first
GET    /api/beds/{bed_id}  bed detail
POST   /api/beds           create bed
PATCH  /api/beds/{bed_id}  partial update
DELETE /api/beds/{bed_id}  delete bed and its plants
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from garden_catalog.dependencies.lookups import get_bed_or_404, get_store
from garden_catalog.models.database_models import GardenBed
from garden_catalog.models.schemas import (
    GardenBedCreate,
    GardenBedResponse,
    GardenBedUpdate,
    SuccessResponse,
)
from garden_catalog.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[GardenBedResponse])
async def list_beds(
    user_id: Optional[str] = Query(None, alias="userId"),
    store: CatalogStore = Depends(get_store),
) -> List[GardenBed]:
    """List all beds belonging to a user."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId is required",
        )
    return await store.list_beds(user_id)


@router.get("/{bed_id}", response_model=GardenBedResponse)
async def get_bed(bed: GardenBed = Depends(get_bed_or_404)) -> GardenBed:
    return bed


@router.post("", response_model=GardenBedResponse, status_code=status.HTTP_201_CREATED)
async def create_bed(
    body: GardenBedCreate,
    store: CatalogStore = Depends(get_store),
) -> GardenBed:
    """Create a bed for an existing user."""
    if await store.get_user(body.user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return await store.create_bed(**body.model_dump())


@router.patch("/{bed_id}", response_model=GardenBedResponse)
async def update_bed(
    body: GardenBedUpdate,
    bed: GardenBed = Depends(get_bed_or_404),
    store: CatalogStore = Depends(get_store),
) -> GardenBed:
    """Apply the fields present in the body; refreshes ``lastUpdated``."""
    return await store.update_bed(bed, body.model_dump(exclude_unset=True))


@router.delete("/{bed_id}", response_model=SuccessResponse)
async def delete_bed(
    bed: GardenBed = Depends(get_bed_or_404),
    store: CatalogStore = Depends(get_store),
) -> SuccessResponse:
    """Delete a bed and every plant in it."""
    await store.delete_bed(bed)
    return SuccessResponse()

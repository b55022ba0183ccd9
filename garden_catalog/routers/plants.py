"""
Plant endpoints.

GET    /api/plants?bedId=      list plants in a bed
GET    /api/plants/{plant_id}  plant detail
POST   /api/plants             create plant
PATCH  /api/plants/{plant_id}  partial update (may move the plant to another bed)
DELETE /api/plants/{plant_id}  delete plant
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from garden_catalog.dependencies.lookups import get_plant_or_404, get_store
from garden_catalog.models.database_models import Plant
from garden_catalog.models.schemas import (
    PlantCreate,
    PlantResponse,
    PlantUpdate,
    SuccessResponse,
)
from garden_catalog.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_bed(store: CatalogStore, bed_id: str) -> None:
    if await store.get_bed(bed_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Garden bed not found",
        )


@router.get("", response_model=List[PlantResponse])
async def list_plants(
    bed_id: Optional[str] = Query(None, alias="bedId"),
    store: CatalogStore = Depends(get_store),
) -> List[Plant]:
    """List all plants in a bed."""
    if not bed_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bedId is required",
        )
    return await store.list_plants(bed_id)


@router.get("/{plant_id}", response_model=PlantResponse)
async def get_plant(plant: Plant = Depends(get_plant_or_404)) -> Plant:
    return plant


@router.post("", response_model=PlantResponse, status_code=status.HTTP_201_CREATED)
async def create_plant(
    body: PlantCreate,
    store: CatalogStore = Depends(get_store),
) -> Plant:
    await _require_bed(store, body.bed_id)
    return await store.create_plant(**body.model_dump())


@router.patch("/{plant_id}", response_model=PlantResponse)
async def update_plant(
    body: PlantUpdate,
    plant: Plant = Depends(get_plant_or_404),
    store: CatalogStore = Depends(get_store),
) -> Plant:
    fields = body.model_dump(exclude_unset=True)
    if fields.get("bed_id") and fields["bed_id"] != plant.bed_id:
        await _require_bed(store, fields["bed_id"])
    return await store.update_plant(plant, fields)


@router.delete("/{plant_id}", response_model=SuccessResponse)
async def delete_plant(
    plant: Plant = Depends(get_plant_or_404),
    store: CatalogStore = Depends(get_store),
) -> SuccessResponse:
    await store.delete_plant(plant)
    return SuccessResponse()

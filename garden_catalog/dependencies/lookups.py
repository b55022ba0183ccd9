"""
Lookup dependencies for FastAPI routes.

Resolve path parameters to ORM rows, raising 404 when the row is missing,
so handlers receive a loaded object.
"""
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from garden_catalog.database import get_db
from garden_catalog.models.database_models import GardenBed, Plant, User
from garden_catalog.services.catalog import CatalogStore

logger = logging.getLogger(__name__)


async def get_store(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    """A CatalogStore bound to the request's session."""
    return CatalogStore(db)


async def get_user_or_404(
    user_id: str,
    store: CatalogStore = Depends(get_store),
) -> User:
    user = await store.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def get_bed_or_404(
    bed_id: str,
    store: CatalogStore = Depends(get_store),
) -> GardenBed:
    bed = await store.get_bed(bed_id)
    if bed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Garden bed not found",
        )
    return bed


async def get_plant_or_404(
    plant_id: str,
    store: CatalogStore = Depends(get_store),
) -> Plant:
    plant = await store.get_plant(plant_id)
    if plant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plant not found",
        )
    return plant

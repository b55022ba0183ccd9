"""
User endpoints.

The client bootstraps a demo user on first visit and keeps its id in
localStorage; every other route is scoped by that id.

POST /api/users                    create user
GET  /api/users/{user_id}          user detail
GET  /api/users/{user_id}/catalog  all beds with their plants (grid view)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from garden_catalog.dependencies.lookups import get_store, get_user_or_404
from garden_catalog.models.database_models import User
from garden_catalog.models.schemas import (
    CatalogResponse,
    GardenBedWithPlants,
    UserCreate,
    UserResponse,
)
from garden_catalog.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    store: CatalogStore = Depends(get_store),
) -> User:
    """Create a user.  Emails are unique."""
    if await store.get_user_by_email(body.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A user with email {body.email!r} already exists.",
        )
    return await store.create_user(**body.model_dump())


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user: User = Depends(get_user_or_404)) -> User:
    """Get user details."""
    return user


@router.get("/{user_id}/catalog", response_model=CatalogResponse)
async def get_catalog(
    user: User = Depends(get_user_or_404),
    store: CatalogStore = Depends(get_store),
) -> CatalogResponse:
    """Every bed of the user with its plants nested, newest bed first."""
    beds = await store.list_beds_with_plants(user.id)
    return CatalogResponse(
        user_id=user.id,
        beds=[GardenBedWithPlants.model_validate(bed) for bed in beds],
        total_beds=len(beds),
        total_plants=sum(len(bed.plants) for bed in beds),
    )

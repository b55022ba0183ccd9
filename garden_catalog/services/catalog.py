"""
Persistence operations for the garden catalog.

Every router and the chat service go through :class:`CatalogStore`, which
wraps one ``AsyncSession``.  Methods flush but never commit; the request's
session dependency owns the transaction.

Public API
----------
CatalogStore.get_user / get_user_by_email / create_user / touch_user
CatalogStore.get_bed / list_beds / find_bed_by_name / create_bed / update_bed / delete_bed
CatalogStore.get_plant / list_plants / create_plant / update_plant / delete_plant
CatalogStore.list_beds_with_plants
CatalogStore.get_latest_conversation / save_conversation
CatalogStore.create_feedback
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garden_catalog.models.database_models import (
    Conversation,
    Feedback,
    GardenBed,
    Plant,
    User,
)
from garden_catalog.utils.helpers import (
    dump_json_list,
    normalize_name,
    strip_bed_suffix,
    utcnow,
)

logger = logging.getLogger(__name__)

# Columns that may never be cleared through a partial update
_REQUIRED_BED_FIELDS = frozenset({"bed_name"})
_REQUIRED_PLANT_FIELDS = frozenset({"bed_id", "common_name", "quantity"})


class CatalogStore:
    """CRUD for users, beds, plants, conversations and feedback."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(self, **fields: Any) -> User:
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        logger.info("Created user id=%s email=%s", user.id, user.email)
        return user

    async def touch_user(self, user: User) -> None:
        """Refresh ``last_active``."""
        user.last_active = utcnow()
        await self.db.flush()

    # ------------------------------------------------------------------
    # Garden beds
    # ------------------------------------------------------------------

    async def get_bed(self, bed_id: str) -> Optional[GardenBed]:
        return await self.db.get(GardenBed, bed_id)

    async def list_beds(self, user_id: str) -> List[GardenBed]:
        """Beds owned by *user_id*, most recently updated first."""
        result = await self.db.execute(
            select(GardenBed)
            .where(GardenBed.user_id == user_id)
            .order_by(GardenBed.last_updated.desc())
        )
        return list(result.scalars().all())

    async def find_bed_by_name(
        self,
        user_id: str,
        bed_name: Optional[str],
        allow_suffix_match: bool = False,
    ) -> Optional[GardenBed]:
        """
        Case-insensitive lookup of a user's bed.

        With *allow_suffix_match*, a name such as "vegetable bed" also matches
        a bed called "Vegetable" when no exact match exists.
        """
        wanted = normalize_name(bed_name)
        if not wanted:
            return None

        beds = await self.list_beds(user_id)
        for bed in beds:
            if normalize_name(bed.bed_name) == wanted:
                return bed

        if allow_suffix_match:
            trimmed = strip_bed_suffix(bed_name)
            for bed in beds:
                if normalize_name(bed.bed_name) == trimmed:
                    return bed
        return None

    async def create_bed(self, **fields: Any) -> GardenBed:
        bed = GardenBed(**fields)
        self.db.add(bed)
        await self.db.flush()
        logger.info("Created bed id=%s name=%r for user=%s", bed.id, bed.bed_name, bed.user_id)
        return bed

    async def update_bed(self, bed: GardenBed, fields: Dict[str, Any]) -> GardenBed:
        for key, value in fields.items():
            if value is None and key in _REQUIRED_BED_FIELDS:
                continue
            setattr(bed, key, value)
        bed.last_updated = utcnow()
        await self.db.flush()
        return bed

    async def delete_bed(self, bed: GardenBed) -> int:
        """Delete *bed* and every plant in it.  Returns the number of plants removed."""
        plants = await self.list_plants(bed.id)
        for plant in plants:
            await self.db.delete(plant)
        removed = len(plants)
        await self.db.delete(bed)
        await self.db.flush()
        logger.info("Deleted bed id=%s name=%r (%d plants)", bed.id, bed.bed_name, removed)
        return removed

    async def list_beds_with_plants(self, user_id: str) -> List[GardenBed]:
        """Beds of *user_id* with their ``plants`` collection eagerly loaded."""
        result = await self.db.execute(
            select(GardenBed)
            .where(GardenBed.user_id == user_id)
            .options(selectinload(GardenBed.plants))
            .order_by(GardenBed.last_updated.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Plants
    # ------------------------------------------------------------------

    async def get_plant(self, plant_id: str) -> Optional[Plant]:
        return await self.db.get(Plant, plant_id)

    async def list_plants(self, bed_id: str) -> List[Plant]:
        """Plants in *bed_id*, most recently updated first."""
        result = await self.db.execute(
            select(Plant)
            .where(Plant.bed_id == bed_id)
            .order_by(Plant.last_updated.desc())
        )
        return list(result.scalars().all())

    async def create_plant(self, **fields: Any) -> Plant:
        if not fields.get("quantity"):
            fields["quantity"] = 1
        plant = Plant(**fields)
        self.db.add(plant)
        await self.db.flush()
        logger.info(
            "Created plant id=%s name=%r qty=%d in bed=%s",
            plant.id,
            plant.common_name,
            plant.quantity,
            plant.bed_id,
        )
        return plant

    async def update_plant(self, plant: Plant, fields: Dict[str, Any]) -> Plant:
        for key, value in fields.items():
            if value is None and key in _REQUIRED_PLANT_FIELDS:
                continue
            setattr(plant, key, value)
        plant.last_updated = utcnow()
        await self.db.flush()
        return plant

    async def delete_plant(self, plant: Plant) -> None:
        await self.db.delete(plant)
        await self.db.flush()
        logger.info("Deleted plant id=%s name=%r", plant.id, plant.common_name)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def get_latest_conversation(self, user_id: str) -> Optional[Conversation]:
        """The user's active conversation: the most recently updated one."""
        result = await self.db.execute(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.last_updated.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def save_conversation(
        self,
        user_id: str,
        messages: List[Dict[str, str]],
        conversation: Optional[Conversation] = None,
    ) -> Conversation:
        """Persist *messages*, updating *conversation* or starting a new one."""
        encoded = dump_json_list(messages)
        if conversation is None:
            conversation = Conversation(user_id=user_id, messages=encoded, context=None)
            self.db.add(conversation)
        else:
            conversation.messages = encoded
            conversation.last_updated = utcnow()
        await self.db.flush()
        return conversation

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    async def create_feedback(
        self,
        message: str,
        user_id: Optional[str] = None,
        image_urls: Optional[List[str]] = None,
        user_agent: Optional[str] = None,
        page_url: Optional[str] = None,
    ) -> Feedback:
        feedback = Feedback(
            user_id=user_id,
            message=message,
            image_urls=dump_json_list(image_urls) if image_urls else None,
            user_agent=user_agent,
            page_url=page_url,
        )
        self.db.add(feedback)
        await self.db.flush()
        logger.info("Stored feedback id=%s (%d images)", feedback.id, len(image_urls or []))
        return feedback
